from rest_framework.permissions import BasePermission

CRM_ROLES = [
    'SUPER_ADMIN',
    'ADMIN',
    'MODERATOR',
    'SUPPORT',
    'MANAGER',
    'TECHNOLOGIST',
    'BRIGADIER',
    'LEAD_SPECIALIST_FURNITURE',
    'LEAD_SPECIALIST_WINDOWS_DOORS',
    'SURVEYOR',
    'DRIVER',
    'INSTALLER',
]

ADMIN_ROLES = ['SUPER_ADMIN', 'ADMIN']

TASK_ROLES = ['SUPER_ADMIN', 'ADMIN', 'MODERATOR', 'SUPPORT']


def get_user_role(user):
    """
    Role of the user for access checks.
    Superusers always act as SUPER_ADMIN regardless of the stored role.
    """
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return 'SUPER_ADMIN'
    return user.role


def has_any_role(user, roles):
    return get_user_role(user) in roles


def has_crm_role(user):
    return has_any_role(user, CRM_ROLES)


def is_admin_user(user):
    return has_any_role(user, ADMIN_ROLES)


def is_super_admin(user):
    return get_user_role(user) == 'SUPER_ADMIN'


class IsCrmUser(BasePermission):
    """Allows access only to authenticated users holding a CRM role"""
    message = 'CRM access requires a staff role.'

    def has_permission(self, request, view):
        return has_crm_role(request.user)
