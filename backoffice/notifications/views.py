import logging

from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backoffice.core.models import User
from backoffice.core.permissions import get_user_role, has_crm_role, is_admin_user
from backoffice.core.uploads import UploadError, delete_stored_file, store_upload, validate_upload
from backoffice.core.utils import create_audit_log
from .models import NotificationSettings, NotificationSound
from .serializers import NotificationSettingsSerializer, NotificationSoundSerializer

logger = logging.getLogger(__name__)

VALID_ROLES = {code for code, _ in User.ROLE_CHOICES}


def _forbidden(message='CRM access required'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _normalize_role(value):
    """'default', '' and missing all mean the default (role-less) profile"""
    if value is None:
        return None
    value = str(value).strip()
    if value in ('', 'default'):
        return None
    return value


def _find_profile(role):
    # role is nullable, several NULLs would satisfy the unique index, so look up rather than get()
    if role is None:
        return NotificationSettings.objects.filter(role__isnull=True).order_by('id').first()
    return NotificationSettings.objects.filter(role=role).first()


def _builtin_defaults(role=None):
    """Defaults of an unsaved profile (id is null)"""
    return NotificationSettingsSerializer(NotificationSettings(role=role)).data


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_settings(request):
    """
    GET: settings for the current user's role, falling back to the default
    profile and then to built-in defaults.
    PATCH: create or update the profile of `role` (Admin only).
    """
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        role = get_user_role(request.user)
        profile = (_find_profile(role) if role else None) or _find_profile(None)
        if profile is None:
            return Response(_builtin_defaults())
        return Response(NotificationSettingsSerializer(profile).data)

    if not is_admin_user(request.user):
        return _forbidden('Only admins can change notification settings')

    role = _normalize_role(request.data.get('role'))
    if role is not None and role not in VALID_ROLES:
        return Response({'role': [f'"{role}" is not a valid role.']}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        profile = _find_profile(role)
        if profile is not None:
            # Only the supplied fields change
            serializer = NotificationSettingsSerializer(profile, data=request.data, partial=True)
        else:
            serializer = NotificationSettingsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        created = profile is None
        profile = serializer.save(role=role) if created else serializer.save()

    logger.info(f"User {request.user.username} {'created' if created else 'updated'} notification settings for {role or 'default'}")
    create_audit_log(request=request, action='create' if created else 'update',
                     model_name='NotificationSettings', object_id=profile.pk,
                     object_name=str(profile), changes={'fields': sorted(k for k in request.data.keys() if k != 'role')})
    return Response(NotificationSettingsSerializer(profile).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_settings_by_role(request):
    """Profile stored for ?role= (built-in defaults carrying that role when none exists)"""
    if not has_crm_role(request.user):
        return _forbidden()
    role = _normalize_role(request.query_params.get('role'))
    profile = _find_profile(role)
    if profile is None:
        return Response(_builtin_defaults(role))
    return Response(NotificationSettingsSerializer(profile).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_settings_all(request):
    """Every stored profile, the default one first"""
    if not has_crm_role(request.user):
        return _forbidden()
    profiles = sorted(NotificationSettings.objects.all(), key=lambda p: (p.role is not None, p.role or ''))
    return Response(NotificationSettingsSerializer(profiles, many=True).data)


def _absolute_url(request, url):
    base = (settings.API_BASE_URL or '').rstrip('/')
    if base:
        return f"{base}{url}"
    return request.build_absolute_uri(url)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def notification_sound_list_create(request):
    """List uploaded sounds or upload a new one (multipart `file`, optional `name`)"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        sounds = NotificationSound.objects.all().order_by('-created_at', '-id')
        return Response(NotificationSoundSerializer(sounds, many=True).data)

    if not is_admin_user(request.user):
        return _forbidden('Only admins can upload notification sounds')

    upload = request.FILES.get('file')
    try:
        ext = validate_upload(upload, settings.NOTIFICATION_SOUND_EXTENSIONS, settings.NOTIFICATION_SOUND_MAX_SIZE)
    except UploadError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    _, url = store_upload(upload, 'notification-sounds', 'sound', ext)
    name = (request.data.get('name') or '').strip() or upload.name or 'Sound'
    sound = NotificationSound.objects.create(name=name, file_url=_absolute_url(request, url))

    create_audit_log(request=request, action='create', model_name='NotificationSound',
                     object_id=sound.pk, object_name=sound.name)
    return Response(NotificationSoundSerializer(sound).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_sound_delete(request, pk):
    """Delete a sound and its stored file"""
    if not is_admin_user(request.user):
        return _forbidden('Only admins can delete notification sounds')

    sound = get_object_or_404(NotificationSound, pk=pk)
    delete_stored_file(sound.file_url, settings.MEDIA_URL)
    create_audit_log(request=request, action='delete', model_name='NotificationSound',
                     object_id=sound.pk, object_name=sound.name)
    sound.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
