from django.urls import path
from .views import (
    notification_settings, notification_settings_by_role, notification_settings_all,
    notification_sound_list_create, notification_sound_delete,
)

urlpatterns = [
    path('notifications/settings/', notification_settings, name='notification-settings'),
    path('notifications/settings/by-role/', notification_settings_by_role, name='notification-settings-by-role'),
    path('notifications/settings/all/', notification_settings_all, name='notification-settings-all'),
    path('notifications/sounds/', notification_sound_list_create, name='notification-sound-list-create'),
    path('notifications/sounds/<int:pk>/', notification_sound_delete, name='notification-sound-delete'),
]
