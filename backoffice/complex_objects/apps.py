from django.apps import AppConfig


class ComplexObjectsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice.complex_objects'
