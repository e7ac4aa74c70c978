from django.apps import AppConfig


class DirectionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice.directions'
    verbose_name = 'CRM directions'
