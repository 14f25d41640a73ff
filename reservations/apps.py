# reservations/apps.py
# version: 1.1.0

from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reservations'
    verbose_name = 'Buchungen'

    def ready(self):
        import reservations.signals  # noqa: F401
