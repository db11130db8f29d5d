from django.apps import AppConfig


class DonorConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'donor'
    verbose_name = 'Donors'

    def ready(self):  # pragma: no cover - import side-effects
        # Donation history changes keep the availability index current
        from . import signals  # noqa: F401
