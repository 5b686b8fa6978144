from django.apps import AppConfig


class TransfusionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'transfusions'
    verbose_name = 'Transfusions'

    def ready(self):
        import transfusions.signals  # noqa: F401
