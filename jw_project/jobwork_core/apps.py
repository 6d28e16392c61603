from django.apps import AppConfig


class JobworkCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "jobwork_core"
    verbose_name = "Job-work back office"

    # ensure receivers are registered
    def ready(self):
        import jobwork_core.signals  # noqa: F401
