from django.apps import AppConfig


class ApiConfig(AppConfig):
    name = "api"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        # Importing a provider module registers it; nothing registers after startup.
        from .providers import elastictranscoder  # noqa: F401
        from .providers.registry import registry

        registry.freeze()
