from django.apps import AppConfig


class ChessgraphConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "chessgraph"
    verbose_name = "Chess Graph"
