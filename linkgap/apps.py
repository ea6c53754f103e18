from django.apps import AppConfig


class LinkgapConfig(AppConfig):
    """Configuration for the linkgap Django app."""

    name = 'linkgap'
    verbose_name = 'Contextual link gap analyzer'
