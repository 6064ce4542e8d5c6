from django.apps import AppConfig


class ComplykitConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'complykit'
    verbose_name = 'ComplyKit'
