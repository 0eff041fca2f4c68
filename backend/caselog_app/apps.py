from django.apps import AppConfig


class CaselogAppConfig(AppConfig):
    name = "caselog_app"
    verbose_name = "CaseLog"
