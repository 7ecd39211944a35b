from django.apps import AppConfig


class SaasAdminConfig(AppConfig):
    name = 'saas_admin'
    verbose_name = 'SaaS Admin'
