from django.apps import AppConfig


class KnowledgeConfig(AppConfig):
    name = "django_ai_knowledge.contrib.knowledge"
    label = "ai_knowledge"
    verbose_name = "Django AI Knowledge Bases"

    def ready(self):
        # Connects the setting_changed receiver that resets the storage provider
        from django_ai_knowledge import conf  # noqa
