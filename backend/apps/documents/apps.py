from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.documents"
    verbose_name = "Documents & OCR"

    def ready(self):
        from .services.ocr_webhook import OCRWebhookDispatcher

        OCRWebhookDispatcher.register_handlers()
