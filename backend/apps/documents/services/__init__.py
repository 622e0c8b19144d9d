from .ocr_service import OCRService, document_stats, visible_documents
from .ocr_webhook import OCRWebhookDispatcher

__all__ = ["OCRService", "OCRWebhookDispatcher", "document_stats", "visible_documents"]
