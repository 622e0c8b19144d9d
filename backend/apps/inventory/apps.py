from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.inventory"
    verbose_name = "Inventory & Warehousing"

    def ready(self):
        from .services.stock_service import InventoryService

        InventoryService.register_handlers()
