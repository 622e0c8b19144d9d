from django.contrib import admin

from .models import StockItem, StockMovement, Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "location", "manager", "is_active")
    search_fields = ("code", "name", "location")
    list_filter = ("is_active",)


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ("item_code", "name", "category", "warehouse", "current_quantity", "reorder_level", "unit_price")
    search_fields = ("item_code", "name", "barcode")
    list_filter = ("category", "warehouse")
    readonly_fields = ("current_quantity",)


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("movement_number", "item", "movement_type", "quantity", "previous_quantity", "new_quantity", "performed_by", "created_at")
    list_filter = ("movement_type", "warehouse")
    search_fields = ("movement_number", "item__item_code", "reference")
    date_hierarchy = "created_at"

    def has_change_permission(self, request, obj=None):
        return False
