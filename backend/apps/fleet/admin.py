from django.contrib import admin

from .models import FleetAsset, FleetCost, FleetDocument


class FleetDocumentInline(admin.TabularInline):
    model = FleetDocument
    extra = 0
    readonly_fields = ("uploaded_by", "uploaded_at")


@admin.register(FleetAsset)
class FleetAssetAdmin(admin.ModelAdmin):
    list_display = ("asset_code", "name", "type", "status", "current_location", "operator")
    list_filter = ("type", "status", "fuel_type")
    search_fields = ("asset_code", "name", "registration_no", "serial_number")
    inlines = [FleetDocumentInline]


@admin.register(FleetCost)
class FleetCostAdmin(admin.ModelAdmin):
    list_display = ("asset", "cost_date", "category", "amount", "currency", "status")
    list_filter = ("category", "status")
    search_fields = ("asset__asset_code", "description", "invoice_number")
    date_hierarchy = "cost_date"


@admin.register(FleetDocument)
class FleetDocumentAdmin(admin.ModelAdmin):
    list_display = ("asset", "type", "name", "expiry_date", "validity")
    list_filter = ("type",)
    search_fields = ("asset__asset_code", "name")
