from django.contrib import admin

from .models import SafetyIncident, SafetyInspection


@admin.register(SafetyIncident)
class SafetyIncidentAdmin(admin.ModelAdmin):
    list_display = ("incident_number", "type", "severity", "status", "location", "incident_date", "reported_by")
    list_filter = ("type", "severity", "status", "osha_reportable")
    search_fields = ("incident_number", "location", "description")
    date_hierarchy = "incident_date"
    readonly_fields = ("incident_number", "reported_at", "resolved_at", "closed_at")


@admin.register(SafetyInspection)
class SafetyInspectionAdmin(admin.ModelAdmin):
    list_display = ("inspection_number", "title", "location", "scheduled_date", "inspector", "status", "score")
    list_filter = ("status",)
    search_fields = ("inspection_number", "title", "location")
