from django.contrib import admin

from .models import LeaveRequest


@admin.register(LeaveRequest)
class LeaveRequestAdmin(admin.ModelAdmin):
    list_display = ("request_number", "employee", "leave_type", "start_date", "end_date", "total_days", "status")
    list_filter = ("leave_type", "status")
    search_fields = ("request_number", "employee__username", "employee__first_name", "employee__last_name")
    date_hierarchy = "start_date"
    readonly_fields = ("request_number", "total_days", "approved_at", "created_at", "updated_at")
