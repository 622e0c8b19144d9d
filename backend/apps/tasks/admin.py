from django.contrib import admin

from .models import Task, TaskComment


class TaskCommentInline(admin.TabularInline):
    model = TaskComment
    extra = 0
    readonly_fields = ("author", "created_at")


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("title", "assigned_to", "priority", "status", "due_date", "completed_at")
    list_filter = ("priority", "status")
    search_fields = ("title", "description", "assigned_to__username", "assigned_to__email")
    date_hierarchy = "due_date"
    inlines = [TaskCommentInline]
