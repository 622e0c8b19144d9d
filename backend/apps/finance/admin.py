from django.contrib import admin

from .models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('expense_number', 'submitted_by', 'category', 'amount', 'currency', 'expense_date', 'status')
    list_filter = ('status', 'category', 'currency')
    search_fields = ('expense_number', 'description', 'submitted_by__username')
    date_hierarchy = 'expense_date'
    readonly_fields = ('expense_number', 'approved_at', 'paid_at', 'created_at', 'updated_at')
