from .expense_service import ExpenseService

__all__ = ["ExpenseService"]
