from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition


class ExpenseCategory(models.TextChoices):
    TRAVEL = "TRAVEL", "Travel"
    ACCOMMODATION = "ACCOMMODATION", "Accommodation"
    MEALS = "MEALS", "Meals"
    FUEL = "FUEL", "Fuel"
    EQUIPMENT = "EQUIPMENT", "Equipment"
    SUPPLIES = "SUPPLIES", "Supplies"
    MAINTENANCE = "MAINTENANCE", "Maintenance"
    TRAINING = "TRAINING", "Training"
    COMMUNICATION = "COMMUNICATION", "Communication"
    OTHER = "OTHER", "Other"


class ExpenseStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    PAID = "PAID", "Paid"


class Expense(models.Model):
    """Employee expense claim."""

    expense_number = models.CharField(max_length=32, unique=True, blank=True)
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="expenses",
    )
    category = models.CharField(max_length=20, choices=ExpenseCategory.choices, default=ExpenseCategory.OTHER)
    description = models.CharField(max_length=500)
    amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    currency = models.CharField(max_length=3, default="GHS")
    expense_date = models.DateField()
    receipt_url = models.URLField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=ExpenseStatus.choices, default=ExpenseStatus.PENDING, db_index=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_expenses",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    paid_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_reference = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-expense_date", "-created_at"]
        indexes = [
            models.Index(fields=["submitted_by", "status"], name="expense_submitter_status_idx"),
            models.Index(fields=["category"], name="expense_category_idx"),
        ]

    def __str__(self):
        return f"{self.expense_number or self.pk} {self.amount} {self.currency}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.expense_number:
            self.expense_number = get_next_doc_no(doc_type="EXP", prefix="EXP")
        super().save(*args, **kwargs)

    def _ensure_status(self, allowed, verb):
        if self.status not in allowed:
            raise InvalidTransition(f"Expense {self.expense_number} is {self.status} and cannot be {verb}.")

    def approve(self, user):
        self._ensure_status({ExpenseStatus.PENDING}, "approved")
        self.status = ExpenseStatus.APPROVED
        self.approved_by = user
        self.approved_at = timezone.now()

    def reject(self, user, *, reason):
        self._ensure_status({ExpenseStatus.PENDING}, "rejected")
        self.status = ExpenseStatus.REJECTED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.rejection_reason = reason

    def mark_paid(self, user, *, reference=""):
        self._ensure_status({ExpenseStatus.APPROVED}, "paid")
        self.status = ExpenseStatus.PAID
        self.paid_by = user
        self.paid_at = timezone.now()
        self.payment_reference = reference
