from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition

MAX_LEAVE_DAYS = 365


class LeaveType(models.TextChoices):
    ANNUAL = "ANNUAL", "Annual"
    SICK = "SICK", "Sick"
    MATERNITY = "MATERNITY", "Maternity"
    PATERNITY = "PATERNITY", "Paternity"
    COMPASSIONATE = "COMPASSIONATE", "Compassionate"
    STUDY = "STUDY", "Study"
    UNPAID = "UNPAID", "Unpaid"


class LeaveRequestStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    CANCELLED = "CANCELLED", "Cancelled"


BLOCKING_STATUSES = (LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED)


class LeaveRequest(models.Model):
    request_number = models.CharField(max_length=32, unique=True, blank=True)
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="leave_requests",
    )
    leave_type = models.CharField(max_length=20, choices=LeaveType.choices, default=LeaveType.ANNUAL)
    start_date = models.DateField()
    end_date = models.DateField()
    total_days = models.PositiveIntegerField(default=1)
    reason = models.TextField()
    status = models.CharField(
        max_length=20,
        choices=LeaveRequestStatus.choices,
        default=LeaveRequestStatus.PENDING,
        db_index=True,
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_leave_requests",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["employee", "status"], name="leave_employee_status_idx"),
            models.Index(fields=["start_date"], name="leave_start_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.request_number or self.pk} {self.get_leave_type_display()} {self.start_date} - {self.end_date}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.request_number:
            self.request_number = get_next_doc_no(doc_type="LV", prefix="LV")
        super().save(*args, **kwargs)

    def _ensure_pending(self, verb: str):
        if self.status != LeaveRequestStatus.PENDING:
            raise InvalidTransition(f"Only pending leave requests can be {verb} (current: {self.status}).")

    def approve(self, user):
        self._ensure_pending("approved")
        self.status = LeaveRequestStatus.APPROVED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.rejection_reason = ""

    def reject(self, user, *, reason: str):
        self._ensure_pending("rejected")
        self.status = LeaveRequestStatus.REJECTED
        self.approved_by = user
        self.approved_at = None
        self.rejection_reason = reason

    def cancel(self):
        self._ensure_pending("cancelled")
        self.status = LeaveRequestStatus.CANCELLED
