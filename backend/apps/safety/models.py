from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition


class IncidentType(models.TextChoices):
    INJURY = "INJURY", "Injury"
    NEAR_MISS = "NEAR_MISS", "Near miss"
    PROPERTY_DAMAGE = "PROPERTY_DAMAGE", "Property damage"
    EQUIPMENT_FAILURE = "EQUIPMENT_FAILURE", "Equipment failure"
    ENVIRONMENTAL = "ENVIRONMENTAL", "Environmental"
    FIRE = "FIRE", "Fire"
    OTHER = "OTHER", "Other"


class IncidentSeverity(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    CRITICAL = "CRITICAL", "Critical"


class IncidentStatus(models.TextChoices):
    REPORTED = "REPORTED", "Reported"
    INVESTIGATING = "INVESTIGATING", "Investigating"
    RESOLVED = "RESOLVED", "Resolved"
    CLOSED = "CLOSED", "Closed"


class SafetyIncident(models.Model):
    NEXT_STATUS = {
        IncidentStatus.REPORTED: IncidentStatus.INVESTIGATING,
        IncidentStatus.INVESTIGATING: IncidentStatus.RESOLVED,
        IncidentStatus.RESOLVED: IncidentStatus.CLOSED,
    }

    incident_number = models.CharField(max_length=32, unique=True, blank=True)
    type = models.CharField(max_length=24, choices=IncidentType.choices)
    severity = models.CharField(max_length=12, choices=IncidentSeverity.choices, default=IncidentSeverity.LOW)
    status = models.CharField(max_length=16, choices=IncidentStatus.choices, default=IncidentStatus.REPORTED, db_index=True)
    location = models.CharField(max_length=255)
    incident_date = models.DateTimeField()
    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reported_incidents",
    )
    reported_at = models.DateTimeField(auto_now_add=True)
    description = models.TextField()
    injuries = models.TextField(blank=True)
    witnesses = models.JSONField(default=list, blank=True)
    photo_urls = models.JSONField(default=list, blank=True)
    osha_reportable = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    root_cause = models.TextField(blank=True)
    corrective_actions = models.TextField(blank=True)
    investigated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-incident_date"]
        indexes = [
            models.Index(fields=["reported_by", "status"], name="incident_reporter_status_idx"),
            models.Index(fields=["severity"], name="incident_severity_idx"),
        ]

    def __str__(self):
        return f"{self.incident_number or self.pk} {self.get_type_display()} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.incident_number:
            self.incident_number = get_next_doc_no(doc_type="INC", prefix="INC")
        super().save(*args, **kwargs)

    def advance(self, new_status, *, user, root_cause="", corrective_actions=""):
        expected = self.NEXT_STATUS.get(self.status)
        if new_status != expected:
            raise InvalidTransition(f"Incident cannot move from {self.status} to {new_status}.")
        if new_status == IncidentStatus.INVESTIGATING:
            self.investigated_by = user
        elif new_status == IncidentStatus.RESOLVED:
            if not (corrective_actions or self.corrective_actions).strip():
                raise InvalidTransition("Corrective actions are required to resolve an incident.")
            self.root_cause = root_cause or self.root_cause
            self.corrective_actions = corrective_actions or self.corrective_actions
            self.resolved_at = timezone.now()
        elif new_status == IncidentStatus.CLOSED:
            self.closed_at = timezone.now()
        self.status = new_status

    def add_photos(self, urls):
        """Append URLs, skipping blanks and ones already attached; returns the number added."""
        merged = list(self.photo_urls or [])
        added = 0
        for url in urls:
            url = str(url).strip()
            if url and url not in merged:
                merged.append(url)
                added += 1
        self.photo_urls = merged
        return added


class InspectionStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    PASSED = "PASSED", "Passed"
    FAILED = "FAILED", "Failed"


class SafetyInspection(models.Model):
    """Planned site/equipment safety inspection."""

    inspection_number = models.CharField(max_length=32, unique=True, blank=True)
    title = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    scheduled_date = models.DateField()
    inspector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="safety_inspections",
    )
    status = models.CharField(max_length=16, choices=InspectionStatus.choices, default=InspectionStatus.SCHEDULED)
    score = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    findings = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-scheduled_date"]

    def __str__(self):
        return f"{self.inspection_number or self.pk} {self.title}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.inspection_number:
            self.inspection_number = get_next_doc_no(doc_type="INS", prefix="INS")
        super().save(*args, **kwargs)

    def complete(self, *, passed: bool, score=None, findings=""):
        if self.status not in (InspectionStatus.SCHEDULED, InspectionStatus.IN_PROGRESS):
            raise InvalidTransition(f"Inspection {self.inspection_number} is already {self.status}.")
        self.status = InspectionStatus.PASSED if passed else InspectionStatus.FAILED
        self.score = score
        self.findings = findings or self.findings
        self.completed_at = timezone.now()
