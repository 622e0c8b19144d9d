import logging

from django.db import transaction
from django.db.models import Count, Q

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles, notify_users
from apps.users.roles import Role

from .models import IncidentSeverity, IncidentStatus, InspectionStatus, SafetyIncident, SafetyInspection

logger = logging.getLogger(__name__)

ESCALATION_ROLES = (Role.SAFETY_OFFICER, Role.OPERATIONS_MANAGER)


class SafetyService:

    @staticmethod
    @transaction.atomic
    def report_incident(*, user, **fields):
        """
        File a new incident in REPORTED status.

        HIGH and CRITICAL incidents are escalated to safety officers and
        operations managers.
        """
        incident = SafetyIncident.objects.create(reported_by=user, **fields)
        log_audit_event(
            user=user,
            action="INCIDENT_REPORTED",
            entity_type="SafetyIncident",
            entity_id=incident.id,
            description=f"{incident.get_type_display()} at {incident.location} ({incident.severity}).",
        )
        if incident.severity in (IncidentSeverity.HIGH, IncidentSeverity.CRITICAL):
            notify_roles(
                ESCALATION_ROLES,
                title=f"{incident.get_severity_display()} incident {incident.incident_number}",
                body=f"{incident.get_type_display()} at {incident.location}",
                severity=(
                    NotificationSeverity.CRITICAL
                    if incident.severity == IncidentSeverity.CRITICAL
                    else NotificationSeverity.WARNING
                ),
                group_key="safety_incident_reported",
                entity_type="SafetyIncident",
                entity_id=incident.id,
                exclude=user,
            )
        logger.info("Incident %s reported by %s", incident.incident_number, user.username)
        return incident

    @staticmethod
    @transaction.atomic
    def append_photos(incident, *, user, photo_urls):
        incident = SafetyIncident.objects.select_for_update().get(pk=incident.pk)
        added = incident.add_photos(photo_urls or [])
        if added:
            incident.save(update_fields=["photo_urls", "updated_at"])
            logger.info("Attached %s photo(s) to incident %s", added, incident.incident_number)
        return incident

    @staticmethod
    @transaction.atomic
    def change_status(incident, *, user, status, root_cause="", corrective_actions=""):
        incident = SafetyIncident.objects.select_for_update().get(pk=incident.pk)
        before = incident.status
        incident.advance(status, user=user, root_cause=root_cause, corrective_actions=corrective_actions)
        incident.save()
        log_audit_event(
            user=user,
            action="INCIDENT_STATUS_CHANGED",
            entity_type="SafetyIncident",
            entity_id=incident.id,
            before={"status": before},
            after={"status": incident.status},
        )
        notify_users(
            [incident.reported_by],
            title=f"Incident {incident.incident_number} is now {incident.get_status_display()}",
            group_key="safety_incident_status",
            entity_type="SafetyIncident",
            entity_id=incident.id,
            exclude=user,
        )
        logger.info("Incident %s moved %s -> %s", incident.incident_number, before, incident.status)
        return incident

    @staticmethod
    @transaction.atomic
    def complete_inspection(inspection, *, user, passed, score=None, findings=""):
        inspection = SafetyInspection.objects.select_for_update().get(pk=inspection.pk)
        inspection.complete(passed=passed, score=score, findings=findings)
        inspection.save()
        log_audit_event(
            user=user,
            action="INSPECTION_COMPLETED",
            entity_type="SafetyInspection",
            entity_id=inspection.id,
            after={"status": inspection.status, "score": inspection.score},
        )
        if inspection.status == InspectionStatus.FAILED:
            notify_roles(
                ESCALATION_ROLES,
                title=f"Inspection {inspection.inspection_number} failed",
                body=inspection.findings[:200],
                severity=NotificationSeverity.WARNING,
                group_key="safety_inspection_failed",
                entity_type="SafetyInspection",
                entity_id=inspection.id,
                exclude=user,
            )
        return inspection

    @staticmethod
    def stats() -> dict:
        incidents = SafetyIncident.objects.aggregate(
            totalIncidents=Count("id"),
            openIncidents=Count("id", filter=~Q(status=IncidentStatus.CLOSED)),
            criticalIncidents=Count("id", filter=Q(severity=IncidentSeverity.CRITICAL)),
            oshaReportable=Count("id", filter=Q(osha_reportable=True)),
        )
        inspections = SafetyInspection.objects.aggregate(
            totalInspections=Count("id"),
            pendingInspections=Count(
                "id", filter=Q(status__in=[InspectionStatus.SCHEDULED, InspectionStatus.IN_PROGRESS])
            ),
            failedInspections=Count("id", filter=Q(status=InspectionStatus.FAILED)),
        )
        by_type = SafetyIncident.objects.values("type").annotate(count=Count("id")).order_by("type")
        return {
            **incidents,
            **inspections,
            "incidentsByType": {row["type"]: row["count"] for row in by_type},
        }
