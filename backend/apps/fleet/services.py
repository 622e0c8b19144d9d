import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles
from apps.users.roles import FLEET_MANAGER_ROLES
from shared.exceptions import DomainError, InvalidTransition

from .models import (
    EXPIRY_WARNING_DAYS,
    FleetAsset,
    FleetAssetStatus,
    FleetCost,
    FleetCostCategory,
    FleetCostStatus,
    FleetDocument,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class FleetService:
    """
    Fleet operations: cost capture and approval, fuel logs, breakdown
    reports and compliance document expiry.
    """

    @staticmethod
    @transaction.atomic
    def record_cost(*, asset, user, amount, category, cost_date, currency=None, **fields):
        if asset.status == FleetAssetStatus.DECOMMISSIONED:
            raise InvalidTransition(f"{asset.asset_code} is decommissioned; costs can no longer be booked.")
        cost = FleetCost.objects.create(
            asset=asset,
            amount=amount,
            category=category,
            cost_date=cost_date,
            currency=(currency or settings.DEFAULT_CURRENCY).upper(),
            created_by=user,
            **fields,
        )
        log_audit_event(
            user=user,
            action="FLEET_COST_RECORDED",
            entity_type="FleetCost",
            entity_id=cost.id,
            description=f"{cost.get_category_display()} {cost.amount} {cost.currency} on {asset.asset_code}",
        )
        return cost

    @staticmethod
    @transaction.atomic
    def log_fuel(*, asset, user, litres, amount, odometer_reading=None, cost_date=None, **fields):
        """
        Book a fuel purchase as a FUEL cost and advance the odometer.

        A reading lower than the asset's current odometer is refused.
        """
        asset = FleetAsset.objects.select_for_update().get(pk=asset.pk)
        if odometer_reading is not None:
            if odometer_reading < asset.current_odometer:
                raise DomainError(
                    f"Odometer reading {odometer_reading} is below the recorded {asset.current_odometer}.",
                    code="odometer_regression",
                )
            asset.current_odometer = odometer_reading
            asset.save(update_fields=["current_odometer", "updated_at"])
        return FleetService.record_cost(
            asset=asset,
            user=user,
            amount=amount,
            category=FleetCostCategory.FUEL,
            cost_date=cost_date or timezone.localdate(),
            quantity=litres,
            odometer_reading=odometer_reading,
            **fields,
        )

    @staticmethod
    @transaction.atomic
    def decide_cost(cost, *, user, approved: bool, reason: str = ""):
        cost = FleetCost.objects.select_for_update().get(pk=cost.pk)
        cost.decide(user, approved=approved, reason=reason)
        cost.save(update_fields=["status", "approved_by", "approved_at", "rejection_reason", "updated_at"])
        log_audit_event(
            user=user,
            action="FLEET_COST_APPROVED" if approved else "FLEET_COST_REJECTED",
            entity_type="FleetCost",
            entity_id=cost.id,
            description=reason,
            after={"status": cost.status},
        )
        logger.info("Fleet cost %s %s by %s", cost.id, cost.status, user.username)
        return cost

    @staticmethod
    @transaction.atomic
    def report_breakdown(asset, *, user, description, location=""):
        asset = FleetAsset.objects.select_for_update().get(pk=asset.pk)
        if asset.status == FleetAssetStatus.DECOMMISSIONED:
            raise InvalidTransition(f"{asset.asset_code} is decommissioned.")
        before = asset.status
        asset.status = FleetAssetStatus.BREAKDOWN
        if location:
            asset.current_location = location
        asset.save(update_fields=["status", "current_location", "updated_at"])
        log_audit_event(
            user=user,
            action="FLEET_BREAKDOWN_REPORTED",
            entity_type="FleetAsset",
            entity_id=asset.id,
            description=description,
            before={"status": before},
            after={"status": asset.status},
        )
        notify_roles(
            FLEET_MANAGER_ROLES,
            title=f"Breakdown: {asset.asset_code} {asset.name}",
            body=description,
            severity=NotificationSeverity.WARNING,
            group_key="fleet_breakdown",
            entity_type="FleetAsset",
            entity_id=asset.id,
            exclude=user,
        )
        logger.warning("Breakdown reported on %s by %s", asset.asset_code, user.username)
        return asset

    @staticmethod
    def set_status(asset, *, user, status):
        if asset.status == FleetAssetStatus.DECOMMISSIONED:
            raise InvalidTransition(f"{asset.asset_code} is decommissioned.")
        before = asset.status
        asset.status = status
        asset.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="FLEET_STATUS_CHANGED",
            entity_type="FleetAsset",
            entity_id=asset.id,
            before={"status": before},
            after={"status": status},
        )
        return asset

    @staticmethod
    def expiring_documents(days_ahead: int = EXPIRY_WARNING_DAYS):
        today = timezone.localdate()
        return (
            FleetDocument.objects.select_related("asset")
            .filter(expiry_date__gte=today, expiry_date__lte=today + timedelta(days=days_ahead))
            .order_by("expiry_date")
        )

    @staticmethod
    def dashboard() -> dict:
        assets = FleetAsset.objects.aggregate(
            totalAssets=Count("id"),
            activeAssets=Count("id", filter=Q(status=FleetAssetStatus.ACTIVE)),
            inMaintenance=Count("id", filter=Q(status=FleetAssetStatus.IN_MAINTENANCE)),
            breakdowns=Count("id", filter=Q(status=FleetAssetStatus.BREAKDOWN)),
        )
        month_start = timezone.localdate().replace(day=1)
        costs = FleetCost.objects.filter(cost_date__gte=month_start).exclude(status=FleetCostStatus.REJECTED)
        totals = costs.aggregate(
            monthToDateCost=Sum("amount"),
            monthToDateFuel=Sum("amount", filter=Q(category=FleetCostCategory.FUEL)),
        )
        return {
            **assets,
            "monthToDateCost": totals["monthToDateCost"] or ZERO,
            "monthToDateFuel": totals["monthToDateFuel"] or ZERO,
            "pendingCosts": FleetCost.objects.filter(status=FleetCostStatus.PENDING).count(),
            "expiringDocuments": FleetService.expiring_documents().count(),
        }
