from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from apps.audit.utils import log_audit_event
from apps.notifications.services import notify_users
from shared.exceptions import DomainError, InvalidTransition

from ..models import RequestForQuotation, RFQItem, RFQResponse, RFQResponseItem, RFQVendorInvite, Vendor

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _vendor_users(vendors):
    return [vendor.user for vendor in vendors if vendor.user_id and vendor.user.is_active]


class RFQService:
    """
    Request-for-quotation lifecycle.

    DRAFT → PUBLISHED → CLOSED/EVALUATING → AWARDED, with CANCELLED
    reachable until an award. Invited vendors quote once per RFQ while it is
    published and before its deadline.
    """

    @staticmethod
    def _lock(rfq: RequestForQuotation) -> RequestForQuotation:
        return RequestForQuotation.objects.select_for_update().get(pk=rfq.pk)

    @staticmethod
    def _require_status(rfq: RequestForQuotation, allowed, action: str):
        if rfq.status not in allowed:
            raise InvalidTransition(f"RFQ {rfq.rfq_number} cannot be {action} while {rfq.status}.")

    @staticmethod
    def _write_items(rfq: RequestForQuotation, items: list[dict]):
        for item in items:
            RFQItem.objects.create(rfq=rfq, **item)

    @staticmethod
    @transaction.atomic
    def create(*, user, items: list[dict], **fields) -> RequestForQuotation:
        if not items:
            raise InvalidTransition("An RFQ needs at least one item.")
        rfq = RequestForQuotation.objects.create(created_by=user, **fields)
        RFQService._write_items(rfq, items)
        log_audit_event(
            user=user,
            action="RFQ_CREATED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"RFQ {rfq.rfq_number} created.",
        )
        return rfq

    @staticmethod
    @transaction.atomic
    def update(rfq: RequestForQuotation, *, user, items: list[dict] | None = None, **fields) -> RequestForQuotation:
        rfq = RFQService._lock(rfq)
        RFQService._require_status(rfq, {RequestForQuotation.Status.DRAFT}, "edited")
        for attr, value in fields.items():
            setattr(rfq, attr, value)
        rfq.save()
        if items is not None:
            if not items:
                raise InvalidTransition("An RFQ needs at least one item.")
            rfq.items.all().delete()
            RFQService._write_items(rfq, items)
        return rfq

    @staticmethod
    @transaction.atomic
    def publish(rfq: RequestForQuotation, *, user) -> RequestForQuotation:
        rfq = RFQService._lock(rfq)
        RFQService._require_status(rfq, {RequestForQuotation.Status.DRAFT}, "published")
        if rfq.response_deadline <= timezone.now():
            raise InvalidTransition("The response deadline must be in the future.")
        rfq.status = RequestForQuotation.Status.PUBLISHED
        rfq.issue_date = timezone.now()
        rfq.save(update_fields=["status", "issue_date", "updated_at"])
        log_audit_event(
            user=user,
            action="RFQ_PUBLISHED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"RFQ {rfq.rfq_number} published.",
        )
        invited = [invite.vendor for invite in rfq.invites.select_related("vendor__user")]
        notify_users(
            _vendor_users(invited),
            title=f"Request for quotation {rfq.rfq_number}",
            body=f"{rfq.title}. Responses close {rfq.response_deadline:%d %b %Y %H:%M}.",
            group_key="procurement_rfq_published",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
        )
        logger.info("RFQ %s published by %s", rfq.rfq_number, user)
        return rfq

    @staticmethod
    @transaction.atomic
    def close(rfq: RequestForQuotation, *, user) -> RequestForQuotation:
        rfq = RFQService._lock(rfq)
        RFQService._require_status(rfq, {RequestForQuotation.Status.PUBLISHED}, "closed")
        rfq.status = RequestForQuotation.Status.CLOSED
        rfq.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="RFQ_CLOSED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"RFQ {rfq.rfq_number} closed to responses.",
        )
        return rfq

    @staticmethod
    @transaction.atomic
    def cancel(rfq: RequestForQuotation, *, user) -> RequestForQuotation:
        rfq = RFQService._lock(rfq)
        RFQService._require_status(
            rfq,
            {
                RequestForQuotation.Status.DRAFT,
                RequestForQuotation.Status.PUBLISHED,
                RequestForQuotation.Status.CLOSED,
                RequestForQuotation.Status.EVALUATING,
            },
            "cancelled",
        )
        rfq.status = RequestForQuotation.Status.CANCELLED
        rfq.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="RFQ_CANCELLED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"RFQ {rfq.rfq_number} cancelled.",
        )
        return rfq

    @staticmethod
    @transaction.atomic
    def invite_vendors(rfq: RequestForQuotation, *, user, vendors: list[Vendor]) -> int:
        """Invite vendors; already invited ones are skipped. Returns the number of new invites."""
        rfq = RFQService._lock(rfq)
        RFQService._require_status(rfq, RequestForQuotation.INVITABLE_STATUSES, "opened to more vendors")
        if not vendors:
            raise InvalidTransition("Select at least one vendor to invite.")
        blocked = [vendor.vendor_code for vendor in vendors if not vendor.can_transact]
        if blocked:
            raise InvalidTransition(f"Vendors {', '.join(blocked)} are not allowed to quote.")
        added = []
        for vendor in vendors:
            _, created = RFQVendorInvite.objects.get_or_create(rfq=rfq, vendor=vendor)
            if created:
                added.append(vendor)
        if added:
            log_audit_event(
                user=user,
                action="RFQ_VENDORS_INVITED",
                entity_type="RequestForQuotation",
                entity_id=rfq.id,
                description=f"{len(added)} vendor(s) invited to RFQ {rfq.rfq_number}.",
                after={"vendors": [vendor.vendor_code for vendor in added]},
            )
        if added and rfq.status == RequestForQuotation.Status.PUBLISHED:
            notify_users(
                _vendor_users(added),
                title=f"Request for quotation {rfq.rfq_number}",
                body=rfq.title,
                group_key="procurement_rfq_published",
                entity_type="RequestForQuotation",
                entity_id=rfq.id,
            )
        return len(added)

    @staticmethod
    def _write_response_items(rfq: RequestForQuotation, response: RFQResponse, items: list[dict]) -> Decimal:
        if not items:
            raise InvalidTransition("A quotation needs at least one priced item.")
        total = ZERO
        for item in items:
            rfq_item = item["rfq_item"]
            if rfq_item.rfq_id != rfq.pk:
                raise DomainError(f"Item {rfq_item.item_name} is not part of RFQ {rfq.rfq_number}.", code="invalid_item")
            line = RFQResponseItem.objects.create(response=response, **item)
            total += line.total_price
        return total

    @staticmethod
    @transaction.atomic
    def submit_response(rfq: RequestForQuotation, *, user, vendor: Vendor, items: list[dict], **fields) -> RFQResponse:
        rfq = RFQService._lock(rfq)
        if rfq.status != RequestForQuotation.Status.PUBLISHED:
            raise InvalidTransition(f"RFQ {rfq.rfq_number} is not open for responses.")
        if rfq.response_deadline < timezone.now():
            raise InvalidTransition(f"The response deadline for RFQ {rfq.rfq_number} has passed.")
        invite = RFQVendorInvite.objects.filter(rfq=rfq, vendor=vendor).first()
        if invite is None:
            raise PermissionDenied("Your company was not invited to this RFQ.")
        if RFQResponse.objects.filter(rfq=rfq, vendor=vendor).exists():
            raise InvalidTransition("A response already exists; update it instead.", code="response_exists")

        response = RFQResponse.objects.create(rfq=rfq, vendor=vendor, created_by=user, **fields)
        response.total_amount = RFQService._write_response_items(rfq, response, items)
        response.save(update_fields=["total_amount", "updated_at"])
        invite.status = RFQVendorInvite.Status.RESPONDED
        invite.save(update_fields=["status"])
        log_audit_event(
            user=user,
            action="RFQ_RESPONSE_SUBMITTED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"{vendor.company_name} quoted {response.currency} {response.total_amount} on RFQ {rfq.rfq_number}.",
        )
        logger.info("Vendor %s responded to RFQ %s", vendor.vendor_code, rfq.rfq_number)
        return response

    @staticmethod
    @transaction.atomic
    def update_response(response: RFQResponse, *, user, items: list[dict] | None = None, **fields) -> RFQResponse:
        response = RFQResponse.objects.select_for_update().select_related("rfq").get(pk=response.pk)
        if response.status in RFQResponse.FINAL_STATUSES:
            raise InvalidTransition("This response can no longer be updated.")
        for attr, value in fields.items():
            setattr(response, attr, value)
        if items is not None:
            response.items.all().delete()
            response.total_amount = RFQService._write_response_items(response.rfq, response, items)
        response.save()
        return response

    @staticmethod
    @transaction.atomic
    def evaluate(rfq: RequestForQuotation, *, user, evaluations: list[dict]) -> RequestForQuotation:
        """
        Score responses and move the RFQ to EVALUATING.

        Each evaluation carries ``response`` plus any of the scores, notes and
        a review status; selecting a winner is left to ``award``.
        """
        rfq = RFQService._lock(rfq)
        RFQService._require_status(
            rfq,
            {
                RequestForQuotation.Status.PUBLISHED,
                RequestForQuotation.Status.CLOSED,
                RequestForQuotation.Status.EVALUATING,
            },
            "evaluated",
        )
        now = timezone.now()
        for evaluation in evaluations:
            evaluation = dict(evaluation)
            response = evaluation.pop("response")
            if response.rfq_id != rfq.pk:
                raise DomainError(f"Response {response.pk} does not belong to RFQ {rfq.rfq_number}.", code="invalid_response")
            for attr, value in evaluation.items():
                setattr(response, attr, value)
            response.evaluated_at = now
            response.save()
        rfq.status = RequestForQuotation.Status.EVALUATING
        rfq.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="RFQ_EVALUATED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"{len(evaluations)} response(s) evaluated on RFQ {rfq.rfq_number}.",
        )
        return rfq

    @staticmethod
    @transaction.atomic
    def award(rfq: RequestForQuotation, *, user, response: RFQResponse) -> RequestForQuotation:
        rfq = RFQService._lock(rfq)
        if response.rfq_id != rfq.pk:
            raise DomainError(f"Response {response.pk} does not belong to RFQ {rfq.rfq_number}.", code="invalid_response")
        RFQService._require_status(
            rfq,
            {
                RequestForQuotation.Status.PUBLISHED,
                RequestForQuotation.Status.CLOSED,
                RequestForQuotation.Status.EVALUATING,
            },
            "awarded",
        )
        rfq.responses.exclude(pk=response.pk).update(status=RFQResponse.Status.REJECTED, updated_at=timezone.now())
        response.status = RFQResponse.Status.SELECTED
        response.save(update_fields=["status", "updated_at"])
        rfq.status = RequestForQuotation.Status.AWARDED
        rfq.selected_response = response
        rfq.save(update_fields=["status", "selected_response", "updated_at"])
        log_audit_event(
            user=user,
            action="RFQ_AWARDED",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
            description=f"RFQ {rfq.rfq_number} awarded to {response.vendor.company_name}.",
            after={"response": response.pk, "total_amount": str(response.total_amount)},
        )
        notify_users(
            _vendor_users([response.vendor]),
            title=f"RFQ {rfq.rfq_number} awarded to you",
            body=rfq.title,
            group_key="procurement_rfq_awarded",
            entity_type="RequestForQuotation",
            entity_id=rfq.id,
        )
        logger.info("RFQ %s awarded to %s", rfq.rfq_number, response.vendor.vendor_code)
        return rfq
