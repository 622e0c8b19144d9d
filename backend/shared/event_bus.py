import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

GOODS_ACCEPTED = "procurement.goods_accepted"
INVOICE_MATCHED = "procurement.invoice_matched"
INVOICE_DISPUTED = "procurement.invoice_disputed"
OCR_JOB_FINISHED = "documents.ocr_job_finished"


class EventBus:
    """
    In-process event bus built on Django's Signal dispatcher.

    Handlers run synchronously inside the publisher's transaction, so a
    failing handler rolls the publishing operation back with it.
    """

    def __init__(self):
        self._signals = {}

    def register_event(self, event_name: str):
        if event_name not in self._signals:
            self._signals[event_name] = Signal()
            logger.debug("Event '%s' registered.", event_name)

    def publish(self, event_name: str, **kwargs):
        """
        Publish an event to every subscribed handler.

        Args:
            event_name: Dotted event name, e.g. ``procurement.goods_accepted``.
            **kwargs: Payload forwarded to handlers (usually ``instance``).

        Returns:
            list: ``(handler, result)`` pairs from the underlying signal.
        """
        if event_name not in self._signals:
            self.register_event(event_name)
            logger.warning("Event '%s' was published without being pre-registered.", event_name)

        logger.info("Publishing event '%s'", event_name)
        results = self._signals[event_name].send(sender=self.__class__, **kwargs)
        if not results:
            logger.debug("Event '%s' was published, but no handlers received it.", event_name)
        return results

    def subscribe(self, event_name: str, handler, *, dispatch_uid: str | None = None):
        self.register_event(event_name)
        self._signals[event_name].connect(handler, dispatch_uid=dispatch_uid or f"{event_name}:{handler.__module__}.{handler.__name__}")
        logger.info("Handler %s subscribed to event '%s'.", handler.__name__, event_name)


event_bus = EventBus()
for _name in (GOODS_ACCEPTED, INVOICE_MATCHED, INVOICE_DISPUTED, OCR_JOB_FINISHED):
    event_bus.register_event(_name)
