from subledger.models.payment_event import PaymentEvent, PaymentEventStatus

__all__ = [
    "PaymentEvent",
    "PaymentEventStatus",
]
