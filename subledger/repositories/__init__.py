from subledger.repositories.payment_event_repository import PaymentEventRepository

__all__ = [
    "PaymentEventRepository",
]
