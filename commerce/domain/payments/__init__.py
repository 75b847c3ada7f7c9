from commerce.domain.payments.models import (
    Currency,
    Payment,
    PaymentMethod,
    PaymentRequest,
    PaymentStatus,
)

__all__ = ["Currency", "Payment", "PaymentMethod", "PaymentRequest", "PaymentStatus"]
