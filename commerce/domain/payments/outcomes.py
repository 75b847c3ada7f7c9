"""Settlement outcome sources.

Payment processing has no network round-trip; whether an attempt settles is
decided by one of these sources, injected into the payment lifecycle.
"""

from __future__ import annotations

import random
from typing import Protocol

from commerce.core.config import Settings
from commerce.domain.payments.models import Payment


class PaymentOutcomeSource(Protocol):
    def succeeds(self, payment: Payment) -> bool: ...


class RandomOutcomeSource:
    """Accepts roughly ``success_ratio`` of attempts; reproducible when seeded."""

    def __init__(self, success_ratio: float = 0.95, seed: int | None = None):
        if not 0.0 <= success_ratio <= 1.0:
            raise ValueError(f"success_ratio must be within [0, 1], got {success_ratio}")
        self.success_ratio = success_ratio
        self._rng = random.Random(seed)

    def succeeds(self, payment: Payment) -> bool:
        return self._rng.random() < self.success_ratio


class FixedOutcomeSource:
    def __init__(self, result: bool = True):
        self.result = result

    def succeeds(self, payment: Payment) -> bool:
        return self.result


def outcome_source_from_settings(settings: Settings) -> RandomOutcomeSource:
    return RandomOutcomeSource(
        success_ratio=settings.payment_success_ratio,
        seed=settings.payment_outcome_seed,
    )
