from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import commerce.persistence.db as db
from commerce.domain.orders.lifecycle import OrderLifecycle
from commerce.domain.orders.models import Address, OrderItemRequest
from commerce.domain.payments.lifecycle import PaymentLifecycle
from commerce.domain.payments.models import PaymentMethod, PaymentRequest
from commerce.domain.payments.outcomes import FixedOutcomeSource
from commerce.persistence.models import Base
from commerce.persistence.repositories import InMemoryOrderRepository, InMemoryPaymentRepository

TODAY = date(2026, 1, 15)


@pytest.fixture()
def configure_test_engine(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'test.sqlite'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(db, "SessionLocal", TestSessionLocal)

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session(configure_test_engine):
    with db.session_scope() as s:
        yield s


@pytest.fixture()
def address() -> Address:
    return Address(
        street="42 Harbour Road",
        city="Portland",
        state="OR",
        postal_code="97201",
        country="US",
    )


@pytest.fixture()
def items() -> list[OrderItemRequest]:
    return [
        OrderItemRequest(product_id="sku-mug", quantity=2, unit_price=Decimal("25.00")),
        OrderItemRequest(product_id="sku-kettle", quantity=1, unit_price=Decimal("50.00"), discount=10),
    ]


@pytest.fixture()
def order_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture()
def orders(order_repo) -> OrderLifecycle:
    return OrderLifecycle(order_repo)


@pytest.fixture()
def payment_repo() -> InMemoryPaymentRepository:
    return InMemoryPaymentRepository()


@pytest.fixture()
def payments(payment_repo) -> PaymentLifecycle:
    return PaymentLifecycle(payment_repo, FixedOutcomeSource(True), today=TODAY)


@pytest.fixture()
def card_request() -> PaymentRequest:
    return PaymentRequest(
        order_id="order-1",
        user_id="user-1",
        amount=Decimal("100.00"),
        currency="USD",
        method=PaymentMethod.CREDIT_CARD,
        card_number="4111 1111 1111 1111",
        card_expiry="12/30",
        card_cvv="123",
        card_holder_name="Ada Lovelace",
    )
