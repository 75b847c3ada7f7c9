from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pydantic import ValidationError as SchemaError

from commerce.core.errors import CommerceError, ValidationError
from commerce.core.logging import configure_logging
from commerce.domain.cards import is_valid_cvv, is_valid_expiry, is_valid_luhn, validate_card_details
from commerce.domain.orders.lifecycle import OrderLifecycle
from commerce.domain.orders.models import CreateOrderRequest
from commerce.domain.payments.fees import calculate_processing_fee
from commerce.domain.payments.models import PaymentMethod, PaymentRequest
from commerce.persistence.repositories import InMemoryOrderRepository


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Order and payment lifecycle tools")
    parser.add_argument("--log-level", default=None)
    top = parser.add_subparsers(dest="command", required=True)

    quote = top.add_parser("quote", help="Validate an order request and print its totals")
    quote.add_argument("path", help="JSON file with user_id, items, shipping_address, notes; '-' for stdin")

    card = top.add_parser("check-card", help="Run the card checks without charging anything")
    card.add_argument("--number", required=True)
    card.add_argument("--expiry", required=True, help="MM/YY")
    card.add_argument("--cvv", required=True)
    card.add_argument("--holder", required=True)

    fee = top.add_parser("fee", help="Processing fee for an amount and payment method")
    fee.add_argument("amount")
    fee.add_argument("method", choices=[m.value for m in PaymentMethod], type=str.upper)

    delivery = top.add_parser("delivery", help="Estimated delivery date for a shipping method")
    delivery.add_argument("method", help="overnight | express | standard")

    top.add_parser("init-db", help="Create database tables")

    return parser


def _read_json(path: str) -> dict:
    try:
        if path == "-":
            return json.load(sys.stdin)
        return json.loads(Path(path).read_text())
    except OSError as exc:
        raise ValidationError(f"cannot read {path}: {exc.strerror or exc}") from exc
    except ValueError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc


def _quote(args: argparse.Namespace) -> dict:
    request = CreateOrderRequest.model_validate(_read_json(args.path))
    order = OrderLifecycle(InMemoryOrderRepository()).create_order(
        user_id=request.user_id,
        items=request.items,
        shipping_address=request.shipping_address,
        notes=request.notes,
    )
    return {
        "status": order.status.value,
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount": item.discount,
            }
            for item in order.items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping": order.shipping,
        "total": order.total,
    }


def _check_card(args: argparse.Namespace) -> dict:
    request = PaymentRequest(
        order_id="-",
        user_id="-",
        amount=Decimal("0.01"),
        currency="USD",
        method=PaymentMethod.CREDIT_CARD,
        card_number=args.number,
        card_expiry=args.expiry,
        card_cvv=args.cvv,
        card_holder_name=args.holder,
    )
    checks = {
        "luhn": is_valid_luhn(args.number),
        "expiry": is_valid_expiry(args.expiry),
        "cvv": is_valid_cvv(args.cvv),
    }
    try:
        validate_card_details(request)
    except ValidationError as exc:
        return {"valid": False, "reason": str(exc), "checks": checks}
    return {"valid": True, "reason": None, "checks": checks}


def _fee(args: argparse.Namespace) -> dict:
    try:
        amount = Decimal(args.amount)
    except InvalidOperation as exc:
        raise ValidationError(f"amount is not a decimal: {args.amount!r}") from exc
    method = PaymentMethod(args.method)
    return {"amount": amount, "method": method.value, "fee": calculate_processing_fee(amount, method)}


def _delivery(args: argparse.Namespace) -> dict:
    return {"method": args.method, "estimated_delivery": OrderLifecycle.estimated_delivery(args.method).isoformat()}


def _init_db(_: argparse.Namespace) -> dict:
    from commerce.persistence.db import init_db

    init_db()
    return {"status": "ok"}


COMMANDS = {
    "quote": _quote,
    "check-card": _check_card,
    "fee": _fee,
    "delivery": _delivery,
    "init-db": _init_db,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.error("unsupported command")
        return 2

    try:
        result = handler(args)
    except (CommerceError, SchemaError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return 1 if result.get("valid") is False else 0


if __name__ == "__main__":
    raise SystemExit(main())
