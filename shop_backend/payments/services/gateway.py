# payments/services/gateway.py
"""
PAYMENT GATEWAY ADAPTERS

A provider tag (the key under settings.PAYMENTS, e.g. "PHONEPE") resolves to a
gateway class via its "CLASS" dotted path. Every gateway offers:

- initiate(...) -> RedirectHandle      start a hosted checkout for an order
- confirm(raw_body, signature) -> PaymentConfirmation
                                       verify + parse a provider callback
- refund(...) -> RefundResult          refund a captured payment

HostedCheckoutGateway speaks a plain JSON-over-HTTPS protocol:
- POST {BASE_URL}/pg/v1/pay     {"reference", "amount" (minor units), "currency",
                                 "callbackUrl", "redirectUrl"}
                                -> {"success": true, "data": {"redirectUrl", "transactionId"}}
- POST {BASE_URL}/pg/v1/refund  {"reference", "amount"} -> {"success": true, "data": {...}}
- callbacks are JSON {"reference", "status": SUCCESS|FAILED|PENDING, "amount", ...}
  signed with hex(HMAC-SHA256(SECRET_KEY, raw_body)) in the X-VERIFY header.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "HTTP_X_VERIFY"

CONFIRMED_PAID = "PAID"
CONFIRMED_FAILED = "FAILED"
CONFIRMED_PENDING = "PENDING"


class PaymentGatewayError(RuntimeError):
    pass


class PaymentSignatureError(PaymentGatewayError):
    pass


@dataclass(frozen=True)
class RedirectHandle:
    reference: str
    redirect_url: str
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentConfirmation:
    reference: str
    status: str
    amount_minor: Optional[int] = None
    payload: dict = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.status == CONFIRMED_PAID


@dataclass(frozen=True)
class RefundResult:
    reference: str
    accepted: bool
    payload: dict = field(default_factory=dict)


def to_minor_units(amount) -> int:
    try:
        major = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid Decimal") from exc
    return int((major * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def sign_payload(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body or b"", hashlib.sha256).hexdigest()


# ============================================================
# BASE
# ============================================================


class PaymentGateway:
    def __init__(self, *, provider: str, config: dict):
        self.provider = provider
        self.config = config or {}

    def initiate(self, *, reference: str, amount, currency: str, customer_email: str = "") -> RedirectHandle:
        raise NotImplementedError

    def confirm(self, *, raw_body: bytes, signature: Optional[str]) -> PaymentConfirmation:
        raise NotImplementedError

    def refund(self, *, reference: str, amount) -> RefundResult:
        raise NotImplementedError


# ============================================================
# HOSTED CHECKOUT (HTTP)
# ============================================================


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


class HostedCheckoutGateway(PaymentGateway):
    STATUS_MAP = {
        "SUCCESS": CONFIRMED_PAID,
        "COMPLETED": CONFIRMED_PAID,
        "PAID": CONFIRMED_PAID,
        "FAILED": CONFIRMED_FAILED,
        "DECLINED": CONFIRMED_FAILED,
        "PENDING": CONFIRMED_PENDING,
    }

    @property
    def secret_key(self) -> str:
        secret = (self.config.get("SECRET_KEY") or "").strip()
        if not secret:
            raise PaymentGatewayError(f"{self.provider} SECRET_KEY is not configured")
        return secret

    @property
    def base_url(self) -> str:
        base = (self.config.get("BASE_URL") or "").strip().rstrip("/")
        if not base:
            raise PaymentGatewayError(f"{self.provider} BASE_URL is not configured")
        return base

    def _request_json(self, method: str, path: str, *, body: Optional[dict] = None) -> dict[str, Any]:
        data = None
        headers = {"Accept": "application/json"}
        if body is not None:
            data = json.dumps(body, ensure_ascii=False).encode("utf-8")
            headers["Content-Type"] = "application/json"
            headers["X-VERIFY"] = sign_payload(self.secret_key, data)

        req = Request(f"{self.base_url}{path}", data=data, headers=headers, method=method)
        timeout = int(self.config.get("TIMEOUT") or 25)

        try:
            with urlopen(req, timeout=timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            preview = _safe_preview(e.read().decode("utf-8", errors="replace"))
            raise PaymentGatewayError(f"{self.provider} HTTPError: {e.code} {preview}") from e
        except URLError as e:
            raise PaymentGatewayError(f"{self.provider} URLError: {e}") from e
        except OSError as e:
            raise PaymentGatewayError(f"{self.provider} request failed: {e}") from e

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise PaymentGatewayError(
                f"{self.provider} returned non-JSON: {_safe_preview(raw)}"
            ) from e

        if not isinstance(parsed, dict):
            raise PaymentGatewayError(f"{self.provider} returned a non-object response")
        return parsed

    def initiate(self, *, reference: str, amount, currency: str, customer_email: str = "") -> RedirectHandle:
        payload = {
            "reference": str(reference).strip(),
            "amount": to_minor_units(amount),
            "currency": currency,
            "callbackUrl": (self.config.get("CALLBACK_URL") or "").strip(),
            "redirectUrl": (self.config.get("REDIRECT_URL") or "").strip(),
        }
        if customer_email:
            payload["customerEmail"] = customer_email

        parsed = self._request_json("POST", "/pg/v1/pay", body=payload)
        if not parsed.get("success"):
            raise PaymentGatewayError(parsed.get("message") or f"{self.provider} rejected checkout")

        data = parsed.get("data") or {}
        redirect_url = (data.get("redirectUrl") or "").strip()
        if not redirect_url:
            raise PaymentGatewayError(f"{self.provider} did not return a redirect URL")

        return RedirectHandle(reference=payload["reference"], redirect_url=redirect_url, payload=data)

    def confirm(self, *, raw_body: bytes, signature: Optional[str]) -> PaymentConfirmation:
        if not signature:
            raise PaymentSignatureError("Missing callback signature")

        computed = sign_payload(self.secret_key, raw_body)
        if not hmac.compare_digest(computed, str(signature).strip()):
            raise PaymentSignatureError("Invalid callback signature")

        try:
            body = json.loads((raw_body or b"").decode("utf-8"))
        except ValueError as exc:
            raise PaymentGatewayError("Callback body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise PaymentGatewayError("Callback body must be a JSON object")

        reference = str(body.get("reference") or "").strip()
        if not reference:
            raise PaymentGatewayError("Callback is missing the payment reference")

        raw_status = str(body.get("status") or "").strip().upper()
        status = self.STATUS_MAP.get(raw_status)
        if status is None:
            raise PaymentGatewayError(f"Unknown callback status: {raw_status or '<empty>'}")

        amount = body.get("amount")
        try:
            amount_minor = int(amount) if amount is not None else None
        except (TypeError, ValueError):
            amount_minor = None

        return PaymentConfirmation(
            reference=reference,
            status=status,
            amount_minor=amount_minor,
            payload=body,
        )

    def refund(self, *, reference: str, amount) -> RefundResult:
        parsed = self._request_json(
            "POST",
            "/pg/v1/refund",
            body={"reference": str(reference).strip(), "amount": to_minor_units(amount)},
        )
        return RefundResult(
            reference=reference,
            accepted=bool(parsed.get("success")),
            payload=parsed.get("data") or {},
        )


# ============================================================
# REGISTRY
# ============================================================


def get_payment_gateway(provider: str) -> PaymentGateway:
    tag = (provider or "").strip().upper()
    payments = getattr(settings, "PAYMENTS", {}) or {}
    config = payments.get(tag)
    if not isinstance(config, dict):
        raise PaymentGatewayError(f"Unknown payment provider: {tag or '<empty>'}")

    dotted = config.get("CLASS") or "payments.services.gateway.HostedCheckoutGateway"
    gateway_cls = import_string(dotted)
    return gateway_cls(provider=tag, config=config)
