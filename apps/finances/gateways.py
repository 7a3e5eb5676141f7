"""
Payment gateway integrations.

The booking workflow only needs one capability from a provider: charge a
tokenized card once per idempotency key. ``SquarePaymentGateway`` talks to
the Square Payments API, ``SandboxPaymentGateway`` emulates it locally.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache

import requests
from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

logger = logging.getLogger(__name__)

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}

SANDBOX_DECLINE_TOKEN = "cnon:card-nonce-declined"
SANDBOX_TIMEOUT_TOKEN = "sandbox:timeout"


class PaymentGatewayError(Exception):
    """The gateway established that no money moved."""


class PaymentDeclined(PaymentGatewayError):
    """The card or token was rejected."""


class PaymentOutcomeUnknown(Exception):
    """The charge may or may not have happened."""


class PaymentGatewayTimeout(PaymentOutcomeUnknown):
    pass


@dataclass(frozen=True)
class ChargeResult:
    transaction_id: str


class AbstractPaymentGateway(ABC):
    @abstractmethod
    def charge(
        self,
        amount_minor: int,
        currency: str,
        token: str,
        idempotency_key: str,
    ) -> ChargeResult:
        """
        Charge ``amount_minor`` cents against ``token``.

        Repeating a call with the same ``idempotency_key`` must not charge
        twice.

        Raises:
            PaymentDeclined: the charge was refused
            PaymentOutcomeUnknown: no definitive answer was received
        """


class SquarePaymentGateway(AbstractPaymentGateway):
    """Square Payments API client (``POST /v2/payments``)."""

    def __init__(
        self,
        access_token: str | None = None,
        location_id: str | None = None,
        environment: str | None = None,
        api_version: str | None = None,
        timeout: int | None = None,
    ):
        self.access_token = access_token or settings.SQUARE_ACCESS_TOKEN
        self.location_id = location_id or settings.SQUARE_LOCATION_ID
        self.environment = environment or settings.SQUARE_ENVIRONMENT
        self.api_version = api_version or settings.SQUARE_API_VERSION
        self.timeout = timeout or settings.SQUARE_TIMEOUT_SECONDS
        self.base_url = SQUARE_BASE_URLS.get(self.environment, SQUARE_BASE_URLS["sandbox"])

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Square-Version": self.api_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def charge(self, amount_minor, currency, token, idempotency_key) -> ChargeResult:
        logger.info(
            f"Charging {amount_minor} {currency} through Square (key {idempotency_key})"
        )
        payload = {
            "source_id": token,
            "idempotency_key": str(idempotency_key),
            "amount_money": {"amount": amount_minor, "currency": currency},
            "location_id": self.location_id,
            "autocomplete": True,
        }

        try:
            response = requests.post(
                f"{self.base_url}/v2/payments",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Square request timed out (key {idempotency_key}): {e}")
            raise PaymentGatewayTimeout(f"Payment provider timed out: {e}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error talking to Square (key {idempotency_key}): {e}")
            raise PaymentOutcomeUnknown(f"Payment provider unreachable: {e}")

        if response.status_code >= 500:
            logger.error(f"Square returned {response.status_code} (key {idempotency_key})")
            raise PaymentOutcomeUnknown(f"Payment provider error {response.status_code}")

        try:
            result = response.json()
        except ValueError:
            raise PaymentOutcomeUnknown("Payment provider returned an unreadable response")

        if response.status_code >= 400 or result.get("errors"):
            errors = result.get("errors") or [{}]
            message = errors[0].get("detail") or errors[0].get("code") or "Payment declined"
            logger.warning(f"Square declined charge (key {idempotency_key}): {message}")
            raise PaymentDeclined(message)

        payment = result.get("payment") or {}
        transaction_id = payment.get("id")
        if not transaction_id:
            raise PaymentOutcomeUnknown("Payment provider response has no payment id")

        logger.info(f"Square charge succeeded: {transaction_id}")
        return ChargeResult(transaction_id=transaction_id)


class SandboxPaymentGateway(AbstractPaymentGateway):
    """
    Local emulation of the Square charge call.

    Transaction ids are derived from the idempotency key, so a repeated key
    yields the same transaction like the real API does.
    """

    def charge(self, amount_minor, currency, token, idempotency_key) -> ChargeResult:
        logger.warning("Using emulated payment gateway (no Square access token configured)")

        if token == SANDBOX_DECLINE_TOKEN:
            raise PaymentDeclined("Card declined")
        if token == SANDBOX_TIMEOUT_TOKEN:
            raise PaymentGatewayTimeout("Emulated gateway timeout")

        digest = hashlib.sha256(str(idempotency_key).encode()).hexdigest()
        return ChargeResult(transaction_id=f"sandbox_{digest[:20]}")


@lru_cache(maxsize=None)
def _gateway_class(path: str):
    return import_string(path)


def get_payment_gateway() -> AbstractPaymentGateway:
    """Instantiate the gateway named by ``PAYMENT_GATEWAY_CLASS``."""
    return _gateway_class(settings.PAYMENT_GATEWAY_CLASS)()
