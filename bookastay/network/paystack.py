"""Paystack transaction verification."""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import quote, urljoin

import requests
import structlog

from bookastay.config import HTTP_TIMEOUT_SECONDS, PAYSTACK_BASE_URL, PAYSTACK_SECRET_KEY
from bookastay.exceptions import UpstreamServiceError
from bookastay.metrics import api_latency, api_requests

logger = structlog.get_logger(__name__)


@dataclass
class PaymentVerification:
    success: bool
    reference: str
    amount_minor: int = 0
    currency: str = "NGN"
    message: str = ""

    @property
    def amount(self) -> Decimal:
        """Paid amount in major units (kobo / 100)."""
        return Decimal(self.amount_minor) / 100


class PaystackClient:
    """
    Server-side verification of Paystack payment references.

    A payment counts as successful only when the API answers HTTP 200 and the
    transaction's own ``data.status`` is ``"success"``.
    """

    def __init__(
        self,
        secret_key: Optional[str] = PAYSTACK_SECRET_KEY,
        base_url: str = PAYSTACK_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.secret_key = secret_key
        self.base_url = base_url
        self.timeout = timeout

    def verify_transaction(self, reference: str) -> PaymentVerification:
        """
        Look up a transaction by reference.

        Args:
            reference: Paystack transaction reference

        Returns:
            PaymentVerification: ``success`` is False for any declined, abandoned or unknown payment

        Raises:
            UpstreamServiceError: No secret key configured, gateway unreachable or 5xx
        """
        if not self.secret_key:
            raise UpstreamServiceError("Payment gateway is not configured")

        url = urljoin(self.base_url, f"transaction/verify/{quote(reference, safe='')}")
        headers = {"Authorization": f"Bearer {self.secret_key}"}

        try:
            start_time = time.time()
            res = requests.get(url, headers=headers, timeout=self.timeout)
            api_latency.labels(service="paystack").observe(time.time() - start_time)
        except requests.RequestException as err:
            api_requests.labels(service="paystack", status_code="error").inc()
            logger.error("paystack_unreachable", reference=reference, error=str(err))
            raise UpstreamServiceError("Payment gateway is unreachable") from err

        api_requests.labels(service="paystack", status_code=str(res.status_code)).inc()

        if res.status_code >= 500:
            logger.error("paystack_server_error", reference=reference, status_code=res.status_code)
            raise UpstreamServiceError("Payment gateway returned an error")

        try:
            body: dict[str, Any] = res.json() or {}
        except ValueError:
            body = {}
        data = body.get("data") or {}

        success = res.status_code == 200 and data.get("status") == "success"
        verification = PaymentVerification(
            success=success,
            reference=reference,
            amount_minor=int(data.get("amount") or 0),
            currency=data.get("currency") or "NGN",
            message=data.get("gateway_response") or body.get("message") or "",
        )

        logger.info(
            "paystack_transaction_verified",
            reference=reference,
            success=success,
            status_code=res.status_code,
            gateway_status=data.get("status"),
            amount_minor=verification.amount_minor,
        )
        return verification
