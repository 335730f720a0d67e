"""
Shufti Pro identity verification client.

Requests are authenticated with HTTP Basic auth (client id and secret key).
The ID document is sent inline as a base64 data URI, downloaded from the
URL it was stored at when the guest uploaded it.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urljoin

import requests
import structlog

from bookastay.config import (
    HTTP_TIMEOUT_SECONDS,
    SHUFTI_PRO_BASE_URL,
    SHUFTI_PRO_CALLBACK_URL,
    SHUFTI_PRO_CLIENT_ID,
    SHUFTI_PRO_COUNTRY,
    SHUFTI_PRO_REDIRECT_URL,
    SHUFTI_PRO_SECRET_KEY,
)
from bookastay.exceptions import UpstreamServiceError
from bookastay.metrics import api_latency, api_requests

logger = structlog.get_logger(__name__)

EVENT_STATUS = {
    "verification.accepted": "verified",
    "verification.declined": "declined",
    "verification.cancelled": "cancelled",
}


def status_for_event(event: Optional[str]) -> str:
    """Map a Shufti Pro event name to a verification status; unknown events stay pending."""
    return EVENT_STATUS.get(event or "", "pending")


@dataclass
class VerificationRequest:
    reference: str
    verification_url: str
    event: str = "request.pending"


@dataclass
class VerificationOutcome:
    reference: Optional[str]
    event: Optional[str]
    status: str
    declined_reason: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


class ShuftiProClient:
    def __init__(
        self,
        client_id: Optional[str] = SHUFTI_PRO_CLIENT_ID,
        secret_key: Optional[str] = SHUFTI_PRO_SECRET_KEY,
        base_url: str = SHUFTI_PRO_BASE_URL,
        callback_url: Optional[str] = SHUFTI_PRO_CALLBACK_URL,
        redirect_url: Optional[str] = SHUFTI_PRO_REDIRECT_URL,
        country: str = SHUFTI_PRO_COUNTRY,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.client_id = client_id
        self.secret_key = secret_key
        self.base_url = base_url
        self.callback_url = callback_url
        self.redirect_url = redirect_url
        self.country = country
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.secret_key)

    def _post(self, path: str, payload: dict[str, Any]) -> requests.Response:
        if not self.configured:
            raise UpstreamServiceError("Identity verification is not configured")

        try:
            start_time = time.time()
            res = requests.post(
                urljoin(self.base_url, path),
                json=payload,
                auth=(self.client_id or "", self.secret_key or ""),
                timeout=self.timeout,
            )
            api_latency.labels(service="shuftipro").observe(time.time() - start_time)
        except requests.RequestException as err:
            api_requests.labels(service="shuftipro", status_code="error").inc()
            raise UpstreamServiceError("Identity verification service is unreachable") from err

        api_requests.labels(service="shuftipro", status_code=str(res.status_code)).inc()
        return res

    def _document_proof(self, document_url: str) -> str:
        try:
            res = requests.get(document_url, timeout=self.timeout)
            res.raise_for_status()
        except requests.RequestException as err:
            raise UpstreamServiceError("Could not download the ID document") from err

        content_type = res.headers.get("Content-Type", "image/jpeg").split(";")[0]
        encoded = base64.b64encode(res.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    def create_verification(
        self,
        reference: str,
        email: str,
        document_url: str,
        id_type: Optional[str] = None,
        name: Optional[str] = None,
    ) -> VerificationRequest:
        """
        Start an image-only document verification.

        Args:
            reference: Unique reference for this verification
            email: Guest email
            document_url: URL of the stored ID document
            id_type: Shufti Pro document type (defaults to "id_card")
            name: Guest full name for name matching

        Returns:
            VerificationRequest: Hosted verification URL and the reference Shufti Pro echoed

        Raises:
            UpstreamServiceError: Not configured, unreachable, or no verification URL returned
        """
        redirect_url = f"{self.redirect_url}?reference={reference}" if self.redirect_url else None
        payload: dict[str, Any] = {
            "reference": reference,
            "country": self.country,
            "language": "EN",
            "email": email,
            "callback_url": self.callback_url,
            "redirect_url": redirect_url,
            "verification_mode": "image_only",
            "allow_online": "1",
            "allow_offline": "0",
            "document": {
                "proof": self._document_proof(document_url),
                "supported_types": [id_type or "id_card"],
                "name": {"full_name": name or ""},
                "fetch_enhanced_data": "1",
            },
        }

        res = self._post("", payload)
        try:
            body: dict[str, Any] = res.json() or {}
        except ValueError:
            body = {}

        if res.status_code != 200 or not body.get("verification_url"):
            error = body.get("error")
            message = error.get("message") if isinstance(error, dict) else body.get("message")
            logger.error(
                "shuftipro_request_rejected",
                reference=reference,
                status_code=res.status_code,
                error=message,
            )
            raise UpstreamServiceError(message or "Identity verification request was rejected")

        logger.info(
            "shuftipro_verification_created",
            reference=reference,
            verification_event=body.get("event"),
        )
        return VerificationRequest(
            reference=body.get("reference") or reference,
            verification_url=body["verification_url"],
            event=body.get("event") or "request.pending",
        )

    def check_status(self, reference: str) -> dict[str, Any]:
        """
        Ask Shufti Pro for the current state of a verification.

        Returns:
            dict: reference, event, status, verified, pending, declined_reason, data
        """
        res = self._post("status", {"reference": reference})
        if res.status_code != 200:
            raise UpstreamServiceError(f"Identity verification status check failed: HTTP {res.status_code}")

        body = res.json() or {}
        event = body.get("event") or "unknown"
        return {
            "reference": reference,
            "event": event,
            "status": status_for_event(event),
            "verified": event == "verification.accepted",
            "pending": event == "request.pending",
            "declined_reason": body.get("declined_reason"),
            "data": body.get("verification_data") or {},
        }

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """
        Check a callback signature: sha256 hex digest of the raw body followed by the secret key.
        """
        if not signature or not self.secret_key:
            return False
        expected = hashlib.sha256(raw_body + self.secret_key.encode("utf-8")).hexdigest()
        return hmac.compare_digest(expected, signature.strip())

    @staticmethod
    def parse_callback(payload: dict[str, Any]) -> VerificationOutcome:
        event = payload.get("event")
        return VerificationOutcome(
            reference=payload.get("reference"),
            event=event,
            status=status_for_event(event),
            declined_reason=payload.get("declined_reason"),
            data=payload.get("verification_data") or {},
        )
