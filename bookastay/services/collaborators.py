"""
Gateway clients shared by the API and the scheduler.

Built once at startup by ``build_collaborators()`` and handed to services as
an argument; nothing in the service layer constructs its own client.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from bookastay.network.mailer import Mailer
from bookastay.network.paystack import PaystackClient
from bookastay.network.shuftipro import ShuftiProClient
from bookastay.network.storage import S3DocumentStore

logger = structlog.get_logger(__name__)


@dataclass
class Collaborators:
    payments: PaystackClient
    identity: ShuftiProClient
    documents: S3DocumentStore
    mailer: Mailer


def build_collaborators() -> Collaborators:
    collaborators = Collaborators(
        payments=PaystackClient(),
        identity=ShuftiProClient(),
        documents=S3DocumentStore(),
        mailer=Mailer(),
    )
    logger.info(
        "collaborators_initialized",
        payments_configured=bool(collaborators.payments.secret_key),
        identity_configured=collaborators.identity.configured,
        bucket=collaborators.documents.bucket_name,
        smtp_host=collaborators.mailer.host,
    )
    return collaborators
