from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from bookastay.exceptions import UpstreamServiceError
from bookastay.network.paystack import PaystackClient


@pytest.fixture
def client() -> PaystackClient:
    return PaystackClient(secret_key="sk_test_123", base_url="https://api.paystack.co/", timeout=5)


def _reply(status_code: int, body: dict) -> Mock:
    res = Mock(status_code=status_code)
    res.json.return_value = body
    return res


@pytest.mark.unit
@patch("bookastay.network.paystack.requests.get")
def test_successful_transaction(mock_get: Mock, client: PaystackClient) -> None:
    mock_get.return_value = _reply(
        200,
        {
            "status": True,
            "data": {"status": "success", "amount": 22_500_000, "currency": "NGN", "gateway_response": "Approved"},
        },
    )

    result = client.verify_transaction("PSK-1")

    assert result.success is True
    assert result.amount == Decimal("225000")
    assert result.message == "Approved"
    url = mock_get.call_args.args[0]
    assert url == "https://api.paystack.co/transaction/verify/PSK-1"
    assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer sk_test_123"


@pytest.mark.unit
@patch("bookastay.network.paystack.requests.get")
def test_http_200_with_failed_transaction_is_not_success(mock_get: Mock, client: PaystackClient) -> None:
    """The API call succeeding is not enough; the transaction itself must be successful."""
    mock_get.return_value = _reply(
        200, {"status": True, "data": {"status": "abandoned", "amount": 22_500_000}}
    )

    assert client.verify_transaction("PSK-2").success is False


@pytest.mark.unit
@patch("bookastay.network.paystack.requests.get")
def test_unknown_reference_is_not_success(mock_get: Mock, client: PaystackClient) -> None:
    mock_get.return_value = _reply(400, {"status": False, "message": "Transaction reference not found"})

    result = client.verify_transaction("missing")

    assert result.success is False
    assert result.message == "Transaction reference not found"


@pytest.mark.unit
@patch("bookastay.network.paystack.requests.get")
def test_gateway_outage_raises(mock_get: Mock, client: PaystackClient) -> None:
    mock_get.side_effect = requests.ConnectionError("connection reset")
    with pytest.raises(UpstreamServiceError):
        client.verify_transaction("PSK-3")

    mock_get.side_effect = None
    mock_get.return_value = _reply(502, {})
    with pytest.raises(UpstreamServiceError):
        client.verify_transaction("PSK-3")


@pytest.mark.unit
def test_missing_secret_key_raises() -> None:
    with pytest.raises(UpstreamServiceError):
        PaystackClient(secret_key=None).verify_transaction("PSK-4")
