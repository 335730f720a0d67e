from unittest.mock import MagicMock, patch

import pytest

from bookastay.network.mailer import Attachment, Mailer


@pytest.mark.unit
@patch("bookastay.network.mailer.smtplib.SMTP_SSL")
def test_send_over_ssl_with_attachment(mock_smtp_ssl: MagicMock) -> None:
    smtp = mock_smtp_ssl.return_value.__enter__.return_value
    mailer = Mailer(host="smtp.example.com", port=465, username="user", password="pw", use_ssl=True)

    mailer.send(
        to="ada@example.com",
        subject="Confirmed",
        body="Hello",
        attachments=[Attachment(filename="receipt.pdf", content=b"%PDF-1.4")],
    )

    mock_smtp_ssl.assert_called_once_with("smtp.example.com", 465, timeout=mailer.timeout)
    smtp.login.assert_called_once_with("user", "pw")
    message = smtp.send_message.call_args.args[0]
    assert message["To"] == "ada@example.com"
    assert message["Subject"] == "Confirmed"
    assert [part.get_filename() for part in message.iter_attachments()] == ["receipt.pdf"]


@pytest.mark.unit
@patch("bookastay.network.mailer.smtplib.SMTP")
def test_send_with_starttls_and_no_login(mock_smtp: MagicMock) -> None:
    mailer = Mailer(host="localhost", port=587, username=None, password=None, use_ssl=False)

    mailer.send(to="owner@example.com", subject="New booking", body="Details")

    smtp = mock_smtp.return_value
    smtp.starttls.assert_called_once()
    smtp.__enter__.return_value.login.assert_not_called()
    smtp.__enter__.return_value.send_message.assert_called_once()
