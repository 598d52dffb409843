import json
import logging

import pytest

from app.infrastructure.audit.std_logger import StdAuditLogger
from app.infrastructure.sms.mock_sender import MockSmsSender
from app.utils import hash_phone_number


def test_mock_sender_always_delivers():
    assert MockSmsSender().send_otp("9876543210", "1234") is True


def test_twilio_sender_formats_number_and_reports_failures():
    pytest.importorskip("twilio")
    from twilio.base.exceptions import TwilioException
    from app.infrastructure.sms.twilio_sender import TwilioSmsSender

    class FakeMessages:
        def __init__(self):
            self.calls = []
            self.fail = False

        def create(self, body, from_, to):
            if self.fail:
                raise TwilioException("unreachable")
            self.calls.append({"body": body, "from_": from_, "to": to})
            return type("Msg", (), {"sid": "SM123"})

    class FakeClient:
        def __init__(self):
            self.messages = FakeMessages()

    client = FakeClient()
    sender = TwilioSmsSender("AC1", "tok", "+15550000000", client=client)
    assert sender.send_otp("9876543210", "4321") is True
    assert client.messages.calls[0]["to"] == "+919876543210"
    assert "4321" in client.messages.calls[0]["body"]

    client.messages.fail = True
    assert sender.send_otp("9876543210", "4321") is False


def test_twilio_sender_requires_from_number():
    pytest.importorskip("twilio")
    from app.infrastructure.sms.twilio_sender import TwilioSmsSender

    with pytest.raises(RuntimeError):
        TwilioSmsSender("AC1", "tok", "", client=object())


def test_audit_logger_hashes_phone(caplog):
    audit = StdAuditLogger(logging.getLogger("test.audit"))
    with caplog.at_level(logging.INFO, logger="test.audit"):
        audit.log("otp_sent", phone="9876543210")
        audit.log("otp_rate_limited", phone="9876543210", success=False)

    first, second = caplog.records
    assert first.levelno == logging.INFO
    assert second.levelno == logging.WARNING
    entry = json.loads(first.getMessage()[len("AUDIT: "):])
    assert entry["action"] == "otp_sent"
    assert entry["phone_hash"] == hash_phone_number("9876543210")
    assert "9876543210" not in first.getMessage()


def test_twilio_sender_reports_network_errors():
    pytest.importorskip("twilio")
    from app.infrastructure.sms.twilio_sender import TwilioSmsSender

    class TimingOutMessages:
        def create(self, body, from_, to):
            raise TimeoutError("read timed out")

    class TimingOutClient:
        messages = TimingOutMessages()

    sender = TwilioSmsSender("AC1", "tok", "+15550000000", client=TimingOutClient())
    assert sender.send_otp("9876543210", "4321") is False


def test_mock_sender_masks_phone_in_log(caplog):
    with caplog.at_level(logging.INFO, logger="app.infrastructure.sms.mock_sender"):
        MockSmsSender().send_otp("9876543210", "1234")

    message = caplog.records[-1].getMessage()
    assert "9876543210" not in message
    assert "3210" in message
    assert "1234" in message
