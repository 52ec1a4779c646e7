import pytest

from shelter_outreach.config import ConfigurationError
from shelter_outreach.models import ContactRecord
from shelter_outreach.senders.base import SendError
from shelter_outreach.senders.sendgrid import SENDGRID_URL, SendGridSender


class StubResponse:
    def __init__(self, status_code: int, text: str = "", headers=None) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


class StubSession:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)


def _sender(session, **kwargs) -> SendGridSender:
    return SendGridSender(
        "support@whitecoat-md.com",
        "WhiteCoat DVM",
        reply_to="mitch@whitecoat-md.com",
        api_key="SG.test",
        session=session,
        sleep=lambda seconds: None,
        **kwargs,
    )


CONTACT = ContactRecord(name="Austin Pets Alive", email="info@apa.org")


def test_send_posts_rendered_template() -> None:
    session = StubSession([StubResponse(202, headers={"X-Message-Id": "abc123"})])

    message_id = _sender(session).send(CONTACT)

    assert message_id == "abc123"
    call = session.calls[0]
    assert call["url"] == SENDGRID_URL
    assert call["headers"]["Authorization"] == "Bearer SG.test"
    assert call["timeout"] == 15.0
    payload = call["json"]
    assert payload["personalizations"] == [{"to": [{"email": "info@apa.org"}]}]
    assert payload["from"] == {"email": "support@whitecoat-md.com", "name": "WhiteCoat DVM"}
    assert payload["reply_to"] == {"email": "mitch@whitecoat-md.com"}
    assert payload["subject"] == "Partnership opportunity for Austin Pets Alive"
    assert [part["type"] for part in payload["content"]] == ["text/plain", "text/html"]
    assert "Hi Austin Pets Alive Team" in payload["content"][0]["value"]


def test_send_retries_rate_limited_requests() -> None:
    session = StubSession([StubResponse(429), StubResponse(503), StubResponse(202)])

    _sender(session).send(CONTACT)

    assert len(session.calls) == 3


def test_send_raises_on_client_error() -> None:
    session = StubSession([StubResponse(400, text="bad request")])

    with pytest.raises(SendError) as excinfo:
        _sender(session).send(CONTACT)

    assert excinfo.value.status_code == 400
    assert len(session.calls) == 1


def test_send_gives_up_after_max_retries() -> None:
    session = StubSession([StubResponse(500) for _ in range(3)])

    with pytest.raises(SendError):
        _sender(session, max_retries=2).send(CONTACT)

    assert len(session.calls) == 3


def test_contact_without_email_is_a_send_error() -> None:
    with pytest.raises(SendError):
        _sender(StubSession([])).send(ContactRecord(name="Phone Only", phone="(512) 555-0100"))


def test_missing_api_key_is_a_configuration_error(monkeypatch) -> None:
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        SendGridSender("support@whitecoat-md.com")


def test_api_key_is_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SENDGRID_API_KEY", "SG.env")
    session = StubSession([StubResponse(202)])

    SendGridSender("support@whitecoat-md.com", session=session).send(CONTACT)

    assert session.calls[0]["headers"]["Authorization"] == "Bearer SG.env"
    assert "reply_to" not in session.calls[0]["json"]
