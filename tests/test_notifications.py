from datetime import datetime
from unittest import mock

import pytest
import requests

from flipbook.config import settings
from flipbook.notifications import FlipbookEvent, dispatch_flipbook_event
from flipbook.services import email_service

# captured before the autouse fixture swaps it out
real_send_email = email_service.send_email


def dispatch(event, **overrides):
    fields = dict(
        event=event,
        email="reader@example.com",
        name="Ada Reader",
        link="http://localhost:5173/flipbook/view/abc",
        expires_at=datetime(2026, 10, 26, 12, 0, 0),
        is_trial=True,
    )
    fields.update(overrides)
    return dispatch_flipbook_event(**fields)


class TestDispatcher:

    def test_created_notifies_owner_and_admin(self, sent_emails):
        assert dispatch(FlipbookEvent.FLIPBOOK_CREATED) is True

        assert [mail["to"] for mail in sent_emails] == ["reader@example.com", "owner@flipbook.test"]
        owner_mail = sent_emails[0]
        assert owner_mail["subject"] == "Your Flipbook is Ready - Ada Reader"
        assert "http://localhost:5173/flipbook/view/abc" in owner_mail["html"]
        assert "7-Day Free Trial" in owner_mail["html"]
        assert "26 Oct 2026" in owner_mail["html"]

    @pytest.mark.parametrize("event", [
        FlipbookEvent.ACCESS_EXTENDED,
        FlipbookEvent.ACCESS_MADE_PERMANENT,
        FlipbookEvent.FLIPBOOK_ACTIVATED,
    ])
    def test_admin_actions_notify_owner_only(self, sent_emails, event):
        assert dispatch(event, is_trial=False) is True

        assert [mail["to"] for mail in sent_emails] == ["reader@example.com"]
        assert "Full Access" in sent_emails[0]["html"]

    def test_permanent_access_shows_no_expiry(self, sent_emails):
        dispatch(FlipbookEvent.ACCESS_MADE_PERMANENT, expires_at=None, is_trial=False)

        assert "Never" in sent_emails[0]["html"]

    def test_owner_delivery_failure_is_reported(self, monkeypatch):
        monkeypatch.setattr(email_service, "send_email", lambda to, subject, html: False)

        assert dispatch(FlipbookEvent.FLIPBOOK_CREATED) is False

    def test_admin_failure_does_not_affect_result(self, monkeypatch, sent_emails):
        def flaky(to, subject, html):
            if to == "owner@flipbook.test":
                raise RuntimeError("admin mailbox unavailable")
            sent_emails.append({"to": to, "subject": subject, "html": html})
            return True

        monkeypatch.setattr(email_service, "send_email", flaky)

        assert dispatch(FlipbookEvent.FLIPBOOK_CREATED) is True
        assert [mail["to"] for mail in sent_emails] == ["reader@example.com"]

    def test_no_admin_address(self, monkeypatch, sent_emails):
        monkeypatch.setattr(settings, "admin_email", "")

        dispatch(FlipbookEvent.FLIPBOOK_CREATED)

        assert [mail["to"] for mail in sent_emails] == ["reader@example.com"]


class TestBrevoSend:

    @pytest.fixture
    def api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "brevo_api_key", "test-key")

    def test_without_api_key(self):
        with mock.patch.object(email_service.requests, "post") as post:
            assert real_send_email("reader@example.com", "Hi", "<p>hi</p>") is False
        post.assert_not_called()

    def test_invalid_recipient(self, api_key):
        with mock.patch.object(email_service.requests, "post") as post:
            assert real_send_email("not-an-email", "Hi", "<p>hi</p>") is False
        post.assert_not_called()

    def test_success(self, api_key):
        with mock.patch.object(email_service.requests, "post") as post:
            post.return_value = mock.Mock(status_code=201, text="")

            assert real_send_email(["reader@example.com", "bad"], "Hi", "<p>hi</p>") is True

        _, kwargs = post.call_args
        assert kwargs["headers"]["api-key"] == "test-key"
        assert kwargs["json"]["to"] == [{"email": "reader@example.com"}]
        assert kwargs["json"]["htmlContent"] == "<p>hi</p>"

    def test_api_error(self, api_key):
        with mock.patch.object(email_service.requests, "post") as post:
            post.return_value = mock.Mock(status_code=500, text="boom")

            assert real_send_email("reader@example.com", "Hi", "<p>hi</p>") is False

    def test_network_error(self, api_key):
        with mock.patch.object(email_service.requests, "post", side_effect=requests.ConnectionError("down")):
            assert real_send_email("reader@example.com", "Hi", "<p>hi</p>") is False
