"""
Unit tests for email delivery with retry.
"""

import pytest

from offerdesk.services import email_service


@pytest.fixture
def mail_enabled(app, monkeypatch):
    """Turn on SMTP settings without sending anything."""
    monkeypatch.setitem(app.config, 'MAIL_SUPPRESS_SEND', False)
    monkeypatch.setitem(app.config, 'MAIL_SERVER', 'smtp.test')
    monkeypatch.setitem(app.config, 'MAIL_USERNAME', 'mailer')
    monkeypatch.setitem(app.config, 'EMAIL_RETRY_BACKOFF_SECONDS', 0)


class TestSendEmail:
    """Tests for send_email() and send_email_with_retry()."""

    def test_disabled_mail_is_a_successful_no_op(self, monkeypatch):
        def fail(msg):
            raise AssertionError('must not send')
        monkeypatch.setattr(email_service.mail, 'send', fail)

        assert email_service.send_email('a@b.test', 'Hi', text='x') == {'success': True}

    def test_missing_recipient(self):
        result = email_service.send_email('', 'Hi', text='x')
        assert result == {'success': False, 'error': 'Recipient email is required'}

    def test_retry_succeeds_on_second_attempt(self, mail_enabled, monkeypatch):
        sent = []

        def flaky_send(msg):
            sent.append(msg)
            if len(sent) == 1:
                raise ConnectionError('SMTP down')
        monkeypatch.setattr(email_service.mail, 'send', flaky_send)

        result = email_service.send_email_with_retry('a@b.test', 'Hi', html='<p>x</p>', text='x')

        assert result == {'success': True}
        assert len(sent) == 2
        assert sent[1].recipients == ['a@b.test']

    def test_retry_gives_up_after_max_attempts(self, mail_enabled, monkeypatch):
        calls = []

        def broken_send(msg):
            calls.append(msg)
            raise ConnectionError('SMTP down')
        monkeypatch.setattr(email_service.mail, 'send', broken_send)

        result = email_service.send_email_with_retry('a@b.test', 'Hi', text='x', max_attempts=3)

        assert result['success'] is False
        assert 'SMTP down' in result['error']
        assert len(calls) == 3

    def test_linear_backoff(self, mail_enabled, app, monkeypatch):
        sleeps = []
        monkeypatch.setitem(app.config, 'EMAIL_RETRY_BACKOFF_SECONDS', 2)
        monkeypatch.setattr(email_service.time, 'sleep', sleeps.append)

        def broken_send(msg):
            raise ConnectionError('down')
        monkeypatch.setattr(email_service.mail, 'send', broken_send)

        email_service.send_email_with_retry('a@b.test', 'Hi', text='x', max_attempts=3)

        assert sleeps == [2, 4]

    def test_offer_notification_uses_its_own_attempt_limit(self, mail_enabled, app, monkeypatch):
        """The promotion notification gives up after OFFER_NOTIFY_MAX_ATTEMPTS without waiting."""
        calls = []
        sleeps = []
        monkeypatch.setitem(app.config, 'OFFER_NOTIFY_MAX_ATTEMPTS', 1)
        monkeypatch.setitem(app.config, 'EMAIL_RETRY_BACKOFF_SECONDS', 5)
        monkeypatch.setattr(email_service.time, 'sleep', sleeps.append)

        def broken_send(msg):
            calls.append(msg)
            raise ConnectionError('down')
        monkeypatch.setattr(email_service.mail, 'send', broken_send)

        result = email_service.notify('a@b.test', 'New Offer: X', '<p>x</p>', 'x')

        assert result['success'] is False
        assert len(calls) == 1
        assert sleeps == []
