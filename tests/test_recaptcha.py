"""Unit tests for reCAPTCHA verification."""

from unittest.mock import MagicMock

import pytest
import requests

from registration_desk.exceptions import ConfigurationError
from registration_desk.recaptcha import RECAPTCHA_VERIFY_URL, RecaptchaVerifier


def _session(payload) -> MagicMock:
    session = MagicMock()
    session.post.return_value.json.return_value = payload
    return session


@pytest.mark.unit
class TestRecaptchaVerifier:
    def test_passing_score(self) -> None:
        session = _session({"success": True, "score": 0.9})
        verifier = RecaptchaVerifier("secret", min_score=0.5, session=session)

        result = verifier.verify("token", remote_ip="1.2.3.4")

        assert result.success is True
        assert result.score == 0.9
        args, kwargs = session.post.call_args
        assert args[0] == RECAPTCHA_VERIFY_URL
        assert kwargs["data"] == {"secret": "secret", "response": "token", "remoteip": "1.2.3.4"}

    def test_score_below_threshold_fails(self) -> None:
        verifier = RecaptchaVerifier("secret", min_score=0.5, session=_session({"success": True, "score": 0.3}))

        result = verifier.verify("token")

        assert result.success is False
        assert result.score == 0.3

    def test_threshold_is_configurable(self) -> None:
        verifier = RecaptchaVerifier("secret", min_score=0.3, session=_session({"success": True, "score": 0.3}))

        assert verifier.verify("token").success is True

    def test_google_rejection_fails(self) -> None:
        session = _session({"success": False, "error-codes": ["invalid-input-response"]})

        assert RecaptchaVerifier("secret", session=session).verify("token").success is False

    def test_missing_token_fails_without_calling(self) -> None:
        session = MagicMock()

        result = RecaptchaVerifier("secret", session=session).verify(None)

        assert result.success is False
        session.post.assert_not_called()

    def test_transport_error_fails(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.Timeout("slow")

        assert RecaptchaVerifier("secret", session=session).verify("token").success is False

    def test_missing_secret_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            RecaptchaVerifier(None).verify("token")

    def test_bypass_skips_the_remote_call(self) -> None:
        session = MagicMock()

        result = RecaptchaVerifier(None, bypass=True, session=session).verify(None)

        assert result.success is True
        session.post.assert_not_called()
