"""Process-wide service objects, built once at startup and injected into routes."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends

from registration_desk.config import Settings
from registration_desk.line_notify import LineNotifier
from registration_desk.recaptcha import RecaptchaVerifier
from registration_desk.registration_actions import RegistrationActions
from registration_desk.sheets_lookup import RegistrationLookup
from registration_desk.sheets_utils import SheetsGateway


@dataclass
class Services:
    settings: Settings
    lookup: RegistrationLookup
    actions: RegistrationActions
    verifier: RecaptchaVerifier


def build_services(settings: Settings, gateway: SheetsGateway | None = None) -> Services:
    """Wire gateway, lookup, actions and verifier from settings.

    The sheet schema is validated here, so a bad column mapping stops the
    app at startup instead of on the first request.
    """
    if gateway is None:
        gateway = SheetsGateway(
            spreadsheet_id=settings.GOOGLE_SHEET_ID,
            sheet_name=settings.SHEET_NAME,
            credentials_json=settings.GOOGLE_CREDENTIALS,
            credentials_path=settings.GOOGLE_CREDENTIALS_PATH,
        )
    lookup = RegistrationLookup(gateway, settings.sheet_schema(), settings.status_labels())
    notifier = LineNotifier(settings.LINE_CHANNEL_ACCESS_TOKEN)
    return Services(
        settings=settings,
        lookup=lookup,
        actions=RegistrationActions(lookup, notifier),
        verifier=RecaptchaVerifier(
            settings.RECAPTCHA_SECRET_KEY,
            min_score=settings.RECAPTCHA_MIN_SCORE,
            bypass=settings.RECAPTCHA_BYPASS,
        ),
    )


# Global Services instance (initialized on app startup)
_services: Services | None = None


def init_services(services: Services) -> Services:
    global _services  # noqa: PLW0603
    _services = services
    return _services


def close_services() -> None:
    global _services  # noqa: PLW0603
    _services = None


def get_services() -> Generator[Services, None, None]:
    """Dependency that provides the Services instance."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    yield _services


ServicesDep = Annotated[Services, Depends(get_services)]
