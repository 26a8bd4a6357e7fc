"""Data models for registrations and the sheet layout."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

from registration_desk.exceptions import ConfigurationError
from registration_desk.validators import mask_name


class RegistrationStatus(str, Enum):
    """Lifecycle state of a registration row."""

    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StatusLabels:
    """Text written to (and recognised in) the status cell."""

    confirmed: str = "已確認"
    cancelled: str = "已取消"

    def parse(self, raw: str) -> RegistrationStatus:
        """Map a status cell to a status; blank or unknown text means registered."""
        value = (raw or "").strip()
        if value == self.cancelled or value.lower() == RegistrationStatus.CANCELLED.value:
            return RegistrationStatus.CANCELLED
        if value == self.confirmed or value.lower() == RegistrationStatus.CONFIRMED.value:
            return RegistrationStatus.CONFIRMED
        return RegistrationStatus.REGISTERED

    def label_for(self, status: RegistrationStatus) -> str:
        if status is RegistrationStatus.CANCELLED:
            return self.cancelled
        if status is RegistrationStatus.CONFIRMED:
            return self.confirmed
        return ""


@dataclass(frozen=True)
class SheetSchema:
    """Header text of each logical column in the registrations tab.

    ``birthday`` is only set when lookups must also match on birthday.
    ``handler_contact_id`` is optional; without it no cancellation notice is
    sent. The status column is the first of four contiguous audit cells:
    status, changed-at, actor IP and actor user agent.
    """

    id_number: str
    name: str
    course_name: str
    course_date: str
    status: str
    birthday: str | None = None
    handler_contact_id: str | None = None

    REQUIRED = ("id_number", "name", "course_name", "course_date", "status")

    def __post_init__(self) -> None:
        for field_name in self.REQUIRED:
            if not (getattr(self, field_name) or "").strip():
                raise ConfigurationError(f"試算表欄位設定缺少「{field_name}」")

        headers = [h for h in (getattr(self, f.name) for f in fields(self)) if h]
        if len(set(headers)) != len(headers):
            raise ConfigurationError(f"試算表欄位設定重複: {', '.join(headers)}")

    @property
    def match_birthday(self) -> bool:
        return bool(self.birthday)


@dataclass
class Registration:
    """One registration row as read from the sheet."""

    row_position: int
    id_number: str
    name: str
    course_name: str
    course_date: str
    status: RegistrationStatus = RegistrationStatus.REGISTERED
    status_changed_at: str = ""
    actor_ip: str = ""
    actor_user_agent: str = ""
    birthday: str | None = None
    handler_contact_id: str | None = None

    def to_public_dict(self, mask: bool = False) -> dict[str, Any]:
        """Fields returned to API callers; row internals and contacts stay private."""
        data = asdict(self)
        for private in ("row_position", "handler_contact_id", "actor_ip", "actor_user_agent"):
            data.pop(private)
        data["status"] = self.status.value
        if mask:
            data["name"] = mask_name(self.name)
        if self.birthday is None:
            data.pop("birthday")
        return data
