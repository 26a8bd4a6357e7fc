"""Cancel and confirm registrations.

Both actions re-read the sheet, check the status of the matching row, and
then write status, timestamp, IP and user agent to that row in a single
update. The read and the write are not transactional: a concurrent writer
between the two wins or loses silently.
"""

from typing import Optional

from registration_desk.exceptions import (
    AlreadyCancelledError,
    AlreadyConfirmedError,
    CancelledCannotConfirmError,
    ConfigurationError,
    RegistrationNotFoundError,
)
from registration_desk.line_notify import LineNotifier
from registration_desk.logging_config import get_logger
from registration_desk.models import Registration, RegistrationStatus
from registration_desk.sheets_lookup import LookupResult, RegistrationLookup
from registration_desk.timeutil import taiwan_now_str
from registration_desk.validators import mask_id_for_log

logger = get_logger("actions")


class RegistrationActions:
    def __init__(self, lookup: RegistrationLookup, notifier: Optional[LineNotifier] = None):
        self.lookup = lookup
        self.notifier = notifier

    def _find_target(self, id_number: str, course_name: str,
                     birthday: Optional[str]) -> tuple[LookupResult, Registration]:
        result = self.lookup.search(id_number, birthday)
        target = next((r for r in result.registrations if r.course_name == course_name), None)
        if target is None:
            raise RegistrationNotFoundError()
        return result, target

    def _write_status(self, result: LookupResult, target: Registration, status: RegistrationStatus,
                      actor_ip: str, actor_user_agent: str) -> str:
        status_column = result.columns.get('status')
        if status_column is None:
            raise ConfigurationError(f"試算表缺少「{self.lookup.schema.status}」欄位，無法更新狀態")

        changed_at = taiwan_now_str()
        label = self.lookup.status_labels.label_for(status)
        self.lookup.gateway.write_row_cells(
            target.row_position,
            status_column,
            [label, changed_at, actor_ip, actor_user_agent],
        )
        return changed_at

    def cancel(self, id_number: str, course_name: str, actor_ip: str, actor_user_agent: str,
               birthday: Optional[str] = None) -> bool:
        result, target = self._find_target(id_number, course_name, birthday)

        if target.status is RegistrationStatus.CANCELLED:
            raise AlreadyCancelledError()

        self._write_status(result, target, RegistrationStatus.CANCELLED, actor_ip, actor_user_agent)
        logger.info("Cancelled %s / %s (row %d)", mask_id_for_log(id_number), course_name,
                    target.row_position)

        self._notify_cancellation(target)
        return True

    def confirm(self, id_number: str, course_name: str, actor_ip: str, actor_user_agent: str,
                birthday: Optional[str] = None) -> bool:
        result, target = self._find_target(id_number, course_name, birthday)

        if target.status is RegistrationStatus.CONFIRMED:
            raise AlreadyConfirmedError()
        if target.status is RegistrationStatus.CANCELLED:
            raise CancelledCannotConfirmError()

        self._write_status(result, target, RegistrationStatus.CONFIRMED, actor_ip, actor_user_agent)
        logger.info("Confirmed %s / %s (row %d)", mask_id_for_log(id_number), course_name,
                    target.row_position)
        return True

    def _notify_cancellation(self, registration: Registration) -> None:
        """Runs after the status write has committed; its outcome never reaches the caller."""
        if self.notifier is None or not registration.handler_contact_id:
            logger.debug("No handler contact for %s, skipping notification", registration.course_name)
            return
        try:
            sent = self.notifier.send_cancellation_notice(registration, registration.handler_contact_id)
        except Exception:
            logger.exception("Cancellation notice for %s failed", registration.course_name)
            return
        if not sent:
            logger.warning("Cancellation notice for %s was not delivered", registration.course_name)
