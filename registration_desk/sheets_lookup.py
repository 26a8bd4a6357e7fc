from dataclasses import dataclass, field
from typing import Dict, List, Optional

from registration_desk.exceptions import ConfigurationError, ValidationError
from registration_desk.logging_config import get_logger
from registration_desk.models import Registration, SheetSchema, StatusLabels
from registration_desk.sheets_utils import SheetsGateway
from registration_desk.validators import mask_id_for_log

logger = get_logger("lookup")

# Audit cells that follow the status column, in write order
AUDIT_FIELDS = ("status_changed_at", "actor_ip", "actor_user_agent")


@dataclass
class LookupResult:
    """Matching registrations plus the column positions they were read with."""
    columns: Dict[str, int]
    registrations: List[Registration] = field(default_factory=list)


def _cell(row: List[str], index: Optional[int]) -> str:
    if index is None or index < 0 or index >= len(row):
        return ''
    return str(row[index] or '').strip()


class RegistrationLookup:
    """Finds the registrations of one person by a full scan of the tab."""

    def __init__(self, gateway: SheetsGateway, schema: SheetSchema,
                 status_labels: Optional[StatusLabels] = None):
        self.gateway = gateway
        self.schema = schema
        self.status_labels = status_labels or StatusLabels()

    def _resolve_columns(self, headers: List[str]) -> Dict[str, int]:
        """Map each configured logical field to its 0-based column index."""
        headers = [str(h or '').strip() for h in headers]
        columns: Dict[str, int] = {}
        for logical in ('id_number', 'name', 'course_name', 'course_date', 'status',
                        'birthday', 'handler_contact_id'):
            header_text = getattr(self.schema, logical)
            if header_text and header_text in headers:
                columns[logical] = headers.index(header_text)

        if 'id_number' not in columns:
            raise ConfigurationError(
                f"試算表缺少「{self.schema.id_number}」欄位。目前標題: {', '.join(headers)}")
        if self.schema.match_birthday and 'birthday' not in columns:
            raise ConfigurationError(
                f"試算表缺少「{self.schema.birthday}」欄位。目前標題: {', '.join(headers)}")

        if 'status' in columns:
            audit_span = range(columns['status'] + 1, columns['status'] + 1 + len(AUDIT_FIELDS))
            # The audit cells are overwritten on every status change
            clashing = [headers[index] for logical, index in columns.items()
                        if logical != 'status' and index in audit_span]
            if clashing:
                raise ConfigurationError(
                    f"「{self.schema.status}」右側三欄須留給異動時間、IP 與裝置，"
                    f"不可放置: {', '.join(clashing)}")
            for offset, audit_field in enumerate(AUDIT_FIELDS, start=1):
                columns[audit_field] = columns['status'] + offset
        return columns

    def _to_registration(self, row: List[str], row_position: int,
                         columns: Dict[str, int]) -> Registration:
        handler = _cell(row, columns.get('handler_contact_id'))
        return Registration(
            row_position=row_position,
            id_number=_cell(row, columns['id_number']),
            name=_cell(row, columns.get('name')),
            course_name=_cell(row, columns.get('course_name')),
            course_date=_cell(row, columns.get('course_date')),
            status=self.status_labels.parse(_cell(row, columns.get('status'))),
            status_changed_at=_cell(row, columns.get('status_changed_at')),
            actor_ip=_cell(row, columns.get('actor_ip')),
            actor_user_agent=_cell(row, columns.get('actor_user_agent')),
            birthday=_cell(row, columns['birthday']) if 'birthday' in columns else None,
            handler_contact_id=handler or None,
        )

    def search(self, id_number: str, birthday: Optional[str] = None) -> LookupResult:
        if self.schema.match_birthday and not (birthday or '').strip():
            raise ValidationError('請提供生日')

        values = self.gateway.read_all()
        if not values:
            logger.info("Sheet '%s' is empty", self.gateway.sheet_name)
            return LookupResult(columns={})

        columns = self._resolve_columns(values[0])
        wanted_id = id_number.strip()
        wanted_birthday = birthday.strip() if birthday is not None else None
        match_birthday = wanted_birthday is not None and 'birthday' in columns

        result = LookupResult(columns=columns)
        # Sheet row numbers are 1-based and the header occupies row 1
        for row_position, row in enumerate(values[1:], start=2):
            if _cell(row, columns['id_number']) != wanted_id:
                continue
            if match_birthday and _cell(row, columns['birthday']) != wanted_birthday:
                continue
            result.registrations.append(self._to_registration(row, row_position, columns))

        logger.info("Lookup %s matched %d of %d rows", mask_id_for_log(wanted_id),
                    len(result.registrations), len(values) - 1)
        return result

    def lookup(self, id_number: str, birthday: Optional[str] = None) -> List[Registration]:
        return self.search(id_number, birthday).registrations
