"""Shared pytest fixtures and configuration."""

import copy

import pytest

from registration_desk.config import Settings
from registration_desk.line_notify import LineNotifier
from registration_desk.models import SheetSchema, StatusLabels
from registration_desk.registration_actions import RegistrationActions
from registration_desk.sheets_lookup import RegistrationLookup

HEADERS = ["身分證字號", "姓名", "課程名稱", "開課日期", "狀態", "異動時間", "異動IP", "異動裝置"]
HEADERS_WITH_BIRTHDAY = HEADERS + ["生日", "承辦人LINE ID"]


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")


class FakeGateway:
    """In-memory stand-in for SheetsGateway."""

    def __init__(self, values, sheet_name="registrations"):
        self.values = values
        self.sheet_name = sheet_name
        self.reads = 0
        self.writes: list[tuple[int, int, list]] = []

    def read_all(self):
        self.reads += 1
        return copy.deepcopy(self.values)

    def write_row_cells(self, row_position, start_column, values):
        self.writes.append((row_position, start_column, list(values)))
        row = self.values[row_position - 1]
        needed = start_column + len(values)
        if len(row) < needed:
            row.extend([""] * (needed - len(row)))
        row[start_column:needed] = values


class RecordingNotifier(LineNotifier):
    """LineNotifier that records notices instead of calling LINE."""

    def __init__(self, result=True, error=None):
        super().__init__(channel_access_token="test-token")
        self.result = result
        self.error = error
        self.notices = []

    def send_cancellation_notice(self, registration, recipient_id):
        self.notices.append((registration, recipient_id))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def schema() -> SheetSchema:
    return SheetSchema(
        id_number="身分證字號",
        name="姓名",
        course_name="課程名稱",
        course_date="開課日期",
        status="狀態",
        handler_contact_id="承辦人LINE ID",
    )


@pytest.fixture
def birthday_schema() -> SheetSchema:
    return SheetSchema(
        id_number="身分證字號",
        name="姓名",
        course_name="課程名稱",
        course_date="開課日期",
        status="狀態",
        birthday="生日",
        handler_contact_id="承辦人LINE ID",
    )


@pytest.fixture
def sheet_values():
    return [
        list(HEADERS),
        ["A123456789", "王小明", "Yoga", "2026-11-01", ""],
        ["A123456789", "王小明", "Pottery", "2026-11-08", "已確認", "2026-10-01 09:00:00", "1.2.3.4", "ua"],
        ["B223456789", "李美麗", "Yoga", "2026-11-01", "已取消"],
        ["a123456789 ", "王小明", "Lowercase", "2026-11-15", ""],
    ]


@pytest.fixture
def gateway(sheet_values) -> FakeGateway:
    return FakeGateway(sheet_values)


@pytest.fixture
def lookup(gateway, schema) -> RegistrationLookup:
    return RegistrationLookup(gateway, schema, StatusLabels())


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def actions(lookup, notifier) -> RegistrationActions:
    return RegistrationActions(lookup, notifier)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        GOOGLE_SHEET_ID="sheet-id",
        RECAPTCHA_BYPASS=True,
        STATIC_DIR=str(tmp_path / "public"),
    )
