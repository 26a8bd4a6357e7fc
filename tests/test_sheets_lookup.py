"""Unit tests for RegistrationLookup."""

import pytest

from registration_desk.exceptions import ConfigurationError, ValidationError
from registration_desk.models import RegistrationStatus, StatusLabels
from registration_desk.registration_actions import RegistrationActions
from registration_desk.sheets_lookup import RegistrationLookup
from tests.conftest import HEADERS, HEADERS_WITH_BIRTHDAY, FakeGateway


@pytest.mark.unit
class TestLookup:
    def test_returns_every_row_for_the_id(self, lookup: RegistrationLookup) -> None:
        results = lookup.lookup("A123456789")

        assert [r.course_name for r in results] == ["Yoga", "Pottery"]
        assert [r.row_position for r in results] == [2, 3]

    def test_blank_status_defaults_to_registered(self, lookup: RegistrationLookup) -> None:
        yoga = lookup.lookup("A123456789")[0]

        assert yoga.status is RegistrationStatus.REGISTERED
        assert yoga.name == "王小明"
        assert yoga.course_date == "2026-11-01"
        assert yoga.status_changed_at == ""

    def test_reads_audit_columns(self, lookup: RegistrationLookup) -> None:
        pottery = lookup.lookup("A123456789")[1]

        assert pottery.status is RegistrationStatus.CONFIRMED
        assert pottery.status_changed_at == "2026-10-01 09:00:00"
        assert pottery.actor_ip == "1.2.3.4"
        assert pottery.actor_user_agent == "ua"

    def test_no_match_returns_empty_list(self, lookup: RegistrationLookup) -> None:
        assert lookup.lookup("C123456789") == []

    def test_comparison_is_exact_after_trimming(self, lookup: RegistrationLookup) -> None:
        # Row 5 stores the ID in lower case; only trimming is applied to cells
        assert all(r.course_name != "Lowercase" for r in lookup.lookup("A123456789"))

    def test_empty_sheet_returns_empty_list(self, schema) -> None:
        lookup = RegistrationLookup(FakeGateway([]), schema)

        assert lookup.lookup("A123456789") == []

    def test_header_only_sheet_returns_empty_list(self, schema) -> None:
        lookup = RegistrationLookup(FakeGateway([list(HEADERS)]), schema)

        assert lookup.lookup("A123456789") == []

    def test_headers_are_trimmed(self, schema) -> None:
        values = [[" 身分證字號 ", "姓名", "課程名稱 "], ["A123456789", "王小明", "Yoga"]]
        lookup = RegistrationLookup(FakeGateway(values), schema)

        results = lookup.lookup("A123456789")

        assert results[0].course_name == "Yoga"
        assert results[0].status is RegistrationStatus.REGISTERED

    def test_missing_id_column_is_a_configuration_error(self, schema) -> None:
        values = [["ID", "姓名"], ["A123456789", "王小明"]]
        lookup = RegistrationLookup(FakeGateway(values), schema)

        with pytest.raises(ConfigurationError, match="身分證字號"):
            lookup.lookup("A123456789")

    def test_short_rows_default_missing_cells(self, schema) -> None:
        values = [list(HEADERS), ["A123456789"]]
        lookup = RegistrationLookup(FakeGateway(values), schema)

        registration = lookup.lookup("A123456789")[0]

        assert registration.name == ""
        assert registration.course_name == ""
        assert registration.status is RegistrationStatus.REGISTERED

    def test_uses_configured_status_labels(self, schema) -> None:
        values = [list(HEADERS), ["A123456789", "王小明", "Yoga", "", "DONE"]]
        lookup = RegistrationLookup(FakeGateway(values), schema, StatusLabels(confirmed="DONE"))

        assert lookup.lookup("A123456789")[0].status is RegistrationStatus.CONFIRMED

    def test_reads_the_sheet_on_every_call(self, lookup: RegistrationLookup, gateway) -> None:
        lookup.lookup("A123456789")
        lookup.lookup("A123456789")

        assert gateway.reads == 2


@pytest.mark.unit
class TestLookupWithBirthday:
    @pytest.fixture
    def values(self):
        return [
            list(HEADERS_WITH_BIRTHDAY),
            ["A123456789", "王小明", "Yoga", "2026-11-01", "", "", "", "", "0850312", "Uhandler"],
            ["A123456789", "王小明", "Pottery", "2026-11-08", "", "", "", "", "0990101", ""],
        ]

    def test_matches_on_id_and_birthday(self, values, birthday_schema) -> None:
        lookup = RegistrationLookup(FakeGateway(values), birthday_schema)

        results = lookup.lookup("A123456789", "0850312")

        assert [r.course_name for r in results] == ["Yoga"]
        assert results[0].birthday == "0850312"
        assert results[0].handler_contact_id == "Uhandler"

    def test_wrong_birthday_matches_nothing(self, values, birthday_schema) -> None:
        lookup = RegistrationLookup(FakeGateway(values), birthday_schema)

        assert lookup.lookup("A123456789", "0000000") == []

    def test_empty_handler_contact_becomes_none(self, values, birthday_schema) -> None:
        lookup = RegistrationLookup(FakeGateway(values), birthday_schema)

        assert lookup.lookup("A123456789", "0990101")[0].handler_contact_id is None

    def test_missing_birthday_column_is_a_configuration_error(self, birthday_schema) -> None:
        values = [list(HEADERS), ["A123456789", "王小明", "Yoga"]]
        lookup = RegistrationLookup(FakeGateway(values), birthday_schema)

        with pytest.raises(ConfigurationError, match="生日"):
            lookup.lookup("A123456789", "0850312")


@pytest.mark.unit
class TestAuditColumnLayout:
    def test_mapped_column_inside_audit_cells_is_rejected(self, schema) -> None:
        values = [
            ["身分證字號", "狀態", "承辦人LINE ID", "課程名稱", "姓名", "開課日期"],
            ["A123456789", "", "Uhandler", "Yoga", "王小明", "2026-11-01"],
        ]
        gateway = FakeGateway(values)
        lookup = RegistrationLookup(gateway, schema)

        with pytest.raises(ConfigurationError, match="承辦人LINE ID"):
            lookup.lookup("A123456789")

    def test_rejected_layout_never_writes(self, schema) -> None:
        values = [
            ["身分證字號", "狀態", "承辦人LINE ID", "課程名稱", "姓名", "開課日期"],
            ["A123456789", "", "Uhandler", "Yoga", "王小明", "2026-11-01"],
        ]
        gateway = FakeGateway(values)
        actions = RegistrationActions(RegistrationLookup(gateway, schema))

        with pytest.raises(ConfigurationError):
            actions.confirm("A123456789", "Yoga", "10.0.0.1", "ua")

        assert gateway.writes == []
        assert gateway.values[1] == ["A123456789", "", "Uhandler", "Yoga", "王小明", "2026-11-01"]

    def test_mapped_column_right_after_audit_cells_is_allowed(self, schema) -> None:
        values = [
            ["身分證字號", "狀態", "異動時間", "異動IP", "異動裝置", "課程名稱"],
            ["A123456789", "", "", "", "", "Yoga"],
        ]
        lookup = RegistrationLookup(FakeGateway(values), schema)

        assert [r.course_name for r in lookup.lookup("A123456789")] == ["Yoga"]


@pytest.mark.unit
class TestBirthdayRequired:
    @pytest.mark.parametrize("birthday", [None, "", "   "])
    def test_missing_birthday_is_rejected_before_reading(self, birthday_schema, birthday) -> None:
        gateway = FakeGateway([list(HEADERS_WITH_BIRTHDAY)])
        lookup = RegistrationLookup(gateway, birthday_schema)

        with pytest.raises(ValidationError, match="請提供生日"):
            lookup.lookup("A123456789", birthday)

        assert gateway.reads == 0

    def test_actions_cannot_skip_birthday(self, birthday_schema) -> None:
        gateway = FakeGateway([
            list(HEADERS_WITH_BIRTHDAY),
            ["A123456789", "王小明", "Yoga", "2026-11-01", "", "", "", "", "0850312", ""],
        ])
        actions = RegistrationActions(RegistrationLookup(gateway, birthday_schema))

        with pytest.raises(ValidationError):
            actions.cancel("A123456789", "Yoga", "ip", "ua")

        assert gateway.writes == []
