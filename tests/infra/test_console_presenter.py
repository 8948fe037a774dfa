from __future__ import annotations

from whoisit.domain.models import LookupOptions, ManagerRef, ResolvedUser, UserRecord
from whoisit.infra.console.presenter import (
    BOX_BOTTOM,
    BOX_TITLE,
    BOX_TOP,
    ConsolePresenter,
    format_date,
    format_enabled,
    format_manager,
    format_record_lines,
)


def test_box_lines_have_equal_width():
    assert len(BOX_TOP) == len(BOX_TITLE) == len(BOX_BOTTOM) == 65


def test_format_date_truncates_to_day():
    assert format_date("2019-03-04T00:00:00Z") == "2019-03-04"
    assert format_date("2021-11-30T08:15:00.123+02:00") == "2021-11-30"
    assert format_date(None) == "N/A"
    assert format_date("not a date") == "not a date"


def test_format_enabled_is_tri_state():
    assert format_enabled(True) == "Yes"
    assert format_enabled(False) == "No"
    assert format_enabled(None) == "N/A"


def test_format_manager_variants():
    assert format_manager(None) == "N/A"
    assert format_manager(ManagerRef(name="Boss (EXEC)", employee_id="B1")) == "Boss (B1)"
    assert format_manager(ManagerRef(name="Boss", employee_id=None)) == "Boss"
    assert format_manager(ManagerRef(name=None, employee_id="B1")) == "N/A"


def test_record_lines_fill_missing_values_with_na():
    record = UserRecord(
        id="obj-1",
        display_name="Jane Doe (ENG)",
        user_principal_name="jane@co.com",
        employee_id="Z999ABCD",
        business_phones=("+1 555 0100", "+1 555 0101"),
    )

    lines = format_record_lines(ResolvedUser(record=record), 0, LookupOptions())

    assert lines[:4] == [BOX_TOP, BOX_TITLE, BOX_BOTTOM, ""]
    assert "  Name:              Jane Doe" in lines
    assert "  OrgCode:           ENG" in lines
    # mail missing -> user principal name is shown as Email
    assert "  Email:             jane@co.com" in lines
    assert "  Job Title:         N/A" in lines
    assert "  Business Phone:    +1 555 0100, +1 555 0101" in lines
    assert not any("Profile Photo" in line for line in lines)
    assert not any("eXtended" in line for line in lines)
    assert lines[-1] == ""


def test_record_lines_extended_section():
    record = UserRecord(
        id="obj-1",
        display_name="Jane Doe",
        employee_hire_date="2019-03-04T00:00:00Z",
        created_date_time="2018-01-02T10:00:00Z",
        account_enabled=True,
        city="Berlin",
    )

    lines = format_record_lines(ResolvedUser(record=record), 1, LookupOptions(extended_info=True))

    assert "    ─── eXtended Information ───" in lines
    assert "    Hire Date:         2019-03-04" in lines
    assert "    Created:           2018-01-02" in lines
    assert "    Account Enabled:   Yes" in lines
    assert "    City:              Berlin" in lines
    assert "    Country:           N/A" in lines
    assert lines[0] == "  " + BOX_TOP


def test_presenter_notices_are_indented_by_level():
    lines: list[str] = []
    presenter = ConsolePresenter(echo=lines.append)

    presenter.manager_level(2)
    presenter.reached_top(2)
    presenter.api_error("Forbidden")

    assert lines == [
        "    ↑ Manager at level 2",
        "",
        "",
        "    🏁 Reached top of organizational hierarchy",
        "❌ Microsoft Graph API error: Forbidden",
    ]
