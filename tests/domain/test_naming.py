from __future__ import annotations

from whoisit.domain.models import TraversalState, UserRecord
from whoisit.domain.naming import clean_name, photo_file_name, split_display_name


def test_split_display_name_extracts_org_code():
    names = split_display_name("Jane Doe (ENG)")

    assert names.cleaned_name == "Jane Doe"
    assert names.org_code == "ENG"


def test_split_display_name_takes_first_group_and_strips_all():
    names = split_display_name("Doe, Jane ( ENG ) (Contractor)")

    assert names.org_code == "ENG"
    assert names.cleaned_name == "Doe, Jane"


def test_split_display_name_without_parentheses_is_unchanged():
    names = split_display_name("Jane Doe")

    assert names.cleaned_name == "Jane Doe"
    assert names.org_code is None


def test_clean_name_handles_missing_value():
    assert clean_name(None) is None
    assert clean_name("") is None


def test_photo_file_name_prefers_employee_id():
    record = UserRecord(id="obj-1", employee_id="Z999ABCD", mail="jane@co.com")

    assert photo_file_name(record) == "Z999ABCD.jpg"


def test_photo_file_name_falls_back_to_mail():
    record = UserRecord(id="obj-1", mail="jane.doe@co.com")

    assert photo_file_name(record) == "jane.doe_co.com.jpg"


def test_photo_file_name_falls_back_to_object_id_and_strips_separators():
    assert photo_file_name(UserRecord(id="obj-1")) == "obj-1.jpg"
    assert photo_file_name(UserRecord(employee_id="A/B\\C")) == "A_B_C.jpg"


def test_user_record_from_graph_normalizes_values():
    record = UserRecord.from_graph(
        {
            "id": "obj-1",
            "displayName": "Jane Doe (ENG)",
            "mail": "   ",
            "businessPhones": ["+1 555 0100", "", "+1 555 0101"],
            "accountEnabled": False,
        }
    )

    assert record.mail is None
    assert record.business_phones == ("+1 555 0100", "+1 555 0101")
    assert record.account_enabled is False
    assert record.employee_hire_date is None


def test_traversal_state_descend_shares_visited():
    state = TraversalState()
    state.visited.add("A")

    child = state.descend()
    child.visited.add("B")

    assert child.level == 1
    assert state.visited == {"A", "B"}
