"""Tests for notification field normalization."""

from keygate_relay.services.normalize import extract_token, normalize_notification


def test_canonical_names_pass_through() -> None:
    params = {"user_id": "u1", "script_id": "s1", "key_index": "2"}

    assert normalize_notification(params) == {
        "user_id": "u1",
        "script_id": "s1",
        "key_index": "2",
    }


def test_aliases_are_mapped() -> None:
    params = {"userId": "u1", "sid": "s1", "key": 3, "extra": "ignored"}

    assert normalize_notification(params) == {
        "user_id": "u1",
        "script_id": "s1",
        "key_index": 3,
    }


def test_first_non_blank_alias_wins() -> None:
    params = {"user_id": "", "userId": "u2", "uid": "u3", "script": "s1", "idx": "0"}

    normalized = normalize_notification(params)

    assert normalized["user_id"] == "u2"
    assert normalized["key_index"] == "0"


def test_missing_fields_map_to_none() -> None:
    assert normalize_notification({"uid": "u1"}) == {
        "user_id": "u1",
        "script_id": None,
        "key_index": None,
    }


def test_extract_token() -> None:
    assert extract_token({"token": "abc"}) == "abc"
    assert extract_token({"sig": "xyz"}) == "xyz"
    assert extract_token({"token": " "}) is None
    assert extract_token({}) is None


def test_numeric_identifiers_become_strings() -> None:
    normalized = normalize_notification({"userId": 12345, "script_id": 7, "key": 1})

    assert normalized == {"user_id": "12345", "script_id": "7", "key_index": 1}


def test_boolean_identifiers_are_left_for_validation() -> None:
    assert normalize_notification({"user_id": True})["user_id"] is True
