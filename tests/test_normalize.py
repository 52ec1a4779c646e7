import pytest

from shelter_outreach.normalize import (
    clean_city,
    clean_name,
    clean_state,
    dedup_key,
    validate_email,
    validate_phone,
)


def test_clean_name_strips_quotes_and_collapses_whitespace() -> None:
    assert clean_name('  "Happy   Tails"\tRescue  ') == "Happy Tails Rescue"


def test_clean_name_truncates_to_100_characters() -> None:
    assert len(clean_name("x" * 150)) == 100


@pytest.mark.parametrize("value", [None, "", '""', "   "])
def test_clean_name_empty_values(value) -> None:
    assert clean_name(value) == ""


def test_validate_email_lowercases_and_trims() -> None:
    assert validate_email("  Info@PawsRescue.ORG ") == "info@pawsrescue.org"


@pytest.mark.parametrize(
    "value",
    [
        "info@example.org",
        "test@pawsrescue.org",
        "no-at-sign.org",
        "user@localhost",
        "",
        None,
    ],
)
def test_validate_email_rejects_junk(value) -> None:
    assert validate_email(value) == ""


def test_validate_phone_formats_ten_digits() -> None:
    assert validate_phone("512.555.0100") == "(512) 555-0100"


@pytest.mark.parametrize(
    "value",
    [
        "176-555-0100",
        "155-555-0100",
        "204 555 0100",
        "666-666-6666",
        "0000000000",
        "1-512-555-0100",
        "555-0100",
        "",
        None,
    ],
)
def test_validate_phone_rejects_invalid_numbers(value) -> None:
    assert validate_phone(value) == ""


def test_clean_city_and_state() -> None:
    assert clean_city(' "Austin" ') == "Austin"
    assert len(clean_city("y" * 80)) == 50
    assert clean_state(" texas ") == "TE"
    assert clean_state("tx") == "TX"


def test_dedup_key_ignores_case_and_whitespace() -> None:
    assert dedup_key("Paws Rescue", "a@x.org", "") == dedup_key("PAWS  rescue", "A@X.org", "")
    assert dedup_key("Paws Rescue", "a@x.org", "") != dedup_key("Paws Rescue", "b@x.org", "")
