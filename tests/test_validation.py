import pytest

from models import WaitlistEntry
from validation import contains_email, is_valid_email, normalize_email


@pytest.mark.parametrize("email", [
    "user@domain.tld",
    "first.last@example.co.uk",
    "a+tag@b.io",
    "A@B.com",
])
def test_valid_emails(email):
    assert is_valid_email(email)


@pytest.mark.parametrize("email", [
    "",
    "plainaddress",
    "user.domain.com",
    "user@domain",
    "user@.com",
    "user@domain.",
    "@domain.com",
    "user name@domain.com",
    "user@dom ain.com",
    " user@domain.com",
    "user@domain.com\n",
    "user@@domain.com",
    "user@domain@other.com",
])
def test_invalid_emails(email):
    assert not is_valid_email(email)


@pytest.mark.parametrize("value", [None, 42, ["a@b.com"]])
def test_non_strings_are_invalid(value):
    assert not is_valid_email(value)


def test_normalize_email():
    assert normalize_email("  Someone@Example.COM ") == "someone@example.com"


def test_contains_email_ignores_case():
    entries = [WaitlistEntry(email="someone@example.com", timestamp="2024-01-01T00:00:00.000Z", id=1)]
    assert contains_email(entries, "SOMEONE@example.com")
    assert not contains_email(entries, "other@example.com")
    assert not contains_email([], "someone@example.com")
