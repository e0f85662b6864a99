import pytest

from sdba.sanitize import (
    escape_like_pattern,
    sanitize_file_name,
    sanitize_notes,
    sanitize_optional,
    sanitize_text,
    validate_email,
)


def test_sanitize_text():
    assert sanitize_text("  <script>x</script>Dragons &amp; Co  ") == "xDragons & Co"
    assert sanitize_text(None) == ""
    assert sanitize_optional("   ") is None
    assert sanitize_optional(" keep ") == "keep"


def test_sanitize_notes_keeps_entities():
    assert sanitize_notes("<p>Paid &amp; confirmed</p> ") == "Paid &amp; confirmed"


@pytest.mark.parametrize(
    "email, expected",
    [
        ("alice@example.com", True),
        ("first.last+tag@sub.example.org", True),
        ("no-at-sign", False),
        ("two@@example.com", False),
        ("a@b@c.com", False),
        ("<script>@example.com", False),
        ("javascript:alert@example.com", False),
        (f"{'a' * 65}@example.com", False),
        ("", False),
    ],
)
def test_validate_email(email, expected):
    assert validate_email(email) is expected


def test_escape_like_pattern():
    assert escape_like_pattern("100%") == "100\\%"
    assert escape_like_pattern("a_b") == "a\\_b"
    assert escape_like_pattern("back\\slash") == "back\\\\slash"


def test_sanitize_file_name():
    assert sanitize_file_name("../../etc/passwd") == "etcpasswd"
    assert sanitize_file_name('report<1>?.csv') == "report1.csv"
    assert sanitize_file_name("..") == "file"
    assert sanitize_file_name(None) == "file"
