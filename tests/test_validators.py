import pytest

from app.shared.validators import validate_email, validate_license_plate, validate_phone


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+98 912 345 6789", "+989123456789"),
        ("0098-912-345-6789", "+989123456789"),
        ("(555) 123-4567", "+5551234567"),
        ("", ""),
        (None, None),
    ],
)
def test_validate_phone(raw, expected):
    assert validate_phone(raw) == expected


@pytest.mark.parametrize("raw", ["12345", "1" * 16])
def test_validate_phone_rejects_bad_lengths(raw):
    with pytest.raises(ValueError):
        validate_phone(raw)


def test_validate_email():
    assert validate_email("  Sara@Example.COM ") == "sara@example.com"
    with pytest.raises(ValueError):
        validate_email("not-an-email")


def test_validate_license_plate():
    assert validate_license_plate("  12   b 345 ") == "12 B 345"
    with pytest.raises(ValueError):
        validate_license_plate("   ")
