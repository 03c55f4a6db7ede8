"""Unit tests for phone number validation."""

import pytest

from corpdate.errors import InvalidInputError
from corpdate.verification.phone import is_valid_phone, normalize_phone, validate_phone


class TestNormalize:
    def test_strips_formatting(self) -> None:
        assert normalize_phone("+91 (98765) 432-10") == "+919876543210"

    def test_leaves_digits_alone(self) -> None:
        assert normalize_phone("+14155550100") == "+14155550100"


class TestValidate:
    @pytest.mark.parametrize("phone", ["+919876543210", "919876543210", "+1 415 555 0100", "+44 (20) 7946-0958"])
    def test_accepts(self, phone: str) -> None:
        assert is_valid_phone(phone)
        assert validate_phone(phone) == normalize_phone(phone)

    @pytest.mark.parametrize("phone", ["", "+", "0123456789", "+0123", "abc", "+1234567890123456", "+91-98765x43210"])
    def test_rejects(self, phone: str) -> None:
        assert not is_valid_phone(phone)
        with pytest.raises(InvalidInputError, match="Invalid phone number"):
            validate_phone(phone)
