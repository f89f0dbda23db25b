"""Tests for order tracking code generation."""

import pytest
from ordering.order.tracking import generate_tracking_code, new_tracking_code, to_base36


class TestBase36:
    def test_values(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"

    def test_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)


class TestGenerate:
    def test_format(self):
        code = generate_tracking_code(prefix="au", now_ms=36**3)
        assert code.startswith("AU1000")
        assert len(code) == len("AU1000") + 4
        assert code.isalnum() and code == code.upper()

    def test_default_prefix_from_settings(self):
        assert generate_tracking_code().startswith("AU")

    def test_codes_differ(self):
        assert len({generate_tracking_code() for _ in range(50)}) == 50

    def test_new_code_is_unused(self):
        assert new_tracking_code().startswith("AU")
