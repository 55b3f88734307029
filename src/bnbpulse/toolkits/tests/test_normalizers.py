"""
Tests for the on-chain unit normalizers.
"""
from decimal import Decimal

import pytest

from bnbpulse.toolkits.utils.normalizers import (
    block_time_span,
    clamp_percentage,
    hex_to_int,
    parse_percentage,
    round_to,
    wei_to_gwei,
    wei_to_token,
    wei_to_whole_tokens,
)


class TestHexToInt:
    """Test JSON-RPC quantity parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("0x1a", 26),
            ("0X1A", 26),
            ("26", 26),
            (26, 26),
            ("0x", 0),
            ("0x0", 0),
        ],
    )
    def test_accepted_forms(self, value, expected):
        assert hex_to_int(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "-5", -1, None, True, "0xzz", "1.5"])
    def test_rejected_forms(self, value):
        with pytest.raises(ValueError):
            hex_to_int(value)


class TestWeiConversion:
    """Test exact wei to token conversion."""

    def test_one_token(self):
        assert wei_to_token("0xDE0B6B3A7640000") == Decimal(1)

    def test_exact_at_large_magnitudes(self):
        whole = 123456789012345678901234567890
        raw = whole * 10**18 + 5

        assert wei_to_token(hex(raw)) == Decimal("123456789012345678901234567890.000000000000000005")
        assert wei_to_whole_tokens(raw) == whole

    def test_max_uint256_does_not_overflow(self):
        raw = 2**256 - 1

        assert wei_to_whole_tokens(raw) == raw // 10**18
        assert int(wei_to_token(raw)) == raw // 10**18

    def test_custom_decimals(self):
        assert wei_to_token(1_500_000, decimals=6) == Decimal("1.5")

    def test_gwei(self):
        assert wei_to_gwei("0x3b9aca00") == 1.0
        assert wei_to_gwei(3_000_000_000) == 3.0


class TestPercentage:
    """Test percentage parsing and clamping."""

    def test_hex_encoded(self):
        assert parse_percentage("0x32") == 50.0

    def test_decimal_string(self):
        assert parse_percentage("45.5") == 45.5

    def test_clamped_high(self):
        assert parse_percentage("0x96") == 100.0
        assert parse_percentage("250") == 100.0

    def test_clamped_low(self):
        assert parse_percentage("-3") == 0.0

    @pytest.mark.parametrize("value, expected", [(-5.0, 0.0), (42.5, 42.5), (130.0, 100.0)])
    def test_clamp_percentage(self, value, expected):
        assert clamp_percentage(value) == expected


class TestBlockTimeSpan:
    """Test timestamp span computation."""

    def test_span_uses_min_and_max(self):
        assert block_time_span(["0x64", "0x5a", "0x6e"]) == 20

    def test_identical_timestamps(self):
        assert block_time_span(["0x10", "0x10", "0x10"]) == 0

    def test_fewer_than_two_samples(self):
        assert block_time_span([]) == 0
        assert block_time_span(["0x10"]) == 0


class TestRoundTo:
    """Test half-up rounding."""

    def test_half_rounds_up(self):
        assert round_to(2.5) == 3.0
        assert round_to(0.125, 2) == 0.13

    def test_decimal_input(self):
        assert round_to(Decimal("1.23456"), 4) == 1.2346
