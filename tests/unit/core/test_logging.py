"""Tests for the log masking helpers."""

import pytest

from src.core.logging import mask_email, mask_ip_address


@pytest.mark.parametrize(
    "email, expected",
    [
        ("john.doe@example.com", "jo******@e******.com"),
        ("a@b.io", "a*@b*.io"),
        ("", "***"),
        ("no-at-sign", "***"),
    ],
)
def test_mask_email(email, expected):
    assert mask_email(email) == expected


@pytest.mark.parametrize(
    "address, expected",
    [
        ("203.0.113.77", "203.0.113.***"),
        ("2001:db8:85a3:0:0:8a2e:370:7334", "2001:db8:85a3:****"),
        (None, "unknown"),
        ("testclient", "***"),
    ],
)
def test_mask_ip_address(address, expected):
    assert mask_ip_address(address) == expected
