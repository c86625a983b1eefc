"""
Tests for OTP utilities
"""
import pytest
from app.utils import otp as otp_utils
from app.utils.otp import generate_otp, hash_otp, otp_matches


def test_generate_otp():
    """Test OTP generation"""
    otp = generate_otp(6)
    assert len(otp) == 6
    assert otp.isdigit()


def test_generate_otp_keeps_leading_zeros(monkeypatch):
    """Small draws are zero-padded to the full length"""
    monkeypatch.setattr(otp_utils.secrets, "randbelow", lambda upper: 42)
    assert generate_otp(6) == "000042"


def test_generate_otp_draws_full_range(monkeypatch):
    """Upper bound passed to the RNG is 10^length"""
    seen = {}

    def fake_randbelow(upper):
        seen["upper"] = upper
        return upper - 1

    monkeypatch.setattr(otp_utils.secrets, "randbelow", fake_randbelow)
    assert generate_otp(4) == "9999"
    assert seen["upper"] == 10_000


def test_hash_otp_sha256():
    """Test hashing with the default algorithm"""
    assert hash_otp("123456") == "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"


def test_hash_otp_disabled():
    """Hashing disabled stores the code as-is"""
    assert hash_otp("123456", use_hashing=False) == "123456"


def test_hash_otp_unknown_algorithm():
    with pytest.raises(ValueError):
        hash_otp("123456", algorithm="not-a-hash")


def test_otp_matches():
    assert otp_matches(hash_otp("123456"), hash_otp("123456")) == True
    assert otp_matches(hash_otp("123456"), hash_otp("654321")) == False
