"""
OTP generation and hashing utilities
"""
import hashlib
import hmac
import secrets


def generate_otp(length: int) -> str:
    """
    Generate a cryptographically secure numeric code

    Returns: `length`-digit code (string), leading zeros kept
    """
    return str(secrets.randbelow(10 ** length)).zfill(length)


def hash_otp(code: str, algorithm: str = "sha256", use_hashing: bool = True) -> str:
    """Hex digest of the code, or the code itself when hashing is disabled"""
    if not use_hashing:
        return code
    return hashlib.new(algorithm, code.encode("utf-8")).hexdigest()


def otp_matches(stored: str, candidate: str) -> bool:
    """Constant-time comparison of two stored-form codes"""
    return hmac.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))
