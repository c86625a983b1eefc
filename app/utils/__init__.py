"""
Utility Functions
"""
from .otp import generate_otp, hash_otp, otp_matches
from .responses import api_response, error_response

__all__ = ["generate_otp", "hash_otp", "otp_matches", "api_response", "error_response"]
