"""
OTP lifecycle, storage and delivery services
"""
