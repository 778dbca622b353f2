"""Merchant onboarding service: registration saga and merchant directory."""

__version__ = "0.1.0"
