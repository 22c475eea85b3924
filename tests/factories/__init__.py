from __future__ import annotations

"""Re-export factory functions for generating fake test data."""

# flake8: noqa: F401

from .token import auth_headers, service_headers
from .user import STRONG_PASSWORD, create_user, fake_registration

__all__ = [
    "STRONG_PASSWORD",
    "create_user",
    "fake_registration",
    "auth_headers",
    "service_headers",
]
