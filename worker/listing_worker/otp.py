from __future__ import annotations

from typing import Protocol

import pyotp


class OtpGenerator(Protocol):
    def generate(self, secret: str) -> str: ...


class TotpGenerator:
    """Current 6-digit, 30-second TOTP code for an authenticator secret."""

    def generate(self, secret: str) -> str:
        return pyotp.TOTP(secret.replace(" ", "").upper()).now()
