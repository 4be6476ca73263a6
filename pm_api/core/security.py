# pm_api/core/security.py
from __future__ import annotations

import re
from dataclasses import dataclass

import bcrypt

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).{8,}$")


@dataclass(frozen=True)
class SigningKey:
    """HMAC-SHA512 key material shared by every token issuer and validator."""

    material: bytes

    @classmethod
    def from_hex(cls, secret: str) -> "SigningKey":
        try:
            material = bytes.fromhex(secret.strip())
        except ValueError as e:
            raise RuntimeError("JWT_SECRET must be a hex encoded string") from e
        if not material:
            raise RuntimeError("JWT_SECRET is empty")
        return cls(material)

    def __repr__(self) -> str:
        return f"SigningKey(<{len(self.material)} bytes>)"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_password(password: str | None) -> bool:
    return bool(password) and PASSWORD_PATTERN.match(password) is not None
