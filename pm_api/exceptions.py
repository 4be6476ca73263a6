# pm_api/exceptions.py
from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Failure kinds raised by the services. Each kind maps to one HTTP status."""

    USER_NOT_FOUND = (404, "User not found")
    NOT_FOUND = (404, "Resource not found")
    UNAUTHENTICATED = (401, "Unauthenticated")
    UNAUTHORIZED = (403, "Not authorized to perform this action")
    INVALID_KEY = (400, "Uncategorized error")
    INVALID_REQUEST = (400, "Invalid request")
    DUPLICATE_ENTITY = (409, "Entity already exists")
    TOKEN_EXPIRED = (401, "Token has expired")
    TOKEN_SIGNATURE_INVALID = (401, "Token signature is invalid")
    TOKEN_INVALID = (401, "Token is invalid")
    TOKEN_MALFORMED = (400, "Malformed token")
    TOKEN_GENERATION_FAILED = (400, "Failed to generate tokens")
    ACCOUNT_INVALID = (400, "Email or password invalid!")
    INVALID_EMAIL_FORMAT = (400, "Invalid email format. Please use a valid email address.")
    OTP_EXPIRED = (400, "OTP has expired")
    OTP_INVALID = (400, "Invalid OTP")
    EMAIL_SENDING_FAILED = (500, "Failed to send email")
    INVALID_PASSWORD_FORMAT = (
        400,
        "Invalid password format. Password must be at least 8 characters long "
        "and contain at least one letter and one number.",
    )
    INTERNAL_ERROR = (500, "Internal server error")

    def __init__(self, status_code: int, default_message: str):
        self.status_code = status_code
        self.default_message = default_message


class AppError(Exception):
    def __init__(self, code: ErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or code.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.code.status_code

    def __repr__(self) -> str:
        return f"AppError({self.code.name}, {self.message!r})"
