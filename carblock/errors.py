# carblock/errors.py
"""
Application error taxonomy.
Every error carries a stable category and a human-readable message.
Client-fixable errors return their message as "error"; server-side
categories return only the generic category and the cause goes to the log.
"""


class AppError(Exception):
    status_code = 500
    category = "Internal server error"
    expose_details = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.category

    def to_response(self) -> dict:
        if self.expose_details:
            return {"error": self.message, "details": f"{self.category}: {self.message}"}
        return {"error": self.category, "details": self.category}


class ValidationError(AppError):
    """Malformed plate/phone/time/body — the user can fix it and retry."""
    status_code = 400
    category = "Validation error"
    expose_details = True


class AuthError(AppError):
    """Missing/invalid/expired token, or acting on another user's resource."""
    status_code = 401
    category = "Authentication error"
    expose_details = True


class NotFoundError(AppError):
    status_code = 404
    category = "Not found"
    expose_details = True


class EncryptionError(AppError):
    status_code = 500
    category = "Encryption error"


class InternalError(AppError):
    status_code = 500
    category = "Internal server error"


class DeliveryError(Exception):
    """An external sender (push/Telegram/telephony/SMS) failed. Never reaches the client."""
