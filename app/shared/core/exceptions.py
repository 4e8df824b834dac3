from typing import Optional, Dict, Any


class Ec2BotException(Exception):
    """Base exception for all ec2bot errors."""

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class AdapterError(Ec2BotException):
    """Raised when an AWS inventory call fails."""

    def __init__(
        self,
        message: str,
        code: str = "adapter_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=502, details=details)


class AuthError(Ec2BotException):
    """Raised when the webhook verification token does not match."""

    def __init__(
        self,
        message: str,
        code: str = "auth_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=401, details=details)


class ConfigurationError(Ec2BotException):
    """Raised when application configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        code: str = "config_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=500, details=details)


class EventParseError(Ec2BotException):
    """Raised when an inbound webhook payload cannot be bound to an event."""

    def __init__(
        self,
        message: str,
        code: str = "event_parse_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status_code=400, details=details)
