from __future__ import annotations


class JulesError(Exception):
    """Base error for julesctl."""


class ConfigError(JulesError):
    pass


class NetworkError(JulesError):
    """The request could not be sent or the response could not be read."""


class HttpError(JulesError):
    """Non-2xx response, or a 2xx response whose body is not a JSON object."""

    def __init__(self, status: int, status_text: str, body: str = "") -> None:
        self.status = status
        self.status_text = status_text
        self.body = body
        message = f"{status} {status_text}".strip()
        if body:
            message = f"{message} - {body}"
        super().__init__(message)
