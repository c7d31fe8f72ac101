"""Errors raised by the namespace client."""


class PlatformClientError(Exception):
    """Base class for every failure the CLI reports to the user."""


class ConfigError(PlatformClientError):
    """Required configuration is missing or invalid."""


class OptionError(PlatformClientError):
    """A command-line option value could not be used."""

    def __init__(self, option: str, value: str, reason: str):
        self.option = option
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value '{value}' for option '--{option}': {reason}")


class HttpError(PlatformClientError):
    """Failure talking to a remote endpoint.

    ``status`` is None when no response was received at all.
    """

    prefix = "Error"

    def __init__(self, status: int | None, body: str):
        self.status = status
        self.body = body
        super().__init__(self._format())

    def _format(self) -> str:
        if self.status is None:
            return f"{self.prefix}: {self.body}"
        return f"{self.prefix}, status code: {self.status}\n{self.body}"


class AuthError(HttpError):
    """Token exchange with the OAuth endpoint failed."""

    prefix = "Error from OAuth API"


class ApiError(HttpError):
    """Namespace upsert against the Platform API failed."""

    prefix = "Error from Platform API"


class ApiTimeoutError(ApiError):
    """The Platform API did not answer within the request timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(None, f"Timeout calling Platform API after {timeout:g}s")
