from __future__ import annotations


class WebUIError(Exception):
    """Base class for all errors raised by the web UI."""


class TransportError(WebUIError):
    """The controller service could not be reached."""


class BackendTimeout(TransportError):
    """The controller service did not answer in time."""


class UnexpectedStatus(WebUIError):
    def __init__(self, status_code: int, url: str, expected: tuple[int, ...]) -> None:
        self.status_code = status_code
        self.url = url
        self.expected = expected
        wanted = ", ".join(str(s) for s in expected)
        super().__init__(f"Expected HTTP status {wanted}, got {status_code} from {url}")


class DecodeError(WebUIError):
    """The controller service returned JSON we cannot decode."""


class MissingParameter(WebUIError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required parameter: {name}")


class TemplateError(WebUIError):
    """A page template is missing or failed to render."""


class ConfigError(WebUIError):
    """Configuration could not be loaded; fatal at startup."""
