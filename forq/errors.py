class ForqError(Exception):
    """Base exception for Forq client errors."""
    pass


class ConfigurationError(ForqError):
    """Client was constructed with settings that cannot work."""
    pass


class TransportError(ForqError):
    """The request could not be sent or the response could not be decoded."""
    pass


class ForqServerError(ForqError):
    """The server answered with an error body."""

    def __init__(self, code: str, status_code: int):
        super().__init__(code)
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ForqServerError(code={self.code!r}, status_code={self.status_code})"
