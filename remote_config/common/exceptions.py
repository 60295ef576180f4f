"""
Custom Exception Classes for the Remote Config Provider

Hierarchical exception structure for error handling across the provider.
"""


class RemoteConfigError(Exception):
    """Base exception for all remote config errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class DownloadError(RemoteConfigError):
    """Remote download failed (network, HTTP status, empty body)"""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Download Error: {message}", recoverable=True)


class ConfigParseError(RemoteConfigError):
    """Configuration payload could not be parsed or validated"""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(f"Parse Error: {message}", recoverable=True)


class ConfigUnavailableError(RemoteConfigError):
    """No fresh download and no cached fallback - nothing to serve"""

    def __init__(self, cause: BaseException | None = None):
        self.cause = cause
        message = "Application configuration is invalid or unavailable"
        if cause is not None:
            message = f"{message} (download failed: {cause})"
        super().__init__(message, recoverable=False)
        self.__cause__ = cause


class StorageError(RemoteConfigError):
    """Durable cache store errors"""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(f"Storage Error: {message}", recoverable=True)
