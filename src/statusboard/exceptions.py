"""Exception hierarchy for the statusboard service."""


class StatusboardError(Exception):
    """Base exception for all statusboard errors."""


class TransportError(StatusboardError):
    """Network or API-level failure talking to an external service."""

    def __init__(
        self,
        message: str,
        *,
        service: str = "",
        status_code: int | None = None,
    ) -> None:
        """Initialize transport error.

        Args:
            message: Error description.
            service: Name of the service that failed.
            status_code: HTTP status code, when one was received.
        """
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class UnexpectedShapeError(StatusboardError):
    """Response was received but is missing expected fields."""

    def __init__(self, message: str, *, service: str = "") -> None:
        """Initialize shape error.

        Args:
            message: Error description.
            service: Name of the service that returned the payload.
        """
        super().__init__(message)
        self.service = service


class RenderError(StatusboardError):
    """Template rendering failed."""

    def __init__(self, message: str, *, template: str = "") -> None:
        """Initialize render error.

        Args:
            message: Error description.
            template: Name of the template being rendered.
        """
        super().__init__(message)
        self.template = template


class ConfigError(StatusboardError):
    """Subscriber list is missing or invalid."""


class StartupError(StatusboardError):
    """A required external dependency failed to initialize."""
