"""Error kinds surfaced to callers of the metrics service."""


class DartLensError(Exception):
    """Base class for errors raised by dartlens."""


class InputValidationError(DartLensError):
    """Raised before any network call when required parameters or keys are missing."""

    def __init__(self, kind: str, detail: str = "") -> None:
        super().__init__(detail or kind)
        self.kind = kind
        self.detail = detail


class UpstreamError(DartLensError):
    """Raised when an external provider cannot satisfy a request."""
