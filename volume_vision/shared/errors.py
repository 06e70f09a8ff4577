class ApplicationError(Exception):
    """Base error for known application failures."""


class CameraPermissionError(ApplicationError):
    """Raised when the camera device cannot be acquired."""


class InfrastructureError(ApplicationError):
    """Raised when an infrastructure adapter fails."""


class ModelUnavailableError(InfrastructureError):
    """Raised when the object detector cannot be initialised."""


class DetectionCallError(InfrastructureError):
    """Raised when a single detector invocation fails."""


class ConfidenceCallError(InfrastructureError):
    """Raised when the confidence service cannot produce a score."""
