"""Custom exception classes for podtrunk."""


class PodTrunkError(Exception):
    """Base exception for podtrunk."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(PodTrunkError):
    """Submitted specification failed validation."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(PodTrunkError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class ConflictError(PodTrunkError):
    """Resource state conflict."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details, status_code=409)


class HostingAPIError(PodTrunkError):
    """Transport, auth or API failure talking to the Git hosting service."""

    def __init__(self, message: str, http_status: int | None = None):
        self.http_status = http_status
        details = {"http_status": http_status} if http_status is not None else None
        super().__init__("HOSTING_API_ERROR", message, details, status_code=502)


class InvalidJobStateError(PodTrunkError):
    """A claimed submission job matches no runnable step."""

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        self.reason = message
        super().__init__(
            "INVALID_JOB_STATE",
            f"Submission job '{job_id}': {message}",
            {"job_id": job_id},
            status_code=500,
        )
