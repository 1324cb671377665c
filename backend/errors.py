"""Exceptions shared by the plan and image services and their clients."""


class PlanGenerationError(Exception):
    """The plan-generation service failed or returned something that is not a plan."""


class ImageFetchError(Exception):
    """Base class for failures of a single image request."""

    status_code = 502


class ImageServiceError(ImageFetchError):
    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


class ImageTimeoutError(ImageFetchError):
    status_code = 504

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Image generation timed out after {timeout:g} seconds. Please retry.")
        self.timeout = timeout


class RateLimitedError(ImageFetchError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Please wait a moment.") -> None:
        super().__init__(message)
