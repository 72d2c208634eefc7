"""Errors raised on the surface-as-failure paths (chat, history, auth plumbing).

Weather and alerts never raise; they degrade to fixed defaults instead.
"""


class AgriAssistError(Exception):
    pass


class ServiceNotAvailable(AgriAssistError):
    """A remote dependency is not configured; no network call was attempted."""

    def __init__(self, service: str = "AI service"):
        self.service = service
        super().__init__(f"{service} not available")


class ProviderRequestFailed(AgriAssistError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class EmptyResponse(AgriAssistError):
    def __init__(self, message: str = "Empty response from AI model"):
        super().__init__(message)


class SupabaseError(AgriAssistError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
