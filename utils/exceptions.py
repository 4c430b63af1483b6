"""
Custom Exceptions
Error taxonomy for the branding pipeline
"""


class DarkroomError(Exception):
    """Base error for the branding pipeline"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DarkroomError):
    """Required upstream configuration is missing"""
    pass


class AdmissionError(DarkroomError):
    """Request rejected before any catalog item is touched"""

    status_code = 400


class UnauthenticatedError(AdmissionError):
    """No usable bearer credential, or it does not resolve to an identity"""

    status_code = 401


class ForbiddenError(AdmissionError):
    """Identity resolved but is not on the admin allow-list"""

    status_code = 403

    def __init__(self, message: str, email: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.email = email


class CatalogError(DarkroomError):
    """Commerce platform request failed"""

    def __init__(self, message: str, operation: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.operation = operation


class LLMError(DarkroomError):
    """LLM call failed"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class ChannelStateError(DarkroomError):
    """Progress channel write out of order"""
    pass


class ChannelClosedError(ChannelStateError):
    """Write attempted on a progress channel after its terminal event"""
    pass
