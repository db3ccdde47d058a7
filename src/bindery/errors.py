__all__ = ["ConfigurationError"]


class ConfigurationError(Exception):
    """Raised when a service cannot be bound to a valid implementation.

    Attributes:
        service: The service being resolved when the error occurred, if known.
        value: The offending value returned or configured in place of a valid
            implementation, if any.
    """

    def __init__(self, message: str, service=None, value=None):
        super().__init__(message)
        self.service = service
        self.value = value
