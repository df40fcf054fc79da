class GatewayError(Exception):
    """A problem resolving one listener, rule or backend.

    ``reason`` is the condition reason reported on the object status.
    """
    reason = "Invalid"

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class ReferenceNotPermitted(GatewayError):
    reason = "RefNotPermitted"


class BackendNotFound(GatewayError):
    reason = "BackendNotFound"


class UnsupportedProtocol(GatewayError):
    reason = "UnsupportedProtocol"


class InvalidKind(GatewayError):
    reason = "InvalidKind"


class FilterError(GatewayError):
    reason = "UnsupportedValue"


class ValidationError(GatewayError):
    reason = "UnsupportedValue"
