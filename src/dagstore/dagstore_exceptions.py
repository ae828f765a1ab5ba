"""DagStore custom exception module."""


class InvalidPath(Exception):
    """Custom exception thrown when a link path cannot be resolved because the
    starting address is not a well-formed content address or the list of link
    names is empty. Raised before any backend call is made."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class RequestTimeout(Exception):
    """Custom exception thrown when a backend call does not complete within the
    configured `request_timeout`. The backend request itself may still be in
    flight; only the caller stops waiting."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class ProtocolError(Exception):
    """Custom exception thrown when a backend response is missing a field that
    is required to continue (ex. a node without an address or size)."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class NodeNotFound(Exception):
    """Custom exception thrown by a backend when no node exists for a given
    address."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors
