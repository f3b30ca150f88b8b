"""
Exceptions raised by the order sync engine and its backends.
"""


class OrderSyncError(Exception):
    """Base class for order sync errors."""


class BackendError(OrderSyncError):
    """The order backend answered with an error."""


class RemoteUnavailable(BackendError):
    """Network or transport failure talking to the order backend."""


class ValidationError(OrderSyncError):
    """An edit or stock-debit request was rejected."""
