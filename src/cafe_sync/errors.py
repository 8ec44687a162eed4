"""
Exceptions raised by the terminal side of cafe-sync.

Remote failures split into "unreachable" (transport problems, nothing was
written) and "rejected" (the service answered with a non-success status).
Both reach the caller of a mutating action; bootstrap and reconciliation
only log them.
"""
from typing import Optional


class CafeSyncError(Exception):
    pass


class RemoteError(CafeSyncError):
    """The remote data service could not serve a request."""


class RemoteUnavailableError(RemoteError):
    pass


class WriteRejectedError(RemoteError):
    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"write rejected with status {status_code}: {detail or 'no detail'}")


class ChannelError(CafeSyncError):
    """The push subscription could not be opened or dropped while listening."""


class LifecycleError(CafeSyncError, ValueError):
    pass


class InvalidTransitionError(LifecycleError):
    pass


class PaymentRequiredError(LifecycleError):
    pass


class OrderNotEditableError(LifecycleError):
    pass


class EmptyOrderError(LifecycleError):
    pass


class SoldOutError(LifecycleError):
    pass


class NotFoundError(CafeSyncError, LookupError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class MenuItemNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass
