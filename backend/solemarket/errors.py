from typing import List, Optional


class SoleMarketError(Exception):
    """Base class for errors raised by the storefront service."""


class BackendError(SoleMarketError):
    """A collaborator (Supabase table, auth, local storage) failed."""


class NotFoundError(SoleMarketError):
    pass


class PermissionDeniedError(SoleMarketError):
    pass


class AuthError(SoleMarketError):
    pass


class EmptyCartError(SoleMarketError):
    pass


class CartConflictError(SoleMarketError):
    """The stored cart changed between read and write."""


class ValidationFailedError(SoleMarketError):
    def __init__(self, messages: List[str], message: Optional[str] = None):
        self.messages = list(messages)
        super().__init__(message or "; ".join(self.messages))
