"""
Runtime failures raised by the tips backend.
"""


class NotFound(LookupError):
    """A query that needs at least one tip returned none."""


class StoreUnavailable(RuntimeError):
    """The persistent store could not be reached or failed a read/write."""


class CredentialExchangeFailed(RuntimeError):
    """The service account key could not be exchanged for an access token."""


class DeliveryFailed(RuntimeError):
    """A single push delivery failed."""

    def __init__(self, user_id: str, message: str):
        super().__init__(f"Delivery to {user_id} failed: {message}")
        self.user_id = user_id
