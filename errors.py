"""Errors raised by the cart, ledger and store layers."""


class StoreError(Exception):
    """Base class for storefront errors."""


class NotFoundError(StoreError):
    """A referenced product or order does not exist."""


class ValidationError(StoreError):
    """Input rejected before anything was written."""


class PersistenceError(StoreError):
    """The underlying store failed to read or write."""
