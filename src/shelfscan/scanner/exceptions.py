"""Exceptions for scan reconciliation."""


class ReconciliationInputInvalid(ValueError):
    """A record handed to the reconciler violates the caller contract.

    Unlike probe failures this is a programming error in the scan driver,
    not environmental flakiness, so it propagates.
    """
