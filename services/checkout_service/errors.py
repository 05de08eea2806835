from typing import List

from .schemas import PartitionError


class CheckoutError(Exception):
    """The checkout failed as a whole; the customer should retry it."""


class NoVendorResolvable(CheckoutError):
    """No item could be routed to a vendor and the cart carried no vendor hint. Nothing was written."""


class AllWritesFailed(CheckoutError):
    """Every vendor group failed to persist."""

    def __init__(self, partition_errors: List[PartitionError]):
        self.partition_errors = partition_errors
        reasons = "; ".join(f"{e.vendor_id}: {e.reason}" for e in partition_errors)
        super().__init__(f"All {len(partition_errors)} sub-order writes failed ({reasons})")


class StoreError(Exception):
    """The order store rejected or could not take a sub-order."""


class NotifyError(Exception):
    """A vendor notification could not be delivered."""


class NotifyRejected(NotifyError):
    """The notifier refused the alert outright; sending it again would be refused too."""
