from enum import Enum


class DistributionRequestStatus(str, Enum):
    """
    Lifecycle of a distributor application.

    PENDING: Submitted, waiting for a decision from the business
    ACCEPTED: Approved via the emailed accept link (terminal)
    DECLINED: Rejected via the emailed decline link (terminal)
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    def is_terminal(self) -> bool:
        return self != DistributionRequestStatus.PENDING
