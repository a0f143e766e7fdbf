"""Run-wide ceiling on failed copies."""

from __future__ import annotations

from .exceptions import FailureBudgetExceeded

DEFAULT_MAX_FAILURES = 10


class FailureBudget:
    """Counts copy failures across an entire run.

    One instance lives for the whole process run and is shared by every
    storage and device; it is never reset.  Not thread-safe (the mirror
    is single-threaded).
    """

    def __init__(self, limit: int = DEFAULT_MAX_FAILURES):
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        self.count = 0

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)

    @property
    def exhausted(self) -> bool:
        return self.count > self.limit

    def record_failure(self) -> int:
        """Charge one failure.  Returns the new count.

        Raises :class:`FailureBudgetExceeded` once the count exceeds
        :attr:`limit`.  Partially written files are left as they are.
        """
        self.count += 1
        if self.count > self.limit:
            raise FailureBudgetExceeded(self.count, self.limit)
        return self.count
