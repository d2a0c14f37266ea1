"""
Occupancy tracking on a logical timeline.

One entry is admitted per step. Entries are anonymous: only the number of
entries expiring at each future step is kept.
"""

from typing import Dict

from .errors import InvariantViolation


class OccupancyTracker:
    """Maintains live-entry count and the expiration schedule"""

    def __init__(self):
        self.step = 0
        self.occupied = 0
        # {absolute step: entries expiring at that step}
        self.expiration_schedule: Dict[int, int] = {}

    def admit(self, duration: int) -> int:
        """
        Admit one entry holding a slot for `duration` steps.

        Time advances first, so expirations due at the new step are retired
        before the admission is counted. A zero-duration entry therefore
        expires in the step it would start and is never counted.

        Args:
            duration: Tenancy in steps (>= 0)

        Returns:
            Occupancy after the admission
        """
        if duration < 0:
            raise InvariantViolation(f"cannot admit negative tenancy {duration}")

        self._advance()

        if duration > 0:
            self.occupied += 1
            target = self.step + duration
            self.expiration_schedule[target] = self.expiration_schedule.get(target, 0) + 1

        return self.occupied

    def _advance(self):
        self.step += 1
        expiring = self.expiration_schedule.pop(self.step, 0)
        if expiring > self.occupied:
            raise InvariantViolation(
                f"step {self.step}: {expiring} expirations but only "
                f"{self.occupied} live entries"
            )
        self.occupied -= expiring

    def occupancy(self) -> int:
        return self.occupied

    def pending(self) -> int:
        """Total entries still scheduled to expire"""
        return sum(self.expiration_schedule.values())

    def check_invariant(self):
        """Raise InvariantViolation if schedule and live count disagree."""
        stale = [s for s in self.expiration_schedule if s <= self.step]
        if stale:
            raise InvariantViolation(f"expiration buckets in the past: {sorted(stale)}")
        pending = self.pending()
        if pending != self.occupied:
            raise InvariantViolation(
                f"{self.occupied} live entries but {pending} scheduled expirations"
            )

    def __repr__(self):
        return (f"OccupancyTracker(step={self.step}, occupied={self.occupied}, "
                f"buckets={len(self.expiration_schedule)})")
