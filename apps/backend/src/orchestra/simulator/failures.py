"""Outcome classification for simulated assistant resolutions."""

from pydantic import BaseModel

from .state import Status

CHAOS_MULTIPLIER = 2


class OutcomePolicy(BaseModel):
    """Base warning/error probabilities, doubled while chaos mode is on."""

    warning_pct: float = 0.10
    error_pct: float = 0.05

    def effective(self, chaos: bool) -> tuple[float, float]:
        """Return ``(warning_pct, error_pct)`` with the chaos multiplier applied."""
        multiplier = CHAOS_MULTIPLIER if chaos else 1
        return self.warning_pct * multiplier, self.error_pct * multiplier

    def classify(self, sample: float, chaos: bool) -> Status:
        """Map a ``[0, 1)`` sample onto error / warning / success.

        Buckets are closed below and open above, so a sample sitting exactly
        on a boundary lands in the next bucket.
        """
        warning_pct, error_pct = self.effective(chaos)
        if sample < error_pct:
            return "error"
        if sample < error_pct + warning_pct:
            return "warning"
        return "success"
