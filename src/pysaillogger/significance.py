"""Persist decision for incoming position samples.

The evaluator is pure: it reads the motion state and the last persisted mark
and returns a :class:`Decision`. Committing the position, building the record
and resetting aggregates are left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from pysaillogger.config import SignificanceThresholds
from pysaillogger.geo import distance_nm, heading_delta
from pysaillogger.ingestion.motion import MotionState
from pysaillogger.models.position import Position

_logger = logging.getLogger(__name__)


class PersistReason(StrEnum):
    ANOMALY = "anomaly"
    FIRST_FIX = "first_fix"
    RATE_LIMITED = "rate_limited"
    MAX_INTERVAL = "max_interval"
    MOVING_INTERVAL = "moving_interval"
    DISTANCE = "distance"
    TURN = "turn"
    SPEED_BAND = "speed_band"
    NONE = "none"


@dataclass(frozen=True)
class Decision:
    persist: bool
    reason: PersistReason
    detail: str = ""

    @property
    def rejected(self) -> bool:
        """True when the position must not be committed to the motion state."""
        return self.reason is PersistReason.ANOMALY


@dataclass(frozen=True)
class PersistMark:
    """Where and when (epoch seconds) the last record was committed.

    ``position`` is ``None`` until the first fix has been seen.
    """

    position: Position | None
    at: float


class SignificanceEvaluator:
    """Decide whether a new position is worth a durable record.

    Parameters
    ----------
    thresholds : SignificanceThresholds
        Distances, speeds, angles and intervals driving the rules.
    """

    def __init__(self, thresholds: SignificanceThresholds | None = None) -> None:
        self.thresholds = thresholds or SignificanceThresholds()

    def evaluate(
        self,
        new_position: Position,
        motion: MotionState,
        last_persisted: PersistMark,
        now: float,
    ) -> Decision:
        """Evaluate one position sample.

        Parameters
        ----------
        new_position : Position
            The freshly decoded position.
        motion : MotionState
            Rolling state; ``motion.position`` is the previous accepted raw
            position, not yet replaced by *new_position*.
        last_persisted : PersistMark
            Last committed record.
        now : float
            Current time in epoch seconds.

        Returns
        -------
        Decision
            ``persist`` tells whether to write a record; ``reason`` names the
            rule that decided it.
        """
        t = self.thresholds

        if motion.position is not None and motion.position_time is not None:
            jump = distance_nm(motion.position, new_position)
            since_previous = now - motion.position_time
            if jump >= t.anomaly_distance and since_previous <= t.anomaly_window:
                _logger.warning(
                    "Rejecting position %s: %.1f nm from the previous fix within %.0fs",
                    new_position.to_signalk(),
                    jump,
                    since_previous,
                )
                return Decision(False, PersistReason.ANOMALY, f"{jump:.2f} nm in {since_previous:.0f}s")

        if last_persisted.position is None:
            return Decision(False, PersistReason.FIRST_FIX)

        elapsed = now - last_persisted.at
        if elapsed < t.min_persist_interval:
            return Decision(False, PersistReason.RATE_LIMITED)

        if elapsed >= t.max_interval:
            return Decision(True, PersistReason.MAX_INTERVAL, f"{elapsed:.0f}s since last entry")

        moving = motion.is_moving(t.speed_threshold)
        if moving and elapsed >= t.moving_interval:
            return Decision(True, PersistReason.MOVING_INTERVAL, f"{elapsed:.0f}s since last entry")

        moved = distance_nm(last_persisted.position, new_position)
        if moved >= t.min_distance:
            return Decision(True, PersistReason.DISTANCE, f"moved {moved:.2f} nm")

        if moving and len(motion.course_window) == motion.course_window.maxlen:
            turned = heading_delta(motion.course_window[-1], motion.course_window[0])
            if abs(turned) > t.turn_threshold:
                return Decision(True, PersistReason.TURN, f"turned {turned:.1f} deg")

        band = self._crossed_band(motion)
        if band is not None:
            return Decision(True, PersistReason.SPEED_BAND, f"crossed {band:.1f} kn")

        return Decision(False, PersistReason.NONE)

    def _crossed_band(self, motion: MotionState) -> float | None:
        """Return the speed band the current speed just crossed, if any.

        A crossing needs a full window of prior speeds all on the other side
        of the band.
        """
        current = motion.speed_over_ground
        window = motion.speed_window
        if current is None or len(window) < (window.maxlen or 0):
            return None

        for multiplier in self.thresholds.speed_bands:
            band = multiplier * self.thresholds.speed_threshold
            if current <= band and all(previous > band for previous in window):
                return band
            if current > band and all(previous <= band for previous in window):
                return band
        return None
