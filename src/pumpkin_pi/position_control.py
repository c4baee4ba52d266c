"""
Servo position state machine: turn toward motion, drift back to center.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol

from .config import MotionWindow, ServoConfig
from .hardware import ServoError

LOG = logging.getLogger(__name__)


class Servo(Protocol):
    def move(self, angle: int) -> None:
        """Command `angle`; raise ServoError when the move cannot be made."""


class Side(enum.Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass
class StepFailure:
    position: int
    error: str


@dataclass
class MoveResult:
    trigger: str
    start: int
    target: int
    steps: list[int] = field(default_factory=list)
    failures: list[StepFailure] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures


def is_active(hour: int, start: int, end: int, enabled: bool) -> bool:
    """True when motion should move the servo at `hour` (always, if disabled)."""
    if enabled:
        return start <= hour < end
    return True


class PositionController:
    """
    Owns the servo position and serializes every movement sequence.

    Design notes:
    - A non-blocking lock stands in for the "moving" flag; a trigger that
      finds it held is discarded, never queued.
    - Positions advance optimistically: a failed step is logged and recorded
      but the sequence carries on to the target.
    - Can be exercised with fakes by injecting servo, now and sleep.
    """

    def __init__(
        self,
        servo: Servo,
        servo_cfg: ServoConfig,
        window: MotionWindow,
        *,
        now: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.servo = servo
        self.cfg = servo_cfg
        self.window = window
        self._now = now
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._position = servo_cfg.center

    @property
    def position(self) -> int:
        return self._position

    @property
    def moving(self) -> bool:
        return self._lock.locked()

    def target_for(self, side: Side) -> int:
        return self.cfg.left if side is Side.LEFT else self.cfg.right

    def home(self) -> None:
        """Move straight to center once at startup; failures are not fatal."""
        LOG.debug("setting servo to center position")
        with self._lock:
            try:
                self.servo.move(self.cfg.center)
            except ServoError as exc:
                LOG.error("initial centering failed: %s", exc)
            self._position = self.cfg.center

    def handle_motion(self, side: Side) -> Optional[MoveResult]:
        """
        Rotate toward `side` if inside the active window and not already there.

        Returns None when the call was a no-op.
        """
        LOG.debug("%s motion detected", side.value)
        hour = self._now().hour
        if not is_active(hour, self.window.start_hour, self.window.end_hour, self.window.enabled):
            LOG.debug(
                "hour %d outside motion times [%d, %d); ignoring",
                hour,
                self.window.start_hour,
                self.window.end_hour,
            )
            return None
        target = self.target_for(side)
        return self._run(f"{side.value}-motion", target)

    def reset_to_center(self) -> Optional[MoveResult]:
        """Return to center after inactivity. Ignores the active window."""
        LOG.debug("executing reset back to center")
        return self._run("center-reset", self.cfg.center)

    def _run(self, trigger: str, target: int) -> Optional[MoveResult]:
        if not self._lock.acquire(blocking=False):
            LOG.debug("%s ignored: servo already moving", trigger)
            return None
        try:
            if self._position == target:
                LOG.debug("%s ignored: already at %d", trigger, target)
                return None
            return self._step_to(trigger, target)
        finally:
            self._lock.release()

    def _step_to(self, trigger: str, target: int) -> MoveResult:
        start = self._position
        direction = 1 if target > start else -1
        result = MoveResult(trigger=trigger, start=start, target=target)
        LOG.info("%s: stepping servo %d -> %d", trigger, start, target)
        began = self._clock()
        for angle in range(start, target + direction, direction):
            self._sleep(self.cfg.rotate_delay_s)
            try:
                self.servo.move(angle)
            except Exception as exc:
                # a failed step never ends the sequence
                LOG.error("%s: step to %d failed: %s", trigger, angle, exc)
                result.failures.append(StepFailure(position=angle, error=str(exc)))
            result.steps.append(angle)
            self._position = angle
        self._position = target
        result.elapsed_s = self._clock() - began
        if result.failures:
            LOG.warning(
                "%s: reached %d with %d failed step(s)", trigger, target, len(result.failures)
            )
        return result
