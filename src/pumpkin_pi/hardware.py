"""
Hardware adapters for the hobby servo and the PIR motion sensors.

The goal is to keep hardware-specific code isolated so the controller can be
unit-tested with fakes. `RPi.GPIO` is imported lazily to avoid failures on
non-Pi development machines; every adapter also accepts an injected `gpio`
module.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .config import SensorConfig, ServoConfig

LOG = logging.getLogger(__name__)

# Duty cycle (percent of a 20 ms period) for 0 and 180 degrees
MIN_DUTY = 2.5
MAX_DUTY = 12.5


class ServoError(RuntimeError):
    """A single servo move could not be performed."""


def _load_gpio():
    try:
        import RPi.GPIO as GPIO  # type: ignore
    except ImportError as exc:  # pragma: no cover - exercised on hardware
        raise RuntimeError(
            "RPi.GPIO not available; run on Raspberry Pi or inject a GPIO stub."
        ) from exc
    return GPIO


def angle_to_duty(angle: int) -> float:
    """Convert a servo angle (0..180) to a PWM duty cycle in percent."""
    if not 0 <= angle <= 180:
        raise ServoError(f"servo angle must be between 0-180, got {angle}")
    return MIN_DUTY + (angle / 180.0) * (MAX_DUTY - MIN_DUTY)


class ServoDriver:
    """
    Positional hobby servo driven by software PWM on one GPIO pin.

    `move()` is synchronous: it sets the duty cycle and returns. Repeating the
    same angle is harmless.
    """

    def __init__(self, cfg: ServoConfig, *, gpio=None, name: str = "servo") -> None:
        self.cfg = cfg
        self.name = name
        self._gpio = gpio  # allows injecting fake GPIO in tests
        self._pwm = None

    def _ensure_pwm(self):
        if self._pwm is not None:
            return self._pwm
        if self._gpio is None:
            self._gpio = _load_gpio()
        GPIO = self._gpio
        GPIO.setmode(GPIO.BOARD)
        GPIO.setup(self.cfg.pin, GPIO.OUT)
        pwm = GPIO.PWM(self.cfg.pin, self.cfg.pwm_hz)
        pwm.start(0)
        self._pwm = pwm
        LOG.info("%s PWM started on pin %s at %s Hz", self.name, self.cfg.pin, self.cfg.pwm_hz)
        return self._pwm

    def open(self) -> None:
        """
        Claim the pin and start PWM.

        Raises RuntimeError when RPi.GPIO is missing; call at startup so a
        missing GPIO library stops the process instead of failing every step.
        """
        self._ensure_pwm()

    def move(self, angle: int) -> None:
        """
        Command the servo to `angle` degrees.

        Raises ServoError, and only ServoError, for out-of-range angles, a
        failed PWM setup or a rejected duty cycle.
        """
        duty = angle_to_duty(angle)
        try:
            pwm = self._ensure_pwm()
            LOG.debug("%s move -> %d (duty %.2f%%)", self.name, angle, duty)
            pwm.ChangeDutyCycle(duty)
        except (RuntimeError, ValueError, OSError) as exc:
            raise ServoError(f"{self.name} failed to move to {angle}: {exc}") from exc

    def close(self) -> None:
        if self._pwm is None:
            return
        self._pwm.stop()
        self._gpio.cleanup(self.cfg.pin)
        self._pwm = None


class MotionSensor:
    """
    PIR motion sensor read through a GPIO rising-edge interrupt.

    Callbacks run on RPi.GPIO's event thread; keep them short and hand real
    work off to another thread.
    """

    def __init__(
        self,
        pin: int,
        *,
        debounce_ms: int = 0,
        gpio=None,
        name: str = "pir",
    ) -> None:
        self.pin = pin
        self.debounce_ms = debounce_ms
        self.name = name
        self._gpio = gpio
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._started = False

    def _ensure_gpio(self):
        if self._gpio is None:
            self._gpio = _load_gpio()
        return self._gpio

    def on_motion_detected(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def start(self) -> None:
        """
        Configure the pin and register the edge interrupt.
        Safe to call multiple times.
        """
        if self._started:
            return
        GPIO = self._ensure_gpio()
        GPIO.setmode(GPIO.BOARD)
        GPIO.setup(self.pin, GPIO.IN, pull_up_down=GPIO.PUD_DOWN)
        kwargs = {}
        if self.debounce_ms and self.debounce_ms > 0:
            kwargs["bouncetime"] = self.debounce_ms
        GPIO.add_event_detect(self.pin, GPIO.RISING, callback=self._handle_edge, **kwargs)
        self._started = True
        LOG.info("%s listening on pin %s", self.name, self.pin)

    def stop(self) -> None:
        if not self._started:
            return
        GPIO = self._ensure_gpio()
        if GPIO.getmode() is not None:
            GPIO.remove_event_detect(self.pin)
        self._started = False

    def _handle_edge(self, channel) -> None:
        LOG.debug("%s motion detected on channel %s", self.name, channel)
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception:
                LOG.exception("%s motion callback failed", self.name)


def build_servo_driver(cfg: ServoConfig, *, gpio=None) -> ServoDriver:
    return ServoDriver(cfg, gpio=gpio, name=f"servo@{cfg.pin}")


def build_motion_sensors(cfg: SensorConfig, *, gpio=None) -> tuple[MotionSensor, MotionSensor]:
    """Create the (left, right) sensor pair described by `cfg`."""
    left = MotionSensor(cfg.left_pin, debounce_ms=cfg.debounce_ms, gpio=gpio, name="left-pir")
    right = MotionSensor(cfg.right_pin, debounce_ms=cfg.debounce_ms, gpio=gpio, name="right-pir")
    return left, right
