"""
Configuration for the pumpkin servo and its motion sensors.

Everything is read once at startup from `PUMPKINPI_*` environment variables.

Quick wiring reference (defaults):
- Servo signal on physical header pin 12 (PWM0), powered from 5 V.
- Left PIR sensor on pin 11, right PIR sensor on pin 13.
  Most HC-SR501 boards output 3.3 V and can be wired directly.
- Pin numbers are *board* numbers, not BCM.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "PUMPKINPI_"

# logrus-style names accepted for PUMPKINPI_LOG_LEVEL
LOG_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


class ConfigError(ValueError):
    """Raised when an environment value cannot be parsed or is out of range."""


@dataclass(frozen=True)
class ServoConfig:
    """Servo positions (degrees) and stepping timing."""

    center: int = 32
    left: int = 23
    right: int = 40
    rotate_delay_s: float = 0.150
    reset_interval_s: float = 300.0
    pin: int = 12
    pwm_hz: int = 50


@dataclass(frozen=True)
class SensorConfig:
    """PIR motion sensor wiring."""

    left_pin: int = 11
    right_pin: int = 13
    debounce_ms: int = 200  # PIR outputs are clean; this only drops re-triggers


@dataclass(frozen=True)
class MotionWindow:
    """Hours of the day during which motion moves the servo."""

    enabled: bool = False
    start_hour: int = 18
    end_hour: int = 22


@dataclass(frozen=True)
class PumpkinConfig:
    """Combined configuration used by the controller and the CLI."""

    servo: ServoConfig
    sensors: SensorConfig
    window: MotionWindow
    log_level: str = "debug"


def parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigError(f"invalid boolean {raw!r}")


def parse_duration(raw: str) -> float:
    """
    Parse a duration such as "150ms", "5m" or "1m30s" into seconds.

    A bare "0" is accepted; any other number needs a unit.
    """
    text = raw.strip()
    if text in ("0", "+0", "-0"):
        return 0.0
    sign = 1.0
    if text and text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if not text:
        raise ConfigError(f"invalid duration {raw!r}")
    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ConfigError(f"invalid duration {raw!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def parse_log_level(name: str) -> int:
    """Map a logrus-style level name onto a `logging` level."""
    try:
        return LOG_LEVELS[name.strip().lower()]
    except KeyError:
        raise ConfigError(f"not a valid log level: {name!r}") from None


def _get(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(ENV_PREFIX + key)
    if value is None or value == "":
        return None
    return value


def _int(env: Mapping[str, str], key: str, default: int, low: int, high: int) -> int:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        value = int(raw, 10)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{key}: invalid integer {raw!r}") from None
    if not low <= value <= high:
        raise ConfigError(f"{ENV_PREFIX}{key}: {value} is outside [{low}, {high}]")
    return value


def _duration(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        value = parse_duration(raw)
    except ConfigError as exc:
        raise ConfigError(f"{ENV_PREFIX}{key}: {exc}") from None
    if value < 0:
        raise ConfigError(f"{ENV_PREFIX}{key}: duration must not be negative")
    return value


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        return parse_bool(raw)
    except ConfigError as exc:
        raise ConfigError(f"{ENV_PREFIX}{key}: {exc}") from None


def load_config(environ: Optional[Mapping[str, str]] = None) -> PumpkinConfig:
    """
    Build a PumpkinConfig from `PUMPKINPI_*` variables (os.environ by default).

    Raises ConfigError on unparsable values, invalid log levels or when the
    servo positions are not ordered left <= center <= right.
    """
    env = os.environ if environ is None else environ

    log_level = _get(env, "LOG_LEVEL") or "debug"
    parse_log_level(log_level)

    servo = ServoConfig(
        center=_int(env, "SERVO_CENTER", ServoConfig.center, 0, 180),
        left=_int(env, "SERVO_LEFT", ServoConfig.left, 0, 180),
        right=_int(env, "SERVO_RIGHT", ServoConfig.right, 0, 180),
        rotate_delay_s=_duration(env, "SERVO_ROTATE_DELAY", ServoConfig.rotate_delay_s),
        reset_interval_s=_duration(env, "SERVO_CENTER_RESET_INTERVAL", ServoConfig.reset_interval_s),
        pin=_int(env, "SERVO_GPIO_PIN", ServoConfig.pin, 1, 40),
    )
    if not servo.left <= servo.center <= servo.right:
        raise ConfigError(
            f"servo positions must satisfy left <= center <= right, "
            f"got left={servo.left} center={servo.center} right={servo.right}"
        )
    if servo.reset_interval_s <= 0:
        raise ConfigError(f"{ENV_PREFIX}SERVO_CENTER_RESET_INTERVAL must be positive")

    sensors = SensorConfig(
        left_pin=_int(env, "PIR_LEFT_MOTION_SENSOR_GPIO_PIN", SensorConfig.left_pin, 1, 40),
        right_pin=_int(env, "PIR_RIGHT_MOTION_SENSOR_GPIO_PIN", SensorConfig.right_pin, 1, 40),
    )
    window = MotionWindow(
        enabled=_bool(env, "MOTION_TIMES_ENABLED", MotionWindow.enabled),
        start_hour=_int(env, "MOTION_TIME_START", MotionWindow.start_hour, 0, 23),
        end_hour=_int(env, "MOTION_TIME_END", MotionWindow.end_hour, 0, 24),
    )
    return PumpkinConfig(servo=servo, sensors=sensors, window=window, log_level=log_level)
