"""
Minimal PIR monitor to debug sensor wiring on the Raspberry Pi.

Prints a line for every rising edge on either sensor; the servo is untouched.

Run (default board pins 11/13):
    PYTHONPATH=src python scripts/motion_monitor.py
"""

from __future__ import annotations

import argparse
import logging
import signal
import time

from pumpkin_pi.config import SensorConfig
from pumpkin_pi.hardware import build_motion_sensors

LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Simple PIR monitor for wiring debug")
    p.add_argument("--left-pin", type=int, default=SensorConfig.left_pin, help="Board pin of the left sensor")
    p.add_argument("--right-pin", type=int, default=SensorConfig.right_pin, help="Board pin of the right sensor")
    p.add_argument("--debounce-ms", type=int, default=SensorConfig.debounce_ms, help="GPIO bouncetime in ms (0 to disable)")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    cfg = SensorConfig(left_pin=args.left_pin, right_pin=args.right_pin, debounce_ms=args.debounce_ms)
    left, right = build_motion_sensors(cfg)
    counts = {"left": 0, "right": 0}

    def _seen(side: str) -> None:
        counts[side] += 1
        print(f"{time.strftime('%H:%M:%S')} {side} motion (#{counts[side]})")

    left.on_motion_detected(lambda: _seen("left"))
    right.on_motion_detected(lambda: _seen("right"))
    left.start()
    right.start()
    LOG.info("Monitoring PIR sensors on left=%s right=%s", cfg.left_pin, cfg.right_pin)

    stop = False

    def handle_sig(sig, frame):
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, handle_sig)

    while not stop:
        time.sleep(0.2)

    left.stop()
    right.stop()
    print(f"left={counts['left']} right={counts['right']}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
