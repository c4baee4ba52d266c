"""
Process entry point: wire the sensors, the idle ticker and the servo together.

All settings come from `PUMPKINPI_*` environment variables, e.g.:
- `PUMPKINPI_SERVO_LEFT=20 PUMPKINPI_SERVO_RIGHT=40 pumpkin-pi`
- `PUMPKINPI_MOTION_TIMES_ENABLED=true PUMPKINPI_MOTION_TIME_START=17 python -m pumpkin_pi`
"""

from __future__ import annotations

import logging
import signal
import threading
from datetime import datetime
from typing import Mapping, Optional

from .config import ConfigError, PumpkinConfig, load_config, parse_log_level
from .hardware import build_motion_sensors, build_servo_driver
from .position_control import PositionController, Side
from .scheduling import CommandDispatcher, Ticker

LOG = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(cfg: PumpkinConfig) -> None:
    logging.basicConfig(level=parse_log_level(cfg.log_level), format=LOG_FORMAT)


class PumpkinApp:
    """
    Runtime wiring for one servo and two PIR sensors.

    Sensor callbacks and the ticker only post commands to the dispatcher; the
    controller runs on the dispatcher's worker thread.
    """

    def __init__(self, cfg: PumpkinConfig, *, gpio=None) -> None:
        self.cfg = cfg
        self.servo = build_servo_driver(cfg.servo, gpio=gpio)
        self.left_sensor, self.right_sensor = build_motion_sensors(cfg.sensors, gpio=gpio)
        self.controller = PositionController(self.servo, cfg.servo, cfg.window)
        self.dispatcher = CommandDispatcher(is_busy=lambda: self.controller.moving)
        self.ticker = Ticker(
            cfg.servo.reset_interval_s,
            lambda: self.dispatcher.post("center-reset", self.controller.reset_to_center),
            name="center-reset",
        )

    def _motion(self, side: Side) -> None:
        self.dispatcher.post(f"{side.value}-motion", lambda: self.controller.handle_motion(side))

    def start(self) -> None:
        self.servo.open()
        self.controller.home()
        self.dispatcher.start()
        self.left_sensor.on_motion_detected(lambda: self._motion(Side.LEFT))
        self.right_sensor.on_motion_detected(lambda: self._motion(Side.RIGHT))
        self.left_sensor.start()
        self.right_sensor.start()
        self.ticker.start()
        LOG.info(
            "pumpkin-pi running: left=%d center=%d right=%d",
            self.cfg.servo.left,
            self.cfg.servo.center,
            self.cfg.servo.right,
        )

    def stop(self) -> None:
        self.ticker.stop()
        self.left_sensor.stop()
        self.right_sensor.stop()
        self.dispatcher.stop()
        self.servo.close()


def main(environ: Optional[Mapping[str, str]] = None) -> int:
    try:
        cfg = load_config(environ)
    except ConfigError as exc:
        logging.basicConfig(format=LOG_FORMAT)
        LOG.critical("invalid configuration: %s", exc)
        return 1
    configure_logging(cfg)
    LOG.debug("current time: %s", datetime.now())

    stop = threading.Event()

    def handle_sig(sig, frame):
        LOG.info("received signal %s, shutting down", sig)
        stop.set()

    signal.signal(signal.SIGINT, handle_sig)
    signal.signal(signal.SIGTERM, handle_sig)

    app = PumpkinApp(cfg)
    try:
        app.start()
    except (RuntimeError, OSError) as exc:
        LOG.error("failed to start hardware: %s", exc)
        app.stop()
        return 1

    try:
        while not stop.wait(1.0):
            pass
    finally:
        app.stop()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
