import os
import signal
import threading
import time

from pumpkin_pi import cli, hardware
from pumpkin_pi.config import load_config


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def make_app(gpio):
    cfg = load_config(
        {
            "PUMPKINPI_SERVO_LEFT": "20",
            "PUMPKINPI_SERVO_CENTER": "29",
            "PUMPKINPI_SERVO_RIGHT": "40",
            "PUMPKINPI_SERVO_ROTATE_DELAY": "0",
            "PUMPKINPI_SERVO_CENTER_RESET_INTERVAL": "1h",
        }
    )
    return cli.PumpkinApp(cfg, gpio=gpio)


def test_app_turns_toward_motion_and_resets(gpio):
    app = make_app(gpio)
    app.start()
    try:
        assert app.controller.position == 29
        assert set(gpio.events) == {11, 13}

        gpio.fire(13)
        assert wait_for(lambda: app.controller.position == 40 and not app.controller.moving)

        app.ticker.callback()
        assert wait_for(lambda: app.controller.position == 29 and not app.controller.moving)

        gpio.fire(11)
        assert wait_for(lambda: app.controller.position == 20 and not app.controller.moving)
    finally:
        app.stop()

    assert gpio.events == {}
    assert gpio.cleaned == [12]


def test_main_rejects_bad_config():
    assert cli.main({"PUMPKINPI_SERVO_LEFT": "not-a-number"}) == 1


def test_main_fails_when_gpio_is_missing(monkeypatch):
    def no_gpio():
        raise RuntimeError("RPi.GPIO not available")

    monkeypatch.setattr(hardware, "_load_gpio", no_gpio)
    monkeypatch.setattr(signal, "signal", lambda *args: None)

    assert cli.main({"PUMPKINPI_LOG_LEVEL": "error"}) == 1


def test_main_exits_cleanly_on_sigterm(monkeypatch, gpio):
    monkeypatch.setattr(hardware, "_load_gpio", lambda: gpio)
    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    timer = threading.Timer(0.3, os.kill, args=(os.getpid(), signal.SIGTERM))
    timer.start()
    try:
        rc = cli.main(
            {
                "PUMPKINPI_LOG_LEVEL": "info",
                "PUMPKINPI_SERVO_ROTATE_DELAY": "0",
                "PUMPKINPI_SERVO_CENTER_RESET_INTERVAL": "1h",
            }
        )
    finally:
        timer.cancel()
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    assert rc == 0
    assert gpio.cleaned == [12]
    assert gpio.events == {}
