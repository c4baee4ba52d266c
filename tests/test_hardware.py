import pytest

from pumpkin_pi.config import SensorConfig, ServoConfig
from pumpkin_pi.hardware import (
    MotionSensor,
    ServoDriver,
    ServoError,
    angle_to_duty,
    build_motion_sensors,
)


def test_angle_to_duty_range():
    assert angle_to_duty(0) == pytest.approx(2.5)
    assert angle_to_duty(90) == pytest.approx(7.5)
    assert angle_to_duty(180) == pytest.approx(12.5)
    with pytest.raises(ServoError):
        angle_to_duty(181)
    with pytest.raises(ServoError):
        angle_to_duty(-1)


def test_servo_driver_sets_up_pwm_once(gpio):
    servo = ServoDriver(ServoConfig(pin=12), gpio=gpio)

    servo.move(0)
    servo.move(180)

    pwm = gpio.pwms[12]
    assert gpio.mode == gpio.BOARD
    assert gpio.setups[12][0] == gpio.OUT
    assert pwm.hz == 50
    assert pwm.duty == [0, pytest.approx(2.5), pytest.approx(12.5)]


def test_servo_driver_wraps_pwm_errors(gpio):
    servo = ServoDriver(ServoConfig(pin=12), gpio=gpio)
    servo.move(10)
    gpio.pwms[12].reject = True

    with pytest.raises(ServoError):
        servo.move(20)


def test_servo_close_releases_pin(gpio):
    servo = ServoDriver(ServoConfig(pin=12), gpio=gpio)
    servo.close()  # never started: nothing to release
    assert gpio.cleaned == []

    servo.move(30)
    servo.close()

    assert gpio.pwms[12].stopped is True
    assert gpio.cleaned == [12]


def test_motion_sensor_fires_callbacks_on_rising_edge(gpio):
    sensor = MotionSensor(11, debounce_ms=200, gpio=gpio)
    hits = []
    sensor.on_motion_detected(lambda: hits.append("a"))
    sensor.on_motion_detected(lambda: hits.append("b"))

    sensor.start()
    sensor.start()
    gpio.fire(11)

    edge, _, bouncetime = gpio.events[11]
    assert edge == gpio.RISING
    assert bouncetime == 200
    assert gpio.setups[11] == (gpio.IN, gpio.PUD_DOWN)
    assert hits == ["a", "b"]

    sensor.stop()
    assert 11 not in gpio.events


def test_build_motion_sensors_uses_configured_pins(gpio):
    left, right = build_motion_sensors(SensorConfig(left_pin=11, right_pin=13, debounce_ms=0), gpio=gpio)
    left.start()
    right.start()

    assert set(gpio.events) == {11, 13}
    assert gpio.events[11][2] is None


def test_servo_driver_wraps_setup_errors_and_retries(gpio):
    servo = ServoDriver(ServoConfig(pin=12), gpio=gpio)
    gpio.setup_failures = 1

    with pytest.raises(ServoError):
        servo.move(20)
    assert 12 not in gpio.pwms

    servo.move(20)
    assert gpio.pwms[12].duty == [0, pytest.approx(angle_to_duty(20))]


def test_servo_open_surfaces_setup_errors(gpio):
    servo = ServoDriver(ServoConfig(pin=12), gpio=gpio)
    gpio.setup_failures = 1

    with pytest.raises(RuntimeError) as excinfo:
        servo.open()
    assert not isinstance(excinfo.value, ServoError)


def test_motion_sensor_keeps_firing_after_callback_error(gpio):
    sensor = MotionSensor(11, gpio=gpio)
    hits = []

    def broken():
        raise ValueError("bad callback")

    sensor.on_motion_detected(broken)
    sensor.on_motion_detected(lambda: hits.append("ok"))
    sensor.start()

    gpio.fire(11)
    gpio.fire(11)

    assert hits == ["ok", "ok"]
