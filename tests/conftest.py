import pytest


class FakePWM:
    def __init__(self, pin, hz):
        self.pin = pin
        self.hz = hz
        self.duty = []
        self.stopped = False
        self.reject = False

    def start(self, duty):
        self.duty.append(duty)

    def ChangeDutyCycle(self, duty):
        if self.reject:
            raise ValueError("dutycycle out of range")
        self.duty.append(duty)

    def stop(self):
        self.stopped = True


class FakeGPIO:
    BOARD = "BOARD"
    IN = "IN"
    OUT = "OUT"
    PUD_DOWN = "PUD_DOWN"
    RISING = "RISING"

    def __init__(self):
        self.mode = None
        self.setups = {}
        self.events = {}
        self.pwms = {}
        self.cleaned = []
        self.setup_failures = 0

    def setmode(self, mode):
        self.mode = mode

    def getmode(self):
        return self.mode

    def setup(self, pin, direction, pull_up_down=None):
        if self.setup_failures:
            self.setup_failures -= 1
            raise RuntimeError(f"pin {pin} is busy")
        self.setups[pin] = (direction, pull_up_down)

    def PWM(self, pin, hz):
        pwm = FakePWM(pin, hz)
        self.pwms[pin] = pwm
        return pwm

    def add_event_detect(self, pin, edge, callback=None, bouncetime=None):
        self.events[pin] = (edge, callback, bouncetime)

    def remove_event_detect(self, pin):
        del self.events[pin]

    def cleanup(self, pin=None):
        self.cleaned.append(pin)

    def fire(self, pin):
        _, callback, _ = self.events[pin]
        callback(pin)


@pytest.fixture
def gpio():
    return FakeGPIO()
