"""
Pumpkin Pi: a servo-driven prop that turns toward motion on a Raspberry Pi.

The package exposes:
- Environment-driven configuration (`config`)
- Hardware adapters for the servo and PIR sensors (`hardware`)
- The servo position state machine (`position_control`)
- Ticker and single-worker dispatcher threads (`scheduling`)
- The process entry point (`cli`)
"""

__all__ = ["config", "hardware", "position_control", "scheduling", "cli"]
