"""Sensor and actuator interfaces for the drivetrain.

The signal generator only sees two small capabilities:
- `SensorFacade`: six zero-argument reads in SI units
- `DriveSink`: per-side voltage commands and stop

`DrivetrainSensors` adapts a raw drivetrain (encoders) and gyro to the
facade, applying the unit and sign conventions in one place.
"""

import math
from typing import Dict, Protocol

from .config import DEBUG_KEYS


class SensorFacade(Protocol):
    """Pull-style sensor reads.

    Positions in meters, rates in m/s, gyro angle in radians and gyro rate
    in rad/s. Angle increases with counter-clockwise rotation. Reads have no
    side effects and never fail.
    """

    def left_position(self) -> float: ...

    def left_rate(self) -> float: ...

    def right_position(self) -> float: ...

    def right_rate(self) -> float: ...

    def gyro_angle(self) -> float: ...

    def gyro_rate(self) -> float: ...


class DriveSink(Protocol):
    """Drivetrain actuation."""

    def tank_drive_volts(self, left_volts: float, right_volts: float) -> None: ...

    def stop(self) -> None: ...


class EncoderDrivetrain(Protocol):
    """Raw drivetrain encoder interface (meters, m/s)."""

    def get_left_distance(self) -> float: ...

    def get_right_distance(self) -> float: ...

    def get_left_rate(self) -> float: ...

    def get_right_rate(self) -> float: ...

    def reset_encoders(self) -> None: ...


class Gyro(Protocol):
    """Raw gyro interface, degrees and degrees/second."""

    def get_angle_z(self) -> float: ...

    def get_rate_z(self) -> float: ...

    def reset(self) -> None: ...


class DrivetrainSensors:
    """Sensor facade over a drivetrain's encoders and a yaw gyro.

    The gyro angle is reported as ``radians(raw_yaw)``. The historical
    formulation negates the raw yaw twice (once for the clockwise-positive
    convention, once more before conversion), which nets out to no
    negation. The rate keeps the raw sign as well and is converted to rad/s.
    """

    def __init__(self, drivetrain: EncoderDrivetrain, gyro: Gyro) -> None:
        self.drivetrain = drivetrain
        self.gyro = gyro

    def left_position(self) -> float:
        return self.drivetrain.get_left_distance()

    def left_rate(self) -> float:
        return self.drivetrain.get_left_rate()

    def right_position(self) -> float:
        return self.drivetrain.get_right_distance()

    def right_rate(self) -> float:
        return self.drivetrain.get_right_rate()

    def gyro_angle(self) -> float:
        return math.radians(self.gyro.get_angle_z())

    def gyro_rate(self) -> float:
        return math.radians(self.gyro.get_rate_z())

    def reset(self) -> None:
        """Zero the encoders and the gyro before a characterization run."""
        self.drivetrain.reset_encoders()
        self.gyro.reset()


def debug_readings(sensors: SensorFacade) -> Dict[str, float]:
    """Encoder readings keyed by their debug channel names."""
    values = (
        sensors.left_position(),
        sensors.left_rate(),
        sensors.right_position(),
        sensors.right_rate(),
    )
    return dict(zip(DEBUG_KEYS, values))


def reset_sensors(sensors: SensorFacade) -> bool:
    """Reset the sensors if the facade supports it.

    Returns:
        True if a reset was performed, False if the facade has no reset.
    """
    reset = getattr(sensors, "reset", None)
    if reset is None:
        return False
    reset()
    return True
