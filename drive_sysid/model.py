"""
Differential drive model used for bench runs without hardware.

This module provides:
- Arcade to tank mixing for teleoperation
- A simulated drivetrain whose sides follow the voltage balance
      V = kS * sign(v) + kV * v + kA * a
  which is the model the offline characterization tool fits
- A simulated yaw gyro driven by the drivetrain's wheel speed difference
"""

import math
from typing import Optional, Tuple

import numpy as np

from .config import MAX_VOLTAGE, SIM_KA, SIM_KS, SIM_KV, TRACK_WIDTH


def arcade_to_tank(forward: float, rotation: float) -> Tuple[float, float]:
    """
    Mix arcade inputs into left and right outputs.

    For a differential drive, turning counter-clockwise slows the left side
    and speeds up the right side:
        left = forward - rotation
        right = forward + rotation

    Args:
        forward: Forward demand in [-1, 1]
        rotation: Rotation demand in [-1, 1], positive counter-clockwise

    Returns:
        tuple[float, float]: (left, right) outputs clamped to [-1, 1]

    Example:
        >>> arcade_to_tank(0.5, 0.25)
        (0.25, 0.75)
    """
    left = forward - rotation
    right = forward + rotation

    # Clamp outputs to the normalized range
    left = max(-1.0, min(1.0, left))
    right = max(-1.0, min(1.0, right))

    return left, right


class SimulatedGyro:
    """Yaw gyro reporting degrees, counter-clockwise positive."""

    def __init__(self) -> None:
        self.angle_deg: float = 0.0
        self.rate_deg: float = 0.0

    def get_angle_z(self) -> float:
        return self.angle_deg

    def get_rate_z(self) -> float:
        return self.rate_deg

    def reset(self) -> None:
        self.angle_deg = 0.0
        self.rate_deg = 0.0

    def integrate(self, rate_deg: float, dt: float) -> None:
        """Advance the angle by a constant rate over dt seconds."""
        self.rate_deg = rate_deg
        self.angle_deg += rate_deg * dt


class SimulatedDrivetrain:
    """Two-sided drivetrain plant with encoders and a gyro.

    State is kept as ``[left, right]`` arrays. Commanded voltages hold until
    the next command and the plant only moves when `update` is called.

    Attributes:
        track_width: Distance between the wheels (meters).
        ks: Static friction voltage (V).
        kv: Velocity gain (V per m/s).
        ka: Acceleration gain (V per m/s²).
        max_voltage: Symmetric limit applied to commanded voltages (V).
        gyro: Gyro integrated from the wheel speed difference.
    """

    def __init__(
        self,
        track_width: float = TRACK_WIDTH,
        ks: float = SIM_KS,
        kv: float = SIM_KV,
        ka: float = SIM_KA,
        max_voltage: float = MAX_VOLTAGE,
        gyro: Optional[SimulatedGyro] = None,
    ) -> None:
        """Initialize the simulated drivetrain.

        Raises:
            ValueError: If a physical parameter is not positive.
        """
        if track_width <= 0 or kv <= 0 or ka <= 0 or max_voltage <= 0:
            raise ValueError("track_width, kv, ka and max_voltage must be positive")
        if ks < 0:
            raise ValueError(f"ks must be non-negative, got {ks}")

        self.track_width = track_width
        self.ks = ks
        self.kv = kv
        self.ka = ka
        self.max_voltage = max_voltage
        self.gyro = gyro if gyro is not None else SimulatedGyro()

        self._volts = np.zeros(2)
        self._velocity = np.zeros(2)
        self._position = np.zeros(2)

    # ---------------------------------------------------------- actuation

    def tank_drive_volts(self, left_volts: float, right_volts: float) -> None:
        limit = self.max_voltage
        self._volts = np.clip(np.array([left_volts, right_volts], dtype=float), -limit, limit)

    def stop(self) -> None:
        self._volts = np.zeros(2)

    @property
    def applied_volts(self) -> Tuple[float, float]:
        return float(self._volts[0]), float(self._volts[1])

    # ----------------------------------------------------------- encoders

    def get_left_distance(self) -> float:
        return float(self._position[0])

    def get_right_distance(self) -> float:
        return float(self._position[1])

    def get_left_rate(self) -> float:
        return float(self._velocity[0])

    def get_right_rate(self) -> float:
        return float(self._velocity[1])

    def reset_encoders(self) -> None:
        self._position = np.zeros(2)

    # --------------------------------------------------------- simulation

    def update(self, dt: float) -> None:
        """Advance the plant by dt seconds under the held voltages."""
        if dt <= 0:
            return

        volts = self._volts
        v = self._velocity
        moving = v != 0.0

        # Friction opposes motion, or the applied voltage when at rest
        direction = np.where(moving, np.sign(v), np.sign(volts))
        accel = (volts - self.ks * direction - self.kv * v) / self.ka

        # Stiction holds a wheel at rest until the voltage exceeds kS
        stuck = ~moving & (np.abs(volts) <= self.ks)
        accel[stuck] = 0.0

        v_new = v + accel * dt

        # Friction can stop a wheel but never reverse it
        reversed_ = moving & (np.sign(v_new) != np.sign(v)) & (np.abs(volts) <= self.ks)
        v_new[reversed_] = 0.0

        self._position = self._position + 0.5 * (v + v_new) * dt
        self._velocity = v_new

        omega = (v_new[1] - v_new[0]) / self.track_width
        self.gyro.integrate(math.degrees(omega), dt)
