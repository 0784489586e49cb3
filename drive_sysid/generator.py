"""Excitation signal generator and synchronous sampler.

Each characterization tick turns the command read from the live channel
into a drivetrain voltage, applies it and records one telemetry sample:

    quasistatic:  v = v_prior + requested * dt   (requested is a ramp rate, V/s)
    dynamic:      v = requested                  (step)
    unknown:      v = 0

The rotate flag reverses the left side only, turning the straight-line
excitation into an in-place rotation for angular characterization.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .channel import CommandChannel, CommandSnapshot, TestType, read_command
from .config import SYSID_PERIOD
from .sensors import DriveSink, SensorFacade
from .telemetry import Sample, TelemetryBuffer


class GeneratorState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class RunState:
    """Mutable state of one characterization run.

    Attributes:
        start_time: Clock reading at mode entry (seconds).
        prior_voltage: Voltage commanded on the previous tick, before the
            rotate sign is applied (volts).
        tick_count: Ticks processed since mode entry.
        buffer: Samples captured so far.
    """

    start_time: float = 0.0
    prior_voltage: float = 0.0
    tick_count: int = 0
    buffer: TelemetryBuffer = field(default_factory=TelemetryBuffer)


def compute_voltage(command: CommandSnapshot, prior_voltage: float, dt: float) -> float:
    """Compute this tick's commanded voltage.

    Args:
        command: Command read this tick.
        prior_voltage: Voltage commanded on the previous tick (volts).
        dt: Tick period (seconds).

    Returns:
        Commanded voltage (volts).
    """
    if command.test_type is TestType.QUASISTATIC:
        return prior_voltage + command.requested_voltage * dt
    if command.test_type is TestType.DYNAMIC:
        return command.requested_voltage
    return 0.0


def split_voltage(voltage: float, rotate: bool) -> Tuple[float, float]:
    """Return ``(left_volts, right_volts)`` for a commanded voltage."""
    left_volts = -voltage if rotate else voltage
    return left_volts, voltage


class SignalGenerator:
    """Per-tick state machine: command -> actuation -> telemetry.

    The generator holds no run data itself. `begin` hands out a fresh
    `RunState` that the caller threads through `tick` and back into
    `finish`.
    """

    def __init__(
        self,
        sensors: SensorFacade,
        drive: DriveSink,
        channel: CommandChannel,
        period: float = SYSID_PERIOD,
    ) -> None:
        """Initialize the generator.

        Args:
            sensors: Sensor facade sampled every tick.
            drive: Actuation sink receiving the per-side voltages.
            channel: Live channel providing commands and receiving telemetry.
            period: Fixed tick period (seconds), used for ramp integration.

        Raises:
            ValueError: If period is not positive.
        """
        if period <= 0:
            raise ValueError(f"Tick period must be positive, got {period}")

        self.sensors = sensors
        self.drive = drive
        self.channel = channel
        self.period = period
        self.state = GeneratorState.IDLE

    def begin(self, start_time: float) -> RunState:
        """Enter the ACTIVE state and return a fresh run state."""
        if self.state is GeneratorState.ACTIVE:
            logging.warning("Characterization run restarted without finishing the previous one")
        self.state = GeneratorState.ACTIVE
        return RunState(start_time=start_time)

    def tick(self, run: RunState, now: float) -> Optional[Sample]:
        """Run one characterization tick.

        Args:
            run: State of the current run, mutated in place.
            now: Seconds since the run started.

        Returns:
            The sample appended to the buffer, or None when IDLE.
        """
        if self.state is not GeneratorState.ACTIVE:
            return None

        command = read_command(self.channel)
        voltage = compute_voltage(command, run.prior_voltage, self.period)
        run.prior_voltage = voltage

        left_volts, right_volts = split_voltage(voltage, command.rotate)
        self.drive.tank_drive_volts(left_volts, right_volts)

        sample = Sample(
            timestamp=now,
            left_voltage=left_volts,
            right_voltage=right_volts,
            left_position=self.sensors.left_position(),
            right_position=self.sensors.right_position(),
            left_rate=self.sensors.left_rate(),
            right_rate=self.sensors.right_rate(),
            gyro_angle=self.sensors.gyro_angle(),
            gyro_rate=self.sensors.gyro_rate(),
        )
        run.buffer.append(sample)
        run.tick_count += 1
        return sample

    def finish(self, run: RunState) -> str:
        """Return to IDLE and drain the run's buffer to the channel.

        Returns:
            The serialized telemetry that was published.
        """
        self.state = GeneratorState.IDLE
        return run.buffer.drain_and_serialize(self.channel)
