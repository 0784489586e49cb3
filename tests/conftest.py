"""Shared fakes for the controller tests."""

from typing import List, Tuple

import pytest

from drive_sysid.channel import InMemoryChannel
from drive_sysid.robot import SysIdRobot


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt

    sleep = advance


class FakeSensors:
    """Sensor facade returning fixed values and counting resets."""

    def __init__(self) -> None:
        self.values = {
            "left_position": 1.0,
            "right_position": 2.0,
            "left_rate": 0.1,
            "right_rate": 0.2,
            "gyro_angle": 0.3,
            "gyro_rate": 0.4,
        }
        self.resets = 0

    def left_position(self) -> float:
        return self.values["left_position"]

    def left_rate(self) -> float:
        return self.values["left_rate"]

    def right_position(self) -> float:
        return self.values["right_position"]

    def right_rate(self) -> float:
        return self.values["right_rate"]

    def gyro_angle(self) -> float:
        return self.values["gyro_angle"]

    def gyro_rate(self) -> float:
        return self.values["gyro_rate"]

    def reset(self) -> None:
        self.resets += 1


class RecordingDrive:
    """Actuation sink recording every command."""

    def __init__(self) -> None:
        self.commands: List[Tuple[float, float]] = []
        self.stops = 0

    def tank_drive_volts(self, left_volts: float, right_volts: float) -> None:
        self.commands.append((left_volts, right_volts))

    def stop(self) -> None:
        self.stops += 1
        self.commands.append((0.0, 0.0))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sensors() -> FakeSensors:
    return FakeSensors()


@pytest.fixture
def drive() -> RecordingDrive:
    return RecordingDrive()


@pytest.fixture
def channel() -> InMemoryChannel:
    return InMemoryChannel()


@pytest.fixture
def robot(sensors, drive, channel, clock) -> SysIdRobot:
    return SysIdRobot(sensors, drive, channel, period=0.005, clock=clock)
