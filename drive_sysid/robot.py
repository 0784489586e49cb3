"""Mode controller invoked by the host runtime.

The host calls exactly one callback at a time, to completion, at a fixed
period. Each robot mode has an enter/tick/exit triple; only the
characterization (autonomous) mode runs the signal generator. Leaving it,
normally by disabling the robot, stops the drivetrain and publishes the
collected telemetry.
"""

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional, Protocol, Tuple

from .channel import CommandChannel
from .config import MAX_VOLTAGE, SYSID_PERIOD, TERM_BLUE, TERM_RESET
from .generator import RunState, SignalGenerator
from .model import arcade_to_tank
from .sensors import DriveSink, SensorFacade, debug_readings, reset_sensors


class Mode(Enum):
    DISABLED = "disabled"
    AUTONOMOUS = "autonomous"
    TELEOP = "teleop"
    TEST = "test"

    @classmethod
    def parse(cls, name: str) -> "Mode":
        """Look up a mode by name, case-insensitively.

        Raises:
            ValueError: If the name is not a known mode.
        """
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown mode '{name}'. Expected one of: {valid}") from None


class Simulation(Protocol):
    def update(self, dt: float) -> None: ...


class SysIdRobot:
    """Characterization controller with per-mode lifecycle hooks.

    Attributes:
        generator: Signal generator driving the characterization mode.
        mode: Mode currently entered.
        run: State of the characterization run in progress, None otherwise.
        last_telemetry: String published by the most recent drain.
    """

    def __init__(
        self,
        sensors: SensorFacade,
        drive: DriveSink,
        channel: CommandChannel,
        period: float = SYSID_PERIOD,
        clock: Callable[[], float] = time.monotonic,
        drive_input: Optional[Callable[[], Tuple[float, float]]] = None,
        simulation: Optional[Simulation] = None,
        max_voltage: float = MAX_VOLTAGE,
    ) -> None:
        """Initialize the controller in DISABLED mode.

        Args:
            sensors: Sensor facade sampled by the generator.
            drive: Actuation sink.
            channel: Live channel for commands, telemetry and debug values.
            period: Characterization tick period (seconds).
            clock: Monotonic clock in seconds.
            drive_input: Optional teleop input returning (forward, rotation)
                in [-1, 1].
            simulation: Optional plant advanced once per loop.
            max_voltage: Voltage corresponding to full teleop demand.
        """
        self.sensors = sensors
        self.drive = drive
        self.channel = channel
        self.period = period
        self.clock = clock
        self.drive_input = drive_input
        self.simulation = simulation
        self.max_voltage = max_voltage

        self.generator = SignalGenerator(sensors, drive, channel, period)
        self.mode = Mode.DISABLED
        self.run: Optional[RunState] = None
        self.last_telemetry: str = ""

        self._hooks: Dict[Mode, Tuple[Callable[[], None], ...]] = {
            Mode.DISABLED: (self.disabled_enter, self.disabled_tick, self.disabled_exit),
            Mode.AUTONOMOUS: (
                self.characterization_enter,
                self.characterization_tick,
                self.characterization_exit,
            ),
            Mode.TELEOP: (self.teleop_enter, self.teleop_tick, self.teleop_exit),
            Mode.TEST: (self.test_enter, self.test_tick, self.test_exit),
        }

    # ------------------------------------------------------------ dispatch

    def set_mode(self, mode: Mode) -> None:
        """Switch modes, running the exit hook of the old mode first."""
        if mode is self.mode:
            return
        self.on_exit(self.mode)
        self.mode = mode
        self.on_enter(mode)

    def on_enter(self, mode: Mode) -> None:
        self._hooks[mode][0]()

    def on_tick(self) -> None:
        self._hooks[self.mode][1]()

    def on_exit(self, mode: Mode) -> None:
        self._hooks[mode][2]()

    def robot_periodic(self) -> None:
        """Runs every loop after the mode tick, in every mode.

        Publishes the encoder readings as a debugging aid.
        """
        for key, value in debug_readings(self.sensors).items():
            self.channel.put_number(key, value)

    def simulation_periodic(self, dt: float) -> None:
        if self.simulation is not None:
            self.simulation.update(dt)

    # ---------------------------------------------------- characterization

    def characterization_enter(self) -> None:
        logging.info(f"{TERM_BLUE}Robot in autonomous mode{TERM_RESET}")
        reset_sensors(self.sensors)
        self.run = self.generator.begin(self.clock())

    def characterization_tick(self) -> None:
        if self.run is None:
            return
        self.generator.tick(self.run, self.clock() - self.run.start_time)

    def characterization_exit(self) -> None:
        self.drive.stop()
        if self.run is None:
            return

        elapsed = self.clock() - self.run.start_time
        self.last_telemetry = self.generator.finish(self.run)
        logging.info(
            f"{TERM_BLUE}Collected: {self.run.tick_count} in {elapsed:.3f} seconds{TERM_RESET}"
        )
        self.run = None

    # ---------------------------------------------------------- other modes

    def disabled_enter(self) -> None:
        logging.info("Robot disabled")
        self.drive.stop()

    def disabled_tick(self) -> None:
        pass

    def disabled_exit(self) -> None:
        pass

    def teleop_enter(self) -> None:
        logging.info("Robot in operator control mode")

    def teleop_tick(self) -> None:
        if self.drive_input is None:
            self.drive.tank_drive_volts(0.0, 0.0)
            return
        forward, rotation = self.drive_input()
        left, right = arcade_to_tank(forward, rotation)
        self.drive.tank_drive_volts(left * self.max_voltage, right * self.max_voltage)

    def teleop_exit(self) -> None:
        self.drive.stop()

    def test_enter(self) -> None:
        pass

    def test_tick(self) -> None:
        pass

    def test_exit(self) -> None:
        pass
