"""
Main entry point when running the drive_sysid module with python -m.

Without --uri, runs a single characterization run against the simulated
drivetrain and prints a summary of the collected telemetry. With --uri, runs
the controller continuously and lets a dashboard drive it over WebSocket.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from .channel import InMemoryChannel, read_drive_input
from .client import ChannelBridge, setup_logging
from .config import (
    ROTATE_KEY,
    SYSID_PERIOD,
    TELEMETRY_KEY,
    TERM_BLUE,
    TERM_ORANGE,
    TERM_RESET,
    TEST_TYPE_KEY,
    VOLTAGE_COMMAND_KEY,
)
from .model import SimulatedDrivetrain
from .robot import Mode, SysIdRobot
from .runtime import TimedRunner
from .sensors import DrivetrainSensors
from .telemetry import decode_telemetry

DEFAULT_RAMP_RATE = 0.25  # V/s
DEFAULT_STEP_VOLTAGE = 3.0  # V


def build_bench_robot(channel: InMemoryChannel, period: float = SYSID_PERIOD) -> SysIdRobot:
    """Wire a controller to a simulated drivetrain.

    In teleop mode the drivetrain follows the operator demand written to the
    channel (see `read_drive_input`).
    """
    drivetrain = SimulatedDrivetrain()
    sensors = DrivetrainSensors(drivetrain, drivetrain.gyro)
    return SysIdRobot(
        sensors,
        drivetrain,
        channel,
        period=period,
        drive_input=lambda: read_drive_input(channel),
        simulation=drivetrain,
    )


def run_bench(test_type: str, voltage: float, rotate: bool, duration: float) -> int:
    """Run one characterization run on the bench and log a summary.

    Returns:
        Exit code (0 for success)
    """
    channel = InMemoryChannel(
        {VOLTAGE_COMMAND_KEY: voltage, TEST_TYPE_KEY: test_type, ROTATE_KEY: rotate}
    )
    robot = build_bench_robot(channel)
    runner = TimedRunner(robot)

    logging.info(f"{TERM_BLUE}Running {test_type} test at {voltage} for {duration}s{TERM_RESET}")
    loops = runner.run_for(Mode.AUTONOMOUS, duration)

    samples = decode_telemetry(robot.last_telemetry)
    if len(samples) == 0:
        logging.warning("No telemetry collected")
        return 1

    last = samples[-1]
    logging.info(f"{TERM_BLUE}→ Loops: {loops}  Samples: {len(samples)}{TERM_RESET}")
    logging.info(
        f"{TERM_BLUE}→ Final volts L/R: {last[1]:.3f}/{last[2]:.3f}  "
        f"position L/R: {last[3]:.3f}/{last[4]:.3f}m  "
        f"gyro: {last[7]:.3f}rad{TERM_RESET}"
    )
    return 0


async def run_remote(uri: str) -> None:
    """Run the controller with a dashboard bridge until a shutdown signal."""
    channel = InMemoryChannel()
    robot = build_bench_robot(channel)
    runner = TimedRunner(robot)
    bridge = ChannelBridge(uri, channel, robot)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        """Handle shutdown signals (SIGINT, SIGTERM).

        Disabling first drains any run in progress, so the bridge's final
        flush publishes its telemetry.
        """
        logging.info("\nShutdown signal received...")
        robot.set_mode(Mode.DISABLED)
        stop.set()
        bridge.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await asyncio.gather(runner.run_async(stop), bridge.run())
    finally:
        robot.set_mode(Mode.DISABLED)
        if channel.has_pending(TELEMETRY_KEY):
            logging.warning(
                f"{TERM_ORANGE}Telemetry of the last run was not published and is discarded{TERM_RESET}"
            )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Drivetrain characterization controller (bench run or dashboard-driven)"
    )
    parser.add_argument(
        "--test-type",
        choices=["Quasistatic", "Dynamic"],
        default="Quasistatic",
        help="Excitation for the bench run (default: Quasistatic)",
    )
    parser.add_argument(
        "--voltage",
        type=float,
        default=None,
        help=f"Ramp rate in V/s or step voltage in V "
        f"(default: {DEFAULT_RAMP_RATE} or {DEFAULT_STEP_VOLTAGE})",
    )
    parser.add_argument(
        "--rotate", action="store_true", help="Drive the sides in opposite directions"
    )
    parser.add_argument(
        "--duration", type=float, default=5.0, help="Bench run duration in seconds (default: 5)"
    )
    parser.add_argument(
        "--uri", default=None, help="Dashboard WebSocket URI; runs until interrupted"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.uri:
        try:
            asyncio.run(run_remote(args.uri))
        except KeyboardInterrupt:
            logging.info("\nExiting...")
        return 0

    voltage = args.voltage
    if voltage is None:
        voltage = DEFAULT_RAMP_RATE if args.test_type == "Quasistatic" else DEFAULT_STEP_VOLTAGE

    return run_bench(args.test_type, voltage, args.rotate, args.duration)


if __name__ == "__main__":
    sys.exit(main())
