"""Fixed-period host loop for the mode controller.

Each loop runs the current mode's tick, then the always-on periodic
hook, then advances the simulated plant if one is attached. Deadlines are
scheduled as ``previous + period`` so jitter does not accumulate; when the
loop falls more than one period behind, the schedule is re-based on the
current time instead of trying to catch up.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .config import SYSID_PERIOD, TERM_ORANGE, TERM_RESET
from .robot import Mode, SysIdRobot


class TimedRunner:
    """Runs a `SysIdRobot` at a fixed period.

    Attributes:
        robot: Controller whose callbacks are invoked.
        period: Loop period (seconds).
        loop_count: Loops executed since construction.
    """

    def __init__(
        self,
        robot: SysIdRobot,
        period: float = SYSID_PERIOD,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the runner.

        Args:
            robot: Controller to drive.
            period: Loop period (seconds).
            clock: Monotonic clock in seconds.
            sleep: Blocking sleep used by `run_for`.

        Raises:
            ValueError: If period is not positive.
        """
        if period <= 0:
            raise ValueError(f"Loop period must be positive, got {period}")

        self.robot = robot
        self.period = period
        self.clock = clock
        self.sleep = sleep
        self.loop_count: int = 0
        self._overrun_reported = False

    def step(self) -> None:
        """Run one loop: mode tick, periodic hook, then the plant."""
        self.robot.on_tick()
        self.robot.robot_periodic()
        self.robot.simulation_periodic(self.period)
        self.loop_count += 1

    def _next_deadline(self, deadline: float) -> float:
        deadline += self.period
        now = self.clock()
        if now > deadline + self.period:
            if not self._overrun_reported:
                logging.warning(
                    f"{TERM_ORANGE}Loop overrun: {now - deadline:.4f}s behind schedule{TERM_RESET}"
                )
                self._overrun_reported = True
            deadline = now
        return deadline

    def run_for(
        self, mode: Mode, duration: float, final_mode: Optional[Mode] = Mode.DISABLED
    ) -> int:
        """Run the loop in one mode for a bounded time, blocking.

        Args:
            mode: Mode entered before the first loop.
            duration: Wall time to run (seconds).
            final_mode: Mode entered after the last loop, or None to stay.

        Returns:
            Number of loops executed.
        """
        self._overrun_reported = False
        self.robot.set_mode(mode)

        start = self.clock()
        end = start + duration
        deadline = start
        loops = 0
        while self.clock() < end:
            self.step()
            loops += 1
            deadline = self._next_deadline(deadline)
            delay = deadline - self.clock()
            if delay > 0:
                self.sleep(delay)

        if final_mode is not None:
            self.robot.set_mode(final_mode)
        return loops

    async def run_async(self, stop: asyncio.Event) -> None:
        """Run the loop cooperatively until `stop` is set.

        Other coroutines on the same event loop (such as the channel bridge)
        only run while this one awaits, so they never interleave with a tick.
        """
        self._overrun_reported = False
        deadline = self.clock()
        while not stop.is_set():
            self.step()
            deadline = self._next_deadline(deadline)
            await asyncio.sleep(max(0.0, deadline - self.clock()))
