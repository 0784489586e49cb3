"""Live key-value channel shared with the characterization tool.

The external tool writes the test parameters (voltage, test type, rotate
flag) at arbitrary times and reads the serialized telemetry back when a run
ends. The controller only depends on the `CommandChannel` protocol, so the
transport can be anything from an in-process dict to a networked table.
"""

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .config import (
    ROTATE_KEY,
    TELEOP_FORWARD_KEY,
    TELEOP_ROTATION_KEY,
    TEST_TYPE_KEY,
    VOLTAGE_COMMAND_KEY,
)


class TestType(Enum):
    """Excitation requested by the characterization tool."""

    QUASISTATIC = "Quasistatic"
    DYNAMIC = "Dynamic"
    UNKNOWN = ""

    @classmethod
    def parse(cls, value: Optional[str]) -> "TestType":
        """Map a raw channel string to a test type.

        Matching is exact. Anything else, including a missing entry,
        is UNKNOWN.
        """
        if value == cls.QUASISTATIC.value:
            return cls.QUASISTATIC
        if value == cls.DYNAMIC.value:
            return cls.DYNAMIC
        return cls.UNKNOWN


@dataclass(frozen=True)
class CommandSnapshot:
    """Command values observed by one tick.

    Attributes:
        requested_voltage: Ramp rate (V/s) for quasistatic, step voltage (V) for dynamic.
        test_type: Requested excitation.
        rotate: If True, the left side is driven in reverse.
    """

    requested_voltage: float = 0.0
    test_type: TestType = TestType.UNKNOWN
    rotate: bool = False


class CommandChannel(Protocol):
    """Typed key-value access to the live channel.

    Getters never raise: a missing entry or an entry of the wrong type
    yields the supplied default.
    """

    def get_number(self, key: str, default: float) -> float: ...

    def get_string(self, key: str, default: Optional[str]) -> Optional[str]: ...

    def get_boolean(self, key: str, default: bool) -> bool: ...

    def put_number(self, key: str, value: float) -> None: ...

    def put_string(self, key: str, value: str) -> None: ...


class InMemoryChannel:
    """Dict-backed channel.

    Values written locally through the ``put_*`` methods are recorded as
    pending updates so a transport can forward them (see `pop_updates`).
    Values arriving from the remote side go through `apply_remote` and are
    not echoed back.

    Each read is an atomic snapshot of a single key. There is no consistency
    across keys read in the same tick.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = dict(initial or {})
        self._pending: Dict[str, Any] = {}

    # ------------------------------------------------------------------ reads

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def get_number(self, key: str, default: float) -> float:
        value = self.get(key)
        # bool is an int subclass but never a valid number entry
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        value = float(value)
        if not math.isfinite(value):
            return default
        return value

    def get_string(self, key: str, default: Optional[str]) -> Optional[str]:
        value = self.get(key)
        return value if isinstance(value, str) else default

    def get_boolean(self, key: str, default: bool) -> bool:
        value = self.get(key)
        return value if isinstance(value, bool) else default

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._values)

    # ----------------------------------------------------------------- writes

    def _put_local(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._pending[key] = value

    def put_number(self, key: str, value: float) -> None:
        self._put_local(key, float(value))

    def put_string(self, key: str, value: str) -> None:
        self._put_local(key, str(value))

    def put_boolean(self, key: str, value: bool) -> None:
        self._put_local(key, bool(value))

    def apply_remote(self, key: str, value: Any) -> None:
        """Store a value written by the remote side, without queueing it for publication."""
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
            self._pending.pop(key, None)

    def pop_updates(self) -> Dict[str, Any]:
        """Return and clear the locally written values not yet published."""
        with self._lock:
            updates = self._pending
            self._pending = {}
        return updates

    def requeue(self, updates: Dict[str, Any]) -> None:
        """Put popped updates that were never published back in the queue.

        A key written again since it was popped keeps its newer value, and a
        key deleted since then stays deleted.
        """
        with self._lock:
            for key, value in updates.items():
                if key in self._pending or key not in self._values:
                    continue
                self._pending[key] = value

    def has_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending


def read_command(channel: CommandChannel) -> CommandSnapshot:
    """Read the current command from the channel.

    Missing or malformed entries fall back to zero voltage, UNKNOWN test type
    and no rotation. The external writer may be mid-edit, so this never fails.

    Args:
        channel: Live channel to read from.

    Returns:
        CommandSnapshot for this tick.
    """
    return CommandSnapshot(
        requested_voltage=channel.get_number(VOLTAGE_COMMAND_KEY, 0.0),
        test_type=TestType.parse(channel.get_string(TEST_TYPE_KEY, None)),
        rotate=channel.get_boolean(ROTATE_KEY, False),
    )


def read_drive_input(channel: CommandChannel) -> Tuple[float, float]:
    """Read the operator's arcade demand as ``(forward, rotation)``.

    Each axis is clamped to [-1, 1]; a missing entry is 0.
    """
    forward = channel.get_number(TELEOP_FORWARD_KEY, 0.0)
    rotation = channel.get_number(TELEOP_ROTATION_KEY, 0.0)
    return max(-1.0, min(1.0, forward)), max(-1.0, min(1.0, rotation))
