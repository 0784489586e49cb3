"""Telemetry sample buffer and wire serialization.

One `Sample` is captured per characterization tick. Samples accumulate in a
`TelemetryBuffer` for the whole run and are serialized once, when the run
ends, into the flat comma-separated string the characterization tool reads:

    s0.timestamp,s0.left_voltage,...,s0.gyro_rate,s1.timestamp,...

There is no separator between samples; boundaries are recovered from the
fixed stride of 9 fields.
"""

from typing import Iterator, List, NamedTuple

import numpy as np
import numpy.typing as npt

from .channel import CommandChannel
from .config import SAMPLE_FIELDS, TELEMETRY_KEY

SAMPLE_STRIDE = len(SAMPLE_FIELDS)


class Sample(NamedTuple):
    """One tick's observation. Field order is the wire order."""

    timestamp: float
    left_voltage: float
    right_voltage: float
    left_position: float
    right_position: float
    left_rate: float
    right_rate: float
    gyro_angle: float
    gyro_rate: float


class TelemetryBuffer:
    """Append-only, time-ordered sequence of samples for one run.

    Single writer (the signal generator). Its length always equals the
    number of ticks processed since the last drain.
    """

    def __init__(self) -> None:
        self._samples: List[Sample] = []

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> Sample:
        return self._samples[index]

    def to_array(self) -> npt.NDArray[np.float64]:
        """Return the samples as an ``(n, 9)`` float array."""
        if not self._samples:
            return np.empty((0, SAMPLE_STRIDE), dtype=np.float64)
        return np.asarray(self._samples, dtype=np.float64)

    def clear(self) -> None:
        self._samples = []

    def drain_and_serialize(self, channel: CommandChannel) -> str:
        """Serialize every sample, publish the result and empty the buffer.

        Must only be called between ticks; nothing may be appended while a
        drain is in progress.

        Args:
            channel: Channel receiving the serialized string under
                ``SysIdTelemetry``.

        Returns:
            The published string. Empty if the buffer was empty.
        """
        data = encode_telemetry(self.to_array())
        channel.put_string(TELEMETRY_KEY, data)
        self.clear()
        return data


def encode_telemetry(samples: npt.NDArray[np.float64]) -> str:
    """Flatten an ``(n, 9)`` array sample-major into the wire string.

    Values use Python's shortest round-trip float repr, so parsing a token
    back yields the exact original value.
    """
    return ",".join(repr(value) for value in samples.ravel().tolist())


def decode_telemetry(data: str) -> npt.NDArray[np.float64]:
    """Parse a wire string back into an ``(n, 9)`` array.

    Args:
        data: Comma-separated telemetry string as published at drain.

    Returns:
        Array with one row per sample, columns in ``SAMPLE_FIELDS`` order.

    Raises:
        ValueError: If a token is not a number or the token count is not a
            multiple of the sample stride.
    """
    if not data.strip():
        return np.empty((0, SAMPLE_STRIDE), dtype=np.float64)

    tokens = data.split(",")
    if len(tokens) % SAMPLE_STRIDE != 0:
        raise ValueError(
            f"Telemetry has {len(tokens)} values, not a multiple of {SAMPLE_STRIDE}"
        )

    try:
        values = np.array([float(token) for token in tokens], dtype=np.float64)
    except ValueError as e:
        raise ValueError(f"Invalid telemetry value: {e}") from e

    return values.reshape(-1, SAMPLE_STRIDE)
