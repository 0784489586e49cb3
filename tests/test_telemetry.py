import numpy as np
import pytest

from drive_sysid.channel import InMemoryChannel
from drive_sysid.telemetry import (
    SAMPLE_STRIDE,
    Sample,
    TelemetryBuffer,
    decode_telemetry,
    encode_telemetry,
)


def make_sample(i: int) -> Sample:
    base = float(i)
    return Sample(*(base + 0.1 * k for k in range(SAMPLE_STRIDE)))


def test_stride_is_nine():
    assert SAMPLE_STRIDE == 9
    assert len(Sample._fields) == 9


def test_buffer_grows_by_one_per_append():
    buffer = TelemetryBuffer()
    for i in range(5):
        buffer.append(make_sample(i))
        assert len(buffer) == i + 1
    assert [s.timestamp for s in buffer] == [0.0, 1.0, 2.0, 3.0, 4.0]


def test_drain_empty_buffer_publishes_empty_string():
    buffer = TelemetryBuffer()
    channel = InMemoryChannel()
    assert buffer.drain_and_serialize(channel) == ""
    assert channel.get_string("SysIdTelemetry", None) == ""
    assert len(buffer) == 0


def test_drain_publishes_and_clears():
    buffer = TelemetryBuffer()
    channel = InMemoryChannel()
    for i in range(3):
        buffer.append(make_sample(i))

    data = buffer.drain_and_serialize(channel)

    assert channel.get_string("SysIdTelemetry", None) == data
    assert len(buffer) == 0
    assert buffer.drain_and_serialize(channel) == ""


def test_serialized_tokens_follow_sample_then_field_order():
    samples = [make_sample(i) for i in range(4)]
    buffer = TelemetryBuffer()
    for sample in samples:
        buffer.append(sample)

    tokens = buffer.drain_and_serialize(InMemoryChannel()).split(",")

    assert len(tokens) == 9 * len(samples)
    for sample_index, sample in enumerate(samples):
        for field_index, value in enumerate(sample):
            assert float(tokens[sample_index * 9 + field_index]) == pytest.approx(value)


def test_encode_uses_round_trip_float_repr():
    row = np.array([[0.1, -6.0, 6.0, 1e-05, 0.0, 1.0 / 3.0, 2.0, -0.0, 12.5]])
    tokens = encode_telemetry(row).split(",")
    assert tokens[0] == "0.1"
    assert tokens[1] == "-6.0"
    assert float(tokens[5]) == 1.0 / 3.0


def test_decode_recovers_rows():
    decoded = decode_telemetry(",".join(str(float(v)) for v in range(18)))
    assert decoded.shape == (2, 9)
    assert decoded[1, 0] == 9.0
    assert decoded[0, 8] == 8.0


def test_decode_empty_string():
    assert decode_telemetry("").shape == (0, 9)


def test_decode_rejects_partial_sample():
    with pytest.raises(ValueError, match="multiple of 9"):
        decode_telemetry("1.0,2.0,3.0")


def test_decode_rejects_non_numeric_token():
    with pytest.raises(ValueError, match="Invalid telemetry value"):
        decode_telemetry(",".join(["1.0"] * 8 + ["abc"]))


def test_to_array_shape():
    buffer = TelemetryBuffer()
    assert buffer.to_array().shape == (0, 9)
    buffer.append(make_sample(0))
    buffer.append(make_sample(1))
    assert buffer.to_array().shape == (2, 9)
    assert buffer[1].timestamp == 1.0
