import pytest

from drive_sysid import channel as ch
from drive_sysid.channel import CommandSnapshot, InMemoryChannel
from drive_sysid.generator import (
    GeneratorState,
    SignalGenerator,
    compute_voltage,
    split_voltage,
)

DT = 0.005


def set_command(channel: InMemoryChannel, voltage: float, test_type: str, rotate: bool = False):
    channel.apply_remote("SysIdVoltageCommand", voltage)
    channel.apply_remote("SysIdTestType", test_type)
    channel.apply_remote("SysIdRotate", rotate)


@pytest.fixture
def generator(sensors, drive, channel) -> SignalGenerator:
    return SignalGenerator(sensors, drive, channel, period=DT)


def test_compute_voltage_quasistatic_ramps():
    command = CommandSnapshot(2.0, ch.TestType.QUASISTATIC)
    assert compute_voltage(command, 1.0, DT) == pytest.approx(1.01)


def test_compute_voltage_dynamic_ignores_history():
    command = CommandSnapshot(6.0, ch.TestType.DYNAMIC)
    assert compute_voltage(command, 3.7, DT) == 6.0


def test_compute_voltage_unknown_is_zero():
    assert compute_voltage(CommandSnapshot(6.0, ch.TestType.UNKNOWN), 3.7, DT) == 0.0


def test_split_voltage_rotate_reverses_left_only():
    assert split_voltage(2.0, rotate=True) == (-2.0, 2.0)
    assert split_voltage(2.0, rotate=False) == (2.0, 2.0)


def test_rejects_non_positive_period(sensors, drive, channel):
    with pytest.raises(ValueError):
        SignalGenerator(sensors, drive, channel, period=0.0)


def test_tick_is_noop_when_idle(generator, drive):
    run = generator.begin(0.0)
    generator.finish(run)
    assert generator.state is GeneratorState.IDLE
    assert generator.tick(run, 0.0) is None
    assert drive.commands == []
    assert len(run.buffer) == 0


def test_quasistatic_scenario(generator, channel, drive):
    set_command(channel, 2.0, "Quasistatic")
    run = generator.begin(0.0)

    priors = []
    for k in range(3):
        generator.tick(run, k * DT)
        priors.append(run.prior_voltage)

    assert priors == pytest.approx([0.01, 0.02, 0.03])
    assert len(run.buffer) == 3
    assert [s.left_voltage for s in run.buffer] == pytest.approx([0.01, 0.02, 0.03])
    assert [s.right_voltage for s in run.buffer] == pytest.approx([0.01, 0.02, 0.03])
    assert [left for left, _ in drive.commands] == pytest.approx([0.01, 0.02, 0.03])
    assert [right for _, right in drive.commands] == pytest.approx([0.01, 0.02, 0.03])


def test_quasistatic_ramp_after_n_ticks(generator, channel):
    set_command(channel, 0.25, "Quasistatic")
    run = generator.begin(0.0)
    n = 400
    for k in range(n):
        generator.tick(run, k * DT)
    assert run.prior_voltage == pytest.approx(n * 0.25 * DT)
    assert run.tick_count == n


def test_dynamic_rotate_scenario(generator, channel, drive):
    set_command(channel, 6.0, "Dynamic", rotate=True)
    run = generator.begin(0.0)

    generator.tick(run, 0.0)
    generator.tick(run, DT)

    assert [(s.left_voltage, s.right_voltage) for s in run.buffer] == [(-6.0, 6.0), (-6.0, 6.0)]
    assert drive.commands == [(-6.0, 6.0), (-6.0, 6.0)]
    # prior voltage is tracked before the rotate sign
    assert run.prior_voltage == 6.0


def test_dynamic_step_overrides_ramp_history(generator, channel):
    set_command(channel, 2.0, "Quasistatic")
    run = generator.begin(0.0)
    for k in range(10):
        generator.tick(run, k * DT)

    set_command(channel, 4.0, "Dynamic")
    sample = generator.tick(run, 10 * DT)
    assert sample.left_voltage == 4.0
    assert sample.right_voltage == 4.0


def test_unknown_test_type_commands_zero(generator, channel, drive):
    run = generator.begin(0.0)
    sample = generator.tick(run, 0.0)
    assert (sample.left_voltage, sample.right_voltage) == (0.0, 0.0)
    assert drive.commands == [(0.0, 0.0)]


def test_switching_to_unknown_resets_ramp(generator, channel):
    set_command(channel, 2.0, "Quasistatic")
    run = generator.begin(0.0)
    generator.tick(run, 0.0)
    channel.delete("SysIdTestType")
    generator.tick(run, DT)
    channel.apply_remote("SysIdTestType", "Quasistatic")
    generator.tick(run, 2 * DT)
    assert run.prior_voltage == pytest.approx(2.0 * DT)


def test_sample_carries_sensor_readings_and_time(generator, sensors):
    run = generator.begin(0.0)
    sample = generator.tick(run, 0.125)
    assert sample.timestamp == 0.125
    assert sample.left_position == sensors.values["left_position"]
    assert sample.right_position == sensors.values["right_position"]
    assert sample.left_rate == sensors.values["left_rate"]
    assert sample.right_rate == sensors.values["right_rate"]
    assert sample.gyro_angle == sensors.values["gyro_angle"]
    assert sample.gyro_rate == sensors.values["gyro_rate"]


def test_command_changes_are_seen_on_the_next_tick(generator, channel):
    set_command(channel, 1.0, "Dynamic")
    run = generator.begin(0.0)
    assert generator.tick(run, 0.0).right_voltage == 1.0
    channel.apply_remote("SysIdVoltageCommand", 3.0)
    assert generator.tick(run, DT).right_voltage == 3.0


def test_begin_returns_fresh_state(generator, channel):
    set_command(channel, 2.0, "Quasistatic")
    run = generator.begin(0.0)
    for k in range(5):
        generator.tick(run, k * DT)
    generator.finish(run)

    fresh = generator.begin(1.0)
    assert fresh.prior_voltage == 0.0
    assert fresh.tick_count == 0
    assert len(fresh.buffer) == 0
    assert fresh.start_time == 1.0


def test_finish_drains_to_channel(generator, channel):
    set_command(channel, 1.0, "Dynamic")
    run = generator.begin(0.0)
    for k in range(3):
        generator.tick(run, k * DT)

    data = generator.finish(run)

    assert len(data.split(",")) == 27
    assert channel.get_string("SysIdTelemetry", None) == data
    assert len(run.buffer) == 0
    assert generator.state is GeneratorState.IDLE
