"""Drive SysId - Drivetrain Characterization Controller

Fixed-period excitation and data-acquisition loop used to characterize a
differential-drive robot's drivetrain. An external characterization tool
chooses the test through a live key-value channel, the controller drives the
wheels and samples the sensors every tick, and the collected time series is
published back through the channel when the run ends.

## Architecture Overview

### Command Channel (channel.py)
Live key-value channel with typed, defaulting getters.
- Inputs: `SysIdVoltageCommand`, `SysIdTestType`, `SysIdRotate`
- Output: `SysIdTelemetry`

### Signal Generator (generator.py)
Per-tick state machine converting the command into per-side voltages.
- Quasistatic: linear ramp, requested voltage is a rate in V/s
- Dynamic: immediate step to the requested voltage
- Rotate flag reverses the left side for angular characterization

### Telemetry Buffer (telemetry.py)
One 9-field sample per tick, serialized once at the end of the run as a
flat comma-separated list (stride 9).

### Mode Controller (robot.py)
Enter/tick/exit hooks per robot mode. Entering autonomous starts a run;
leaving it stops the drivetrain and publishes the telemetry.

## Modules

- `config.py` - Timing, channel keys, simulation and connection parameters
- `sensors.py` - Sensor facade and actuation interfaces
- `model.py` - Simulated differential drivetrain and arcade mixing
- `runtime.py` - Fixed-period host loop
- `client.py` - WebSocket bridge for the live channel and logging setup

## Quick Start

```bash
# Bench run against the simulated drivetrain
python -m drive_sysid --test-type Dynamic --voltage 4 --duration 2

# Dashboard-driven session
python -m drive_sysid --uri ws://127.0.0.1:5810
```

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

from .channel import CommandSnapshot, InMemoryChannel, TestType, read_command, read_drive_input
from .generator import RunState, SignalGenerator
from .robot import Mode, SysIdRobot
from .sensors import DrivetrainSensors
from .telemetry import Sample, TelemetryBuffer, decode_telemetry

__all__ = [
    "CommandSnapshot",
    "InMemoryChannel",
    "TestType",
    "read_command",
    "read_drive_input",
    "RunState",
    "SignalGenerator",
    "Mode",
    "SysIdRobot",
    "DrivetrainSensors",
    "Sample",
    "TelemetryBuffer",
    "decode_telemetry",
]
