"""Configuration parameters for the drivetrain characterization controller.

This module centralizes all configuration parameters including:
- Loop timing (characterization tick, channel publication)
- Live channel key names
- Simulated drivetrain parameters
- WebSocket connection parameters

All parameters are documented with their purpose and units.
"""

# ============================================================================
# Loop Timing
# ============================================================================

SYSID_PERIOD = 0.005
"""Tick period of the characterization loop (seconds).

5 ms instead of the usual 20 ms robot loop so that the quasistatic ramp and
the dynamic step are sampled finely enough for the offline fitting tool.
The quasistatic ramp integrates requested voltage over exactly this period."""

CHANNEL_UPDATE_RATE = 0.010
"""Publication period for the live channel (seconds).

Coarser than the tick period. Fixed at setup time."""


# ============================================================================
# Live Channel Keys
# ============================================================================

VOLTAGE_COMMAND_KEY = "SysIdVoltageCommand"
"""Requested voltage (float). Ramp rate in V/s for quasistatic tests,
step voltage in V for dynamic tests."""

TEST_TYPE_KEY = "SysIdTestType"
"""Test type (string): "Quasistatic", "Dynamic", or absent."""

ROTATE_KEY = "SysIdRotate"
"""Rotate flag (bool). True drives the sides in opposite directions."""

TELEMETRY_KEY = "SysIdTelemetry"
"""Serialized telemetry (string) published when the characterization mode ends."""

TELEOP_FORWARD_KEY = "TeleopForward"
"""Operator forward demand (float in [-1, 1]) used in teleop mode."""

TELEOP_ROTATION_KEY = "TeleopRotation"
"""Operator rotation demand (float in [-1, 1], positive counter-clockwise)."""

SAMPLE_FIELDS = (
    "timestamp",
    "left_voltage",
    "right_voltage",
    "left_position",
    "right_position",
    "left_rate",
    "right_rate",
    "gyro_angle",
    "gyro_rate",
)
"""Field order of one telemetry sample on the wire.

The downstream tool recovers sample boundaries from the stride alone, so
neither the order nor the count (9) may change."""

DEBUG_KEYS = ("l_encoder_pos", "l_encoder_rate", "r_encoder_pos", "r_encoder_rate")
"""Encoder readings published every loop as a debugging aid.
Not consumed by the characterization tool."""


# ============================================================================
# Simulated Drivetrain Parameters
# ============================================================================

TRACK_WIDTH = 0.141
"""Distance between left and right wheels (meters).
Matches a small educational robot chassis."""

MAX_VOLTAGE = 7.0
"""Voltage limit applied to each side (volts). Battery-bound."""

SIM_KS = 0.4
"""Static friction voltage (volts). Voltage needed to overcome stiction."""

SIM_KV = 9.0
"""Velocity gain (V per m/s). Steady-state voltage per unit wheel speed."""

SIM_KA = 0.6
"""Acceleration gain (V per m/s²). Voltage per unit wheel acceleration."""


# ============================================================================
# Terminal Colors
# ============================================================================

TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for warnings and highlights (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for status lines (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# WebSocket Configuration
# ============================================================================

WS_URI = "ws://127.0.0.1:5810"
"""WebSocket URI of the dashboard that hosts the live channel."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed WebSocket connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_TIMEOUT_SECONDS = 5.0
"""Timeout for WebSocket message reception (seconds)."""
