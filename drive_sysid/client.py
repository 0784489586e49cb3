#!/usr/bin/env python3
"""
WebSocket bridge between the live channel and a remote dashboard.

The dashboard (or the characterization tool behind it) writes test
parameters and switches robot modes; the bridge applies those writes to the
in-process channel and publishes locally written values (telemetry, debug
encoder readings) back at a fixed update rate.

Wire format, one JSON object per message:
    {"message_type": "entry", "key": "SysIdVoltageCommand", "value": 0.25}
    {"message_type": "mode", "mode": "autonomous"}
"""

import asyncio
import json
import logging
from typing import Any, List, Union

import websockets

from .channel import InMemoryChannel
from .config import (
    CHANNEL_UPDATE_RATE,
    TERM_BLUE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_TIMEOUT_SECONDS,
)
from .robot import Mode, SysIdRobot


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


class ChannelBridge:
    """Mirrors an `InMemoryChannel` to a dashboard over WebSocket.

    Attributes:
        uri: WebSocket URI to connect to.
        channel: Channel receiving remote writes and providing local updates.
        robot: Controller whose mode the dashboard switches.
        update_rate: Publication period for local updates (seconds).
        should_stop: Flag indicating whether to stop the bridge.
    """

    def __init__(
        self,
        uri: str,
        channel: InMemoryChannel,
        robot: SysIdRobot,
        update_rate: float = CHANNEL_UPDATE_RATE,
    ) -> None:
        """Initialize the bridge.

        Args:
            uri: WebSocket URI to connect to (must start with ws:// or wss://).
            channel: Channel to mirror.
            robot: Controller receiving mode requests.
            update_rate: Publication period (seconds).

        Raises:
            ValueError: If URI format is invalid or update_rate is not positive.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URI: {uri}. Must start with 'ws://' or 'wss://'")
        if update_rate <= 0:
            raise ValueError(f"Update rate must be positive, got {update_rate}")

        self.uri: str = uri
        self.channel = channel
        self.robot = robot
        self.update_rate = update_rate
        self.should_stop: bool = False

    def handle_entry_message(self, data: dict) -> None:
        key = data["key"]
        if not isinstance(key, str):
            raise TypeError(f"Entry key must be a string, got {type(key).__name__}")

        value = data.get("value")
        if value is None:
            self.channel.delete(key)
        else:
            self.channel.apply_remote(key, value)
        logging.debug(f"Entry {key} = {value!r}")

    def handle_mode_message(self, data: dict) -> None:
        mode = Mode.parse(data["mode"])
        self.robot.set_mode(mode)

    def parse_and_route_message(self, message: Union[str, bytes]) -> None:
        """Parse incoming message and route to appropriate handler.

        Malformed messages are logged and dropped.

        Args:
            message: Raw JSON message string or bytes from WebSocket.
        """
        try:
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            if not isinstance(data, dict):
                raise TypeError(f"Expected a JSON object, got {type(data).__name__}")

            message_type = data.get("message_type")

            if message_type == "entry":
                self.handle_entry_message(data)
            elif message_type == "mode":
                self.handle_mode_message(data)
            else:
                logging.debug(f"Received unknown message: {json.dumps(data)}")

        except json.JSONDecodeError as e:
            logging.error(f"Error parsing JSON: {e}")
        except (KeyError, TypeError, ValueError, UnicodeDecodeError) as e:
            logging.error(f"Error processing message data: {e}")

    @staticmethod
    def encode_entry(key: str, value: Any) -> str:
        return json.dumps({"message_type": "entry", "key": key, "value": value})

    def outgoing_messages(self) -> List[str]:
        """Encode the channel's pending local updates as entry messages."""
        return [self.encode_entry(key, value) for key, value in self.channel.pop_updates().items()]

    async def publish_pending(self, websocket: Any) -> None:
        """Send the channel's pending local updates.

        If a send fails or is cancelled, the entries not yet sent go back
        into the channel's queue for the next connection.
        """
        unsent = self.channel.pop_updates()
        try:
            for key, value in list(unsent.items()):
                await websocket.send(self.encode_entry(key, value))
                del unsent[key]
        finally:
            if unsent:
                self.channel.requeue(unsent)

    async def publish_loop(self, websocket: Any) -> None:
        """Send pending local updates every update period.

        After `stop`, pending updates are sent once more before returning.
        """
        while True:
            await self.publish_pending(websocket)
            if self.should_stop:
                break
            await asyncio.sleep(self.update_rate)

    async def receive_loop(self, websocket: Any) -> None:
        """Apply incoming messages until the connection closes."""
        while not self.should_stop:
            try:
                message = await asyncio.wait_for(websocket.recv(), timeout=WS_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                # No message received in timeout period, continue
                continue
            self.parse_and_route_message(message)

    async def run(self) -> None:
        """Connect and mirror the channel until stopped.

        Maintains a connection to the WebSocket server with automatic retry logic
        and exponential backoff.
        """
        retry_delay = WS_RETRY_DELAY_SECONDS
        max_retry_delay = WS_MAX_RETRY_DELAY_SECONDS

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to dashboard{TERM_RESET}")
                    retry_delay = WS_RETRY_DELAY_SECONDS

                    tasks = [
                        asyncio.ensure_future(self.receive_loop(websocket)),
                        asyncio.ensure_future(self.publish_loop(websocket)),
                    ]
                    try:
                        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                    finally:
                        for task in tasks:
                            task.cancel()
                    for task in done:
                        task.result()

            except websockets.exceptions.ConnectionClosed:
                if self.should_stop:
                    break
                logging.warning("Connection closed by dashboard")
                await asyncio.sleep(retry_delay)
            except Exception as e:
                if self.should_stop:
                    break
                logging.error(f"Connection error: {e}")
                logging.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, max_retry_delay)

    def stop(self) -> None:
        """Signal the bridge to stop."""
        self.should_stop = True
