"""
Device Event Listener.
Receives device events from the input backend over ZeroMQ and forwards
them to the kiosk controller.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

from src.common.ipc import Message, MessageSubscriber, MessageType
from src.common.logger import setup_logger

from .errors import InputBackendUnavailable
from .input_classifier import InputKind
from .rebind_overlay import RebindOverlay

logger = setup_logger(__name__)

EventCallback = Callable[[str, InputKind, Any], None]


class DeviceEventListener:
    """
    Listens for device events published by the input backend.

    Message data is either a logical action:
        {"action": "South", "kind": "button", "value": 1}
    or a raw control path resolved through the rebind overlay:
        {"control": "<Gamepad>/buttonSouth", "kind": "button", "value": 1}

    Operator commands for the rebind overlay arrive as COMMAND messages:
        {"command": "rebind", "action": "South"}
    """

    DEFAULT_PORT = 5560

    def __init__(
        self,
        host: str = "localhost",
        port: Optional[int] = None,
        on_event: Optional[EventCallback] = None,
        mapper: Optional[RebindOverlay] = None
    ):
        """
        Initialize the listener.

        Args:
            host: Input backend host
            port: Input backend publish port
            on_event: Callback (action_name, kind, value) for each event
            mapper: Rebind overlay used to resolve raw control paths
        """
        self.host = host
        self.port = port if port is not None else self.DEFAULT_PORT
        self._on_event = on_event
        self._mapper = mapper
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._subscriber: Optional[MessageSubscriber] = None

        self._stats = {
            "events": 0,
            "dropped": 0,
            "commands": 0,
            "last_event_time": None
        }

        logger.info("DeviceEventListener initialized (host=%s, port=%s)", host, self.port)

    def start(self) -> None:
        """
        Connect to the input backend and start the listener thread.

        Raises:
            InputBackendUnavailable: If the subscriber cannot be created
        """
        if self._running:
            logger.warning("DeviceEventListener already running")
            return

        try:
            self._subscriber = MessageSubscriber(
                host=self.host,
                port=self.port,
                service_name="kiosk_controller"
            )
            self._subscriber.subscribe_to(MessageType.DEVICE_EVENT)
            self._subscriber.subscribe_to(MessageType.COMMAND)
        except Exception as e:
            self._subscriber = None
            raise InputBackendUnavailable(
                f"Cannot connect to input backend at {self.host}:{self.port}: {e}"
            ) from e

        self._running = True
        self._thread = threading.Thread(
            target=self._listen_loop,
            name="DeviceEventListener",
            daemon=True
        )
        self._thread.start()
        logger.info("DeviceEventListener started on %s:%s", self.host, self.port)

    def stop(self) -> None:
        """Stop listening for device events."""
        if not self._running:
            return

        logger.info("Stopping DeviceEventListener...")
        self._running = False

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)

        if self._subscriber:
            try:
                self._subscriber.close()
            except Exception as e:
                logger.error("Error closing subscriber: %s", e)
            self._subscriber = None

        logger.info("DeviceEventListener stopped")

    def _listen_loop(self) -> None:
        """Main listening loop (runs in background thread)."""
        while self._running:
            try:
                message = self._subscriber.receive(timeout_ms=500)
                if message is not None:
                    self.handle_message(message)
            except Exception as e:
                logger.error("Error in device listener loop: %s", e)
                time.sleep(0.5)

    def handle_message(self, message: Message) -> bool:
        """
        Forward one received message to the callback.

        Args:
            message: Received message

        Returns:
            True if the event was forwarded
        """
        data: Dict[str, Any] = message.data if isinstance(message.data, dict) else {}

        if message.msg_type == MessageType.COMMAND:
            self._handle_command(data)
            return False

        if message.msg_type != MessageType.DEVICE_EVENT:
            return False

        try:
            kind = InputKind.parse(data.get("kind"))
        except ValueError:
            return self._drop("unknown kind %r" % data.get("kind"))

        if "value" not in data:
            return self._drop("missing value")
        value = data["value"]

        action = data.get("action")
        control = data.get("control")
        if action is None and control is not None:
            if self._mapper is None:
                return self._drop("raw control %s without mapper" % control)
            if self._mapper.handle_toggle_control(control, value):
                return False
            if self._mapper.is_capturing and self._mapper.offer_control(control, kind, value):
                logger.debug("Control %s consumed by rebind capture", control)
                return False
            action = self._mapper.resolve(control)

        if not action:
            return self._drop("unbound control %s" % control)

        if self._mapper is not None:
            self._mapper.observe(action, kind, value)

        self._stats["events"] += 1
        self._stats["last_event_time"] = time.time()

        if self._on_event:
            try:
                self._on_event(action, kind, value)
            except Exception as e:
                logger.error("Error in device event callback: %s", e)

        return True

    def _handle_command(self, data: Dict[str, Any]) -> None:
        """Apply an operator command to the rebind overlay."""
        if self._mapper is None:
            self._drop("command %r without mapper" % data.get("command"))
            return

        self._stats["commands"] += 1
        if self._mapper.handle_command(data):
            logger.info("Overlay command %s applied: %s", data.get("command"), self._mapper.status)

    def _drop(self, reason: str) -> bool:
        self._stats["dropped"] += 1
        logger.debug("Dropping device event: %s", reason)
        return False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> Dict[str, Any]:
        return self._stats.copy()

    def __repr__(self) -> str:
        """String representation."""
        return f"DeviceEventListener(host={self.host}, port={self.port}, running={self._running})"
