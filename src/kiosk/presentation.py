"""
Presentation sinks.
The controller asks the presentation layer to display a screen and never
waits for the load to complete.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import requests

from src.common.config import Config
from src.common.ipc import MessagePublisher, MessageType
from src.common.logger import setup_logger

logger = setup_logger(__name__)


class PresentationSink(ABC):
    """Fire-and-forget screen display interface."""

    @abstractmethod
    def display(self, screen: str) -> None:
        """Request the presentation layer display the given screen."""

    def close(self) -> None:
        """Release transport resources."""


class LoggingPresentationSink(PresentationSink):
    """Sink that only records and logs display requests (dry runs, tests)."""

    def __init__(self):
        self.history: List[str] = []

    def display(self, screen: str) -> None:
        self.history.append(screen)
        logger.info("Display screen '%s'", screen)


class ZmqPresentationSink(PresentationSink):
    """Publishes display commands on a ZeroMQ PUB socket."""

    def __init__(self, port: int, publisher: Optional[MessagePublisher] = None):
        """
        Initialize the sink.

        Args:
            port: Port to publish display commands on
            publisher: Existing publisher (created if None)
        """
        self.port = port
        self._publisher = publisher or MessagePublisher(port, service_name="kiosk_controller")

    def display(self, screen: str) -> None:
        try:
            self._publisher.publish(MessageType.DISPLAY, {"screen": screen})
        except Exception as e:
            logger.error("Failed to publish display command for '%s': %s", screen, e)

    def close(self) -> None:
        self._publisher.close()


class HttpPresentationSink(PresentationSink):
    """POSTs display commands to an HTTP endpoint of the presentation layer."""

    def __init__(self, base_url: str, timeout: float = 2.0):
        """
        Initialize the sink.

        Args:
            base_url: Presentation layer base URL (e.g. http://localhost:8080)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = requests.Session()

    def display(self, screen: str) -> None:
        try:
            response = self._session.post(
                f"{self.base_url}/display",
                json={"screen": screen},
                timeout=self.timeout
            )
            if response.status_code >= 400:
                logger.error(
                    "Presentation layer rejected '%s': HTTP %s",
                    screen,
                    response.status_code
                )
        except requests.RequestException as e:
            logger.error("Failed to send display command for '%s': %s", screen, e)

    def close(self) -> None:
        self._session.close()


def create_sink(config: Config) -> PresentationSink:
    """
    Create the presentation sink selected by presentation.sink.

    Args:
        config: Loaded Config

    Returns:
        PresentationSink instance (logging sink for unknown types)
    """
    sink_type = config.sink_type

    if sink_type == 'zmq':
        return ZmqPresentationSink(port=int(config.get('presentation.zmq_port', 5561)))

    if sink_type == 'http':
        return HttpPresentationSink(
            base_url=str(config.get('presentation.http_url', 'http://localhost:8080')),
            timeout=float(config.get('presentation.http_timeout', 2.0))
        )

    if sink_type != 'log':
        logger.warning("Unknown presentation sink '%s'; using log sink", sink_type)

    return LoggingPresentationSink()
