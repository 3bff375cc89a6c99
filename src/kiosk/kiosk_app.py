"""
KioskApp - composition root for the kiosk rotation controller.
Wires configuration, presentation sink, input listener, rebind overlay
and controller together and drives the tick loop.
"""

import signal
import sys
import time
from typing import Any, Dict, Optional

from src.common.config import Config
from src.common.logger import configure_logging, setup_logger

from .controller import KioskController
from .errors import InputBackendUnavailable
from .input_listener import DeviceEventListener
from .presentation import PresentationSink, create_sink
from .rebind_overlay import RebindOverlay
from .settings import KioskSettings

logger = setup_logger(__name__)


class KioskApp:
    """
    Kiosk application.

    Startup flow:
    1. Load configuration and settings
    2. Create presentation sink, rebind overlay and controller
    3. Connect to the input backend (optional; runs without input)
    4. Display the boot screen and tick until stopped
    """

    def __init__(
        self,
        config: Config,
        sink: Optional[PresentationSink] = None,
        enable_input: Optional[bool] = None
    ):
        """
        Initialize the app.

        Args:
            config: Loaded Config
            sink: Presentation sink override (created from config if None)
            enable_input: Force input backend on/off (config if None)
        """
        self.config = config
        configure_logging(config.log_level)

        self.settings = KioskSettings.from_config(config)
        self.sink = sink or create_sink(config)
        self.overlay = RebindOverlay(
            stick_deadzone=float(config.get('rebind.stick_deadzone', 0.12)),
            dpad_deadzone=float(config.get('rebind.dpad_deadzone', 0.05)),
            overrides_json=str(config.get('rebind.overrides_json', '') or '')
        )
        self.controller = KioskController(self.settings, self.sink)

        if enable_input is None:
            enable_input = bool(config.get('input.enabled', True))
        self._enable_input = enable_input
        self.listener: Optional[DeviceEventListener] = None

        self._running = False

    def _start_input(self) -> None:
        """Connect the device listener; degrade to no-input on failure."""
        if not self._enable_input:
            self.controller.set_input_available(False)
            return

        self.listener = DeviceEventListener(
            host=str(self.config.get('input.backend_host', 'localhost')),
            port=int(self.config.get('input.backend_port', DeviceEventListener.DEFAULT_PORT)),
            on_event=self.controller.submit_event,
            mapper=self.overlay
        )

        try:
            self.listener.start()
        except InputBackendUnavailable as e:
            logger.warning("%s", e)
            self.listener = None
            self.controller.set_input_available(False)

    def start(self) -> None:
        """Start input and display the first screen."""
        if self._running:
            return

        logger.info("=" * 60)
        logger.info("Starting KioskApp")
        logger.info("=" * 60)

        self._start_input()
        self.controller.start()
        self._running = True

    def stop(self) -> None:
        """Stop input and release the sink."""
        if not self._running:
            return

        logger.info("Stopping KioskApp")
        self._running = False

        if self.listener:
            self.listener.stop()

        try:
            self.sink.close()
        except Exception as e:
            logger.error("Error closing presentation sink: %s", e)

        logger.info("KioskApp stopped")

    def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Run the tick loop (blocking).

        Args:
            max_ticks: Stop after this many ticks (None runs until signalled)
        """
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self.start()

        period = 1.0 / self.settings.tick_hz if self.settings.tick_hz > 0 else 1.0 / 30.0
        ticks = 0

        try:
            while self._running:
                started = time.monotonic()
                self.controller.tick()

                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break

                remaining = period - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")

        self.stop()

    def get_status(self) -> Dict[str, Any]:
        """Get controller and input status."""
        status = self.controller.get_state_info()
        status['input'] = self.listener.stats if self.listener else None
        status['rebind'] = self.overlay.state.value
        status['rebind_status'] = self.overlay.status
        status['overlay'] = self.overlay.overlay_text() if self.overlay.show_overlay else None
        return status

    def _signal_handler(self, signum: int, frame) -> None:
        """Handle system signals."""
        logger.info("Received signal: %s", signal.Signals(signum).name)
        self._running = False


def main(argv=None):
    """Main entry point for the kiosk controller."""
    import argparse

    parser = argparse.ArgumentParser(description="Kiosk attract/rotation controller")
    parser.add_argument('--config', help="YAML config file path")
    parser.add_argument('--sink', choices=['log', 'zmq', 'http'], help="Presentation sink override")
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Logging level override")
    parser.add_argument('--no-input', action='store_true', help="Run without the input backend")

    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
    except FileNotFoundError as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.sink:
        config.set('presentation.sink', args.sink)
    if args.log_level:
        config.set('logging.level', args.log_level)

    app = KioskApp(config, enable_input=False if args.no_input else None)
    app.run()


if __name__ == "__main__":
    main()
