"""
Kiosk Controller.
Owns the attract/content state, the inactivity timers and the content
rotation. Driven by tick() from the host's frame loop.
"""

import queue
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from src.common.logger import setup_logger

from .content_selector import ContentSelector
from .errors import ConfigurationWarning
from .input_classifier import (
    ActivityKind,
    ActivityState,
    DeviceEvent,
    InputClassifier,
    InputKind,
)
from .presentation import PresentationSink
from .scene_policy import PolicyTable
from .settings import KioskSettings

logger = setup_logger(__name__)


class KioskMode(Enum):
    """Represents what the kiosk is currently showing."""
    ATTRACT = "attract"    # Idle screen, waits for the start action
    CONTENT = "content"    # A content screen (including the boot screen)


class KioskRequest(Enum):
    """Requests other components may post to the controller."""
    NEXT_CONTENT = "next_content"
    ATTRACT = "attract"
    RESET_TIMER = "reset_timer"


class KioskController:
    """
    Inactivity / rotation controller.

    Transitions:
    - ATTRACT -> CONTENT: start action pressed in attract
    - CONTENT -> CONTENT: soft timeout (advance to next content)
    - CONTENT -> ATTRACT: hard timeout (never ATTRACT -> ATTRACT)

    Every load resets the inactivity timer and opens the input grace window.
    Events and requests may be submitted from any thread; they are queued
    and applied in tick(), which is the only place state changes.
    """

    def __init__(
        self,
        settings: KioskSettings,
        sink: PresentationSink,
        clock: Callable[[], float] = time.monotonic,
        selector: Optional[ContentSelector] = None,
        policies: Optional[PolicyTable] = None,
        classifier: Optional[InputClassifier] = None,
        on_mode_changed: Optional[Callable[['KioskController', KioskMode, KioskMode], None]] = None,
        on_no_content: Optional[Callable[[], None]] = None
    ):
        """
        Initialize the controller.

        Args:
            settings: Kiosk settings
            sink: Presentation sink used to display screens
            clock: Monotonic clock in seconds
            selector: Content selector (built from settings if None)
            policies: Policy table (built from settings if None)
            classifier: Input classifier (built from settings if None)
            on_mode_changed: Callback when mode changes (self, old_mode, new_mode)
            on_no_content: Callback when a content load finds nothing to play
        """
        self.settings = settings
        self._sink = sink
        self._clock = clock
        self._on_mode_changed = on_mode_changed
        self._on_no_content = on_no_content

        self.selector = selector or ContentSelector(
            settings.content_screens,
            settings.attract_screen,
            mode=settings.play_mode,
            seed=settings.shuffle_seed
        )
        self.policies = policies or PolicyTable(settings.default_policy, settings.scene_policies)
        self.classifier = classifier or InputClassifier(
            settings.activity_actions,
            start_action=settings.start_action,
            vector2_deadzone=settings.vector2_deadzone
        )

        now = self._clock()
        self.activity = ActivityState(grace_seconds=settings.grace_seconds)
        self.activity.mark_input(now)
        self.activity.apply_grace(now)

        self._active_screen: Optional[str] = None
        self._mode = KioskMode.CONTENT
        self._pending: "queue.Queue[Union[DeviceEvent, KioskRequest]]" = queue.Queue()
        self._boot_advance_pending = False
        self._next_idle_log = 0.0
        self._last_no_content_warning: Optional[float] = None
        self._next_reset_allowed = float("-inf")
        self._input_available = True

        logger.info(
            "KioskController initialized (attract=%s, content=%d, mode=%s)",
            settings.attract_screen,
            len(settings.content_screens),
            settings.play_mode.name
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> KioskMode:
        return self._mode

    @property
    def active_screen(self) -> Optional[str]:
        return self._active_screen

    @property
    def in_attract(self) -> bool:
        return self._mode == KioskMode.ATTRACT

    @property
    def input_available(self) -> bool:
        return self._input_available

    def set_input_available(self, available: bool) -> None:
        """
        Record whether an input backend is connected.

        Without input, activity is never reported and the hard timeout
        decides when content ends.
        """
        self._input_available = available
        if not available:
            logger.warning("No input backend; activity will not be detected")

    def idle_seconds(self) -> float:
        """Seconds since the last counted activity or screen load."""
        return self.activity.idle_seconds(self._clock())

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Display the boot screen (or attract when no boot screen is set)."""
        first = self.settings.boot_screen or self.settings.attract_screen
        logger.info("Starting kiosk on '%s'", first)
        self._load(first)

    def _load(self, screen: str) -> None:
        try:
            self._sink.display(screen)
        except Exception as e:
            logger.error("Presentation sink failed to display '%s': %s", screen, e)
        self.on_screen_loaded(screen)

    def on_screen_loaded(self, screen: str) -> None:
        """
        Record that a screen became active.

        Called for every load the controller makes, and by the host for
        loads made outside the controller.

        Args:
            screen: Screen name now displayed
        """
        now = self._clock()
        old_mode = self._mode

        self._active_screen = screen
        self._mode = KioskMode.ATTRACT if screen == self.settings.attract_screen else KioskMode.CONTENT
        self.activity.mark_input(now)
        self.activity.apply_grace(now)
        self._next_idle_log = 0.0

        logger.info("Loaded screen: %s | Mode=%s", screen, self._mode.name)

        # Leave the boot screen on the next tick so collaborators can settle
        if self.settings.auto_start_from_boot and screen == self.settings.boot_screen:
            self._boot_advance_pending = True

        if old_mode != self._mode and self._on_mode_changed:
            try:
                self._on_mode_changed(self, old_mode, self._mode)
            except Exception as e:
                logger.error("Error in mode change callback: %s", e)

    def load_next_content(self) -> bool:
        """
        Load the next content screen chosen by the selector.

        Returns:
            True if a screen was loaded, False if no content is configured
        """
        try:
            screen = self.selector.next_screen()
        except ConfigurationWarning as e:
            self._report_no_content(e)
            return False

        logger.info("Loading content screen '%s'", screen)
        self._load(screen)
        return True

    def load_attract(self) -> bool:
        """
        Load the attract screen.

        Returns:
            True if loaded, False if attract is already active
        """
        if self.in_attract:
            logger.debug("Already in attract; ignoring attract request")
            return False

        logger.info("Loading attract screen '%s'", self.settings.attract_screen)
        self._load(self.settings.attract_screen)
        return True

    def _report_no_content(self, error: ConfigurationWarning) -> None:
        now = self._clock()
        last = self._last_no_content_warning
        if last is None or now - last >= self.settings.no_content_warning_interval:
            logger.warning("%s; staying on '%s'", error, self._active_screen)
            self._last_no_content_warning = now

        if self._on_no_content:
            try:
                self._on_no_content()
            except Exception as e:
                logger.error("Error in no-content callback: %s", e)

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def submit_event(
        self,
        name: str,
        kind: Union[InputKind, str],
        value: Any,
        timestamp: Optional[float] = None
    ) -> None:
        """
        Queue a device event (thread-safe).

        Args:
            name: Logical action name
            kind: InputKind or its string value
            value: Button value or (x, y) pair
            timestamp: Event time on the controller clock (now if None)
        """
        try:
            kind = InputKind.parse(kind)
        except ValueError:
            logger.debug("Dropping event %s with unknown kind %r", name, kind)
            return

        if timestamp is None:
            timestamp = self._clock()
        self._pending.put(DeviceEvent(name, kind, value, timestamp))

    def post_request(self, request: KioskRequest) -> None:
        """Queue a request to be handled on the next tick (thread-safe)."""
        self._pending.put(request)

    def reset_inactivity_timer(self, reason: str = "external") -> bool:
        """
        Mark activity without going through the classifier.

        Resets closer together than min_reset_interval are ignored, so a host
        may post a reset every frame while a stick is held.

        Returns:
            True if the timer was reset
        """
        now = self._clock()
        if now < self._next_reset_allowed:
            return False

        self._next_reset_allowed = now + self.settings.min_reset_interval
        self.activity.mark_input(now)
        logger.debug("Reset timer (%s) in screen '%s'", reason, self._active_screen)
        return True

    def _drain_pending(self) -> None:
        while True:
            try:
                item = self._pending.get_nowait()
            except queue.Empty:
                return

            if isinstance(item, KioskRequest):
                self._handle_request(item)
            else:
                self._handle_event(item)

    def _handle_request(self, request: KioskRequest) -> None:
        if request == KioskRequest.NEXT_CONTENT:
            self.load_next_content()
        elif request == KioskRequest.ATTRACT:
            self.load_attract()
        elif request == KioskRequest.RESET_TIMER:
            self.reset_inactivity_timer("request")

    def _handle_event(self, event: DeviceEvent) -> None:
        activity = self.classifier.classify(event, self.activity, self.in_attract)
        if activity is None:
            return

        if activity.kind == ActivityKind.LEAVE_ATTRACT:
            logger.info("Start in attract -> load next content")
            self.load_next_content()
            return

        self.activity.mark_input(event.timestamp)
        logger.debug("Reset timer (%s) in screen '%s'", activity.reason, self._active_screen)

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self) -> None:
        """Apply queued input and evaluate inactivity timeouts."""
        try:
            self._drain_pending()

            if self._boot_advance_pending:
                self._boot_advance_pending = False
                self.load_next_content()
                return

            # Attract has no timeout; it waits for the start action.
            if self.in_attract:
                return

            self._evaluate_timeouts()
        except Exception as e:
            logger.error("Error in kiosk tick: %s", e)

    def _evaluate_timeouts(self) -> None:
        now = self._clock()
        soft, hard = self.policies.effective_policy(self._active_screen)
        idle = self.activity.idle_seconds(now)

        if now >= self._next_idle_log:
            self._next_idle_log = now + self.settings.idle_log_interval
            logger.debug(
                "Screen='%s' | Idle=%.1fs | %s | %s",
                self._active_screen,
                idle,
                f"Soft={soft:.1f}s" if soft > 0 else "Soft=OFF",
                f"Hard={hard:.1f}s" if hard > 0 else "Hard=OFF"
            )

        # Hard is the safety ceiling and wins over soft.
        if hard > 0 and idle >= hard:
            logger.info("HARD timeout (idle=%.1fs >= %.1fs) -> Attract", idle, hard)
            self.load_attract()
            return

        if soft > 0 and idle >= soft:
            logger.info("SOFT timeout (idle=%.1fs >= %.1fs) -> Next content", idle, soft)
            self.load_next_content()

    def get_state_info(self) -> Dict[str, Any]:
        """
        Get information about current state.

        Returns:
            Dictionary with mode, screen, idle time, policy and selector info
        """
        soft, hard = self.policies.effective_policy(self._active_screen)
        return {
            'mode': self._mode.value,
            'screen': self._active_screen,
            'idle_seconds': round(self.idle_seconds(), 3),
            'soft_seconds': soft,
            'hard_seconds': hard,
            'input_available': self._input_available,
            'selector': self.selector.peek_info(),
        }

    def __repr__(self) -> str:
        """String representation."""
        return f"KioskController(mode={self._mode.name}, screen={self._active_screen})"
