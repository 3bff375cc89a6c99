"""
Input activity classification.
Turns raw button / Vector2 events into a single "user is active" signal,
edge-triggered so held buttons and sticks count once.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from src.common.logger import setup_logger

logger = setup_logger(__name__)

# Button value at or above which a control counts as pressed
BUTTON_PRESS_POINT = 0.5


class InputKind(Enum):
    """Control type of a device event."""
    BUTTON = "button"
    VECTOR2 = "vector2"

    @classmethod
    def parse(cls, value: Any) -> 'InputKind':
        """Parse a kind from a message value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class ActivityKind(Enum):
    """What a classified event asks the controller to do."""
    ACTIVITY = "activity"            # reset inactivity timer
    LEAVE_ATTRACT = "leave_attract"  # start content from attract


@dataclass
class DeviceEvent:
    """One raw change reported by the input backend."""

    name: str
    kind: InputKind
    value: Any
    timestamp: float = 0.0


@dataclass(frozen=True)
class Activity:
    """Result of classifying an event."""

    kind: ActivityKind
    reason: str


@dataclass
class ActivityState:
    """Activity timestamps and per-control edge memory."""

    grace_seconds: float = 0.35
    last_input_time: float = 0.0
    grace_deadline: float = 0.0
    vector2_was_active: Dict[str, bool] = field(default_factory=dict)
    button_was_pressed: Dict[str, bool] = field(default_factory=dict)

    def mark_input(self, now: float) -> None:
        self.last_input_time = now

    def apply_grace(self, now: float) -> None:
        self.grace_deadline = now + self.grace_seconds

    def in_grace(self, now: float) -> bool:
        return now < self.grace_deadline

    def idle_seconds(self, now: float) -> float:
        return now - self.last_input_time


def vector_magnitude(value: Any) -> float:
    """
    Magnitude of a 2D value.

    Raises:
        ValueError: If value is not a pair of numbers
    """
    try:
        x, y = value
        return math.hypot(float(x), float(y))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Not a Vector2 value: {value!r}") from e


def button_pressed(value: Any) -> bool:
    """
    Whether a button value counts as pressed.

    Raises:
        ValueError: If value is not numeric or bool
    """
    try:
        return float(value) >= BUTTON_PRESS_POINT
    except (TypeError, ValueError) as e:
        raise ValueError(f"Not a button value: {value!r}") from e


class InputClassifier:
    """
    Classifies device events as activity.

    - Events inside the post-transition grace window are dropped.
    - In attract, only a press of the start action is forwarded, as a
      leave-attract request.
    - In content, listed actions count: buttons on press, Vector2 when the
      magnitude crosses upward through the deadzone.
    """

    def __init__(
        self,
        activity_actions: Iterable[str],
        start_action: str = "Start",
        vector2_deadzone: float = 0.35
    ):
        """
        Initialize the classifier.

        Args:
            activity_actions: Action names that count as activity in content
            start_action: Action that leaves attract
            vector2_deadzone: Magnitude threshold for stick/dpad activity
        """
        self.activity_actions = frozenset(activity_actions)
        self.start_action = start_action
        self.vector2_deadzone = vector2_deadzone

    def classify(
        self,
        event: DeviceEvent,
        state: ActivityState,
        in_attract: bool
    ) -> Optional[Activity]:
        """
        Classify one event, updating edge memory in state.

        Args:
            event: Device event to classify
            state: Activity state (edge memory is updated in place)
            in_attract: Whether the attract screen is active

        Returns:
            Activity or None if the event does not count
        """
        try:
            # Button memory follows the device even when the event is ignored,
            # so a release inside the grace window is not lost.
            pressed_edge = (
                self._rising_edge(event, state)
                if event.kind == InputKind.BUTTON else False
            )

            if state.in_grace(event.timestamp):
                logger.debug("Ignoring %s inside grace window", event.name)
                return None

            if in_attract:
                return self._classify_attract(event, pressed_edge)
            return self._classify_content(event, state, pressed_edge)
        except ValueError as e:
            logger.debug("Dropping malformed event %s: %s", event.name, e)
            return None

    @staticmethod
    def _rising_edge(event: DeviceEvent, state: ActivityState) -> bool:
        """Update button memory; True only on a not-pressed -> pressed change."""
        pressed = button_pressed(event.value)
        was_pressed = state.button_was_pressed.get(event.name, False)
        state.button_was_pressed[event.name] = pressed
        return pressed and not was_pressed

    def _classify_attract(self, event: DeviceEvent, pressed_edge: bool) -> Optional[Activity]:
        # Only the start action leaves attract; everything else is ignored.
        if event.name != self.start_action or event.kind != InputKind.BUTTON:
            return None

        if pressed_edge:
            return Activity(ActivityKind.LEAVE_ATTRACT, f"action:{event.name}")
        return None

    def _classify_content(
        self,
        event: DeviceEvent,
        state: ActivityState,
        pressed_edge: bool
    ) -> Optional[Activity]:
        if event.name not in self.activity_actions:
            return None

        if event.kind == InputKind.BUTTON:
            if pressed_edge:
                return Activity(ActivityKind.ACTIVITY, f"action:{event.name}")
            return None

        active_now = vector_magnitude(event.value) >= self.vector2_deadzone
        was_active = state.vector2_was_active.get(event.name, False)
        state.vector2_was_active[event.name] = active_now

        if active_now and not was_active:
            return Activity(ActivityKind.ACTIVITY, f"vec2-edge:{event.name}")
        return None
