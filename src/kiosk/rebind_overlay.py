"""
Rebindable control overlay.
Live inspection of controller values plus a capture workflow that maps
physical controls to the logical actions the kiosk understands.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.common.logger import setup_logger

from .errors import MalformedOverrideData
from .input_classifier import InputKind, button_pressed, vector_magnitude

logger = setup_logger(__name__)

# Pointer-type devices never take a binding
EXCLUDED_DEVICES = ("<Mouse>", "<Pointer>", "<Touchscreen>")
CANCEL_CONTROL = "<Keyboard>/escape"
TOGGLE_OVERLAY_CONTROL = "<Keyboard>/f1"
TOGGLE_PANEL_CONTROL = "<Keyboard>/f2"


@dataclass(frozen=True)
class ControlAction:
    """A logical action and its default control paths."""

    name: str
    label: str
    kind: InputKind
    default_paths: Tuple[str, ...]


DEFAULT_ACTIONS: Tuple[ControlAction, ...] = (
    ControlAction("LeftStick", "Left Stick", InputKind.VECTOR2, ("<Gamepad>/leftStick",)),
    ControlAction("RightStick", "Right Stick", InputKind.VECTOR2, ("<Gamepad>/rightStick",)),
    ControlAction("Dpad", "D-pad", InputKind.VECTOR2, ("<Gamepad>/dpad",)),
    ControlAction("South", "Button South", InputKind.BUTTON, ("<Gamepad>/buttonSouth",)),
    ControlAction("East", "Button East", InputKind.BUTTON, ("<Gamepad>/buttonEast",)),
    ControlAction("West", "Button West", InputKind.BUTTON, ("<Gamepad>/buttonWest",)),
    ControlAction("North", "Button North", InputKind.BUTTON, ("<Gamepad>/buttonNorth",)),
    ControlAction(
        "Start", "Start", InputKind.BUTTON,
        ("<Gamepad>/menu", "<Gamepad>/startButton", "<Gamepad>/start")
    ),
)


class RebindState(Enum):
    """Rebind workflow state."""
    IDLE = "idle"
    CAPTURING = "capturing"


def apply_radial_deadzone(value: Tuple[float, float], deadzone: float) -> Tuple[float, float]:
    """
    Zero values inside the deadzone and rescale the rest to ramp 0..1.

    Args:
        value: (x, y) pair
        deadzone: Radial deadzone in [0, 1)

    Returns:
        Rescaled (x, y) pair
    """
    x, y = float(value[0]), float(value[1])
    if deadzone <= 0:
        return x, y

    magnitude = math.hypot(x, y)
    if magnitude < deadzone:
        return 0.0, 0.0

    scaled = min(max((magnitude - deadzone) / (1.0 - deadzone), 0.0), 1.0)
    return x / magnitude * scaled, y / magnitude * scaled


def device_of(control: str) -> str:
    """Device part of a control path, e.g. "<Gamepad>" for "<Gamepad>/dpad"."""
    return control.split('/', 1)[0]


class RebindOverlay:
    """
    Binding table, live values and the rebind sub-machine.

    IDLE -> CAPTURING on start_rebind(); CAPTURING -> IDLE when a matching
    control is offered (commit), on escape or cancel_rebind() (restore).
    """

    def __init__(
        self,
        actions: Sequence[ControlAction] = DEFAULT_ACTIONS,
        stick_deadzone: float = 0.12,
        dpad_deadzone: float = 0.05,
        overrides_json: str = ""
    ):
        """
        Initialize the overlay.

        Args:
            actions: Logical actions to expose
            stick_deadzone: Radial deadzone for stick display values
            dpad_deadzone: Radial deadzone for dpad display values
            overrides_json: Serialized overrides to apply at startup
        """
        self.actions: Dict[str, ControlAction] = {a.name: a for a in actions}
        self.stick_deadzone = stick_deadzone
        self.dpad_deadzone = dpad_deadzone

        self.show_overlay = True
        self.show_rebind_panel = True
        self.status = ""

        self._overrides: Dict[str, str] = {}
        self._serialized = ""
        self._values: Dict[str, Any] = {}
        self._state = RebindState.IDLE
        self._capture_action: Optional[str] = None
        self._capture_previous: Optional[str] = None

        if overrides_json and overrides_json.strip():
            self.paste_overrides(overrides_json)

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def effective_paths(self, action: str) -> Tuple[str, ...]:
        """Control paths currently bound to an action."""
        if action in self._overrides:
            return (self._overrides[action],)
        return self.actions[action].default_paths

    def binding_display(self, action: str) -> str:
        paths = self.effective_paths(action)
        return paths[0] if paths else "(none)"

    def resolve(self, control: str) -> Optional[str]:
        """
        Map a control path to the action bound to it.

        Args:
            control: Control path, e.g. "<Gamepad>/buttonSouth"

        Returns:
            Action name or None if unbound
        """
        for name in self.actions:
            if control in self.effective_paths(name):
                return name
        return None

    @property
    def overrides(self) -> Dict[str, str]:
        return dict(self._overrides)

    # -------------------------------------------------------------------------
    # Live values
    # -------------------------------------------------------------------------

    def observe(self, action: str, kind: InputKind, value: Any) -> None:
        """Record the latest value of an action for display."""
        if action not in self.actions:
            return

        try:
            if kind == InputKind.VECTOR2:
                deadzone = self.dpad_deadzone if action == "Dpad" else self.stick_deadzone
                self._values[action] = apply_radial_deadzone(value, deadzone)
            else:
                self._values[action] = button_pressed(value)
        except (TypeError, ValueError, IndexError) as e:
            logger.debug("Ignoring malformed value for %s: %s", action, e)

    def value_of(self, action: str) -> Any:
        default = (0.0, 0.0) if self.actions[action].kind == InputKind.VECTOR2 else False
        return self._values.get(action, default)

    def overlay_text(self) -> str:
        """Build the inspection text shown by the overlay."""
        lines = ["Control Overlay", ""]

        for action in self.actions.values():
            value = self.value_of(action.name)
            if action.kind == InputKind.VECTOR2:
                shown = f"({value[0]:.3f}, {value[1]:.3f})"
            else:
                shown = "1" if value else "0"
            lines.append(f"{action.label}: {shown}")

        lines.append("")
        lines.append("Effective bindings:")
        for action in self.actions.values():
            lines.append(f" - {action.label}: {self.binding_display(action.name)}")

        if self.status.strip():
            lines.append("")
            lines.append(self.status)

        return "\n".join(lines)

    def toggle_overlay(self) -> bool:
        self.show_overlay = not self.show_overlay
        return self.show_overlay

    def toggle_rebind_panel(self) -> bool:
        self.show_rebind_panel = not self.show_rebind_panel
        return self.show_rebind_panel

    # -------------------------------------------------------------------------
    # Rebind workflow
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RebindState:
        return self._state

    @property
    def is_capturing(self) -> bool:
        return self._state == RebindState.CAPTURING

    @property
    def capture_action(self) -> Optional[str]:
        return self._capture_action

    def start_rebind(self, action: str) -> None:
        """
        Begin capturing a new control for an action.

        Args:
            action: Action name to rebind

        Raises:
            KeyError: If the action is unknown
        """
        if action not in self.actions:
            raise KeyError(f"Unknown action: {action}")

        if self.is_capturing:
            self.cancel_rebind()

        self._state = RebindState.CAPTURING
        self._capture_action = action
        self._capture_previous = self._overrides.get(action)
        self.status = f"Rebinding {action}... press a control (Esc cancels)."
        logger.info("Rebind started for %s", action)

    def offer_control(self, control: str, kind: InputKind, value: Any) -> bool:
        """
        Offer a control change to the capture.

        Args:
            control: Control path
            kind: Control kind
            value: Control value

        Returns:
            True if the control ended the capture (commit or cancel)
        """
        if not self.is_capturing:
            return False

        if control == CANCEL_CONTROL:
            self.cancel_rebind()
            return True

        if device_of(control) in EXCLUDED_DEVICES:
            return False

        action = self.actions[self._capture_action]
        if kind != action.kind:
            return False

        try:
            if kind == InputKind.BUTTON:
                actuated = button_pressed(value)
            else:
                actuated = vector_magnitude(value) >= 0.5
        except ValueError:
            return False

        if not actuated:
            return False

        self._commit(control)
        return True

    def _commit(self, control: str) -> None:
        action = self._capture_action
        self._overrides[action] = control
        self._serialized = self.export_overrides_json()
        self._end_capture()
        self.status = f"Rebind complete: {action} -> {control}"
        logger.info("Rebind complete: %s -> %s", action, control)
        self._warn_conflicts()

    def cancel_rebind(self) -> None:
        """Abandon the capture and restore the prior binding."""
        if not self.is_capturing:
            return

        action = self._capture_action
        if self._capture_previous is None:
            self._overrides.pop(action, None)
        else:
            self._overrides[action] = self._capture_previous

        self._end_capture()
        self.status = "Rebind cancelled."
        logger.info("Rebind cancelled for %s", action)

    def _end_capture(self) -> None:
        self._state = RebindState.IDLE
        self._capture_action = None
        self._capture_previous = None

    def reset_all(self) -> None:
        """Remove every override."""
        self.cancel_rebind()
        self._overrides.clear()
        self._serialized = ""
        self.status = "All bindings reset."

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @property
    def serialized(self) -> str:
        """Overrides JSON as last committed or loaded."""
        return self._serialized

    def export_overrides_json(self) -> str:
        """Serialize overrides as {"items": [{"action", "path"}]}."""
        items = [
            {"action": name, "path": self._overrides[name]}
            for name in self.actions if name in self._overrides
        ]
        return json.dumps({"items": items}, indent=2)

    def load_overrides_json(self, text: str) -> Dict[str, str]:
        """
        Parse serialized overrides.

        Entries naming unknown actions are skipped.

        Args:
            text: Overrides JSON

        Returns:
            Mapping of action name -> control path

        Raises:
            MalformedOverrideData: If the text is not valid overrides JSON
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedOverrideData(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise MalformedOverrideData("Expected an object with an 'items' list")

        overrides: Dict[str, str] = {}
        for item in data["items"]:
            if not isinstance(item, dict):
                raise MalformedOverrideData(f"Invalid item: {item!r}")
            name = item.get("action")
            path = item.get("path")
            if not isinstance(name, str) or not isinstance(path, str) or not path:
                raise MalformedOverrideData(f"Invalid item: {item!r}")
            if name not in self.actions:
                logger.debug("Skipping override for unknown action %s", name)
                continue
            overrides[name] = path

        return overrides

    def paste_overrides(self, text: str) -> bool:
        """
        Apply serialized overrides, keeping the current ones on failure.

        Args:
            text: Overrides JSON

        Returns:
            True if applied
        """
        if not text or not text.strip():
            self.status = "Clipboard is empty."
            return False

        try:
            overrides = self.load_overrides_json(text)
        except MalformedOverrideData as e:
            logger.warning("Discarding malformed binding overrides: %s", e)
            self.status = "Text was not valid overrides JSON."
            return False

        self.cancel_rebind()
        self._overrides = overrides
        self._serialized = text
        self.status = "Overrides JSON applied."
        self._warn_conflicts()
        return True

    def binding_conflicts(self) -> List[Tuple[str, str, str]]:
        """
        Control paths bound to more than one action.

        Returns:
            (path, resolving action, shadowed action) for each shadowed binding
        """
        conflicts = []
        for name in self.actions:
            for path in self.effective_paths(name):
                owner = self.resolve(path)
                if owner != name:
                    conflicts.append((path, owner, name))
        return conflicts

    def _warn_conflicts(self) -> None:
        for path, owner, shadowed in self.binding_conflicts():
            logger.warning(
                "Binding conflict: %s is bound to %s and %s; it resolves to %s",
                path, owner, shadowed, owner
            )

    # -------------------------------------------------------------------------
    # Operator commands
    # -------------------------------------------------------------------------

    def handle_toggle_control(self, control: str, value: Any) -> bool:
        """
        Apply the F1 / F2 panel toggle keys.

        Args:
            control: Control path
            value: Button value

        Returns:
            True if the control is a toggle key (press or release)
        """
        if control not in (TOGGLE_OVERLAY_CONTROL, TOGGLE_PANEL_CONTROL):
            return False

        try:
            pressed = button_pressed(value)
        except ValueError:
            return True

        if pressed:
            if control == TOGGLE_OVERLAY_CONTROL:
                self.toggle_overlay()
            else:
                self.toggle_rebind_panel()
        return True

    def handle_command(self, data: Dict[str, Any]) -> bool:
        """
        Apply an operator command.

        Commands: rebind (with "action"), cancel_rebind, reset_bindings,
        paste_overrides (with "text"), toggle_overlay, toggle_rebind_panel,
        clear_status.

        Args:
            data: Command message data, e.g. {"command": "rebind", "action": "South"}

        Returns:
            True if the command was applied
        """
        command = data.get("command")

        try:
            if command == "rebind":
                self.start_rebind(str(data.get("action")))
            elif command == "cancel_rebind":
                self.cancel_rebind()
            elif command == "reset_bindings":
                self.reset_all()
            elif command == "paste_overrides":
                return self.paste_overrides(str(data.get("text") or ""))
            elif command == "toggle_overlay":
                self.toggle_overlay()
            elif command == "toggle_rebind_panel":
                self.toggle_rebind_panel()
            elif command == "clear_status":
                self.status = ""
            else:
                logger.warning("Unknown overlay command %r", command)
                return False
        except KeyError as e:
            logger.warning("Rejected overlay command %r: %s", command, e)
            self.status = f"Unknown action: {data.get('action')}"
            return False

        return True

    def action_names(self) -> List[str]:
        return list(self.actions)

    def __repr__(self) -> str:
        """String representation."""
        return f"RebindOverlay(state={self._state.value}, overrides={len(self._overrides)})"
