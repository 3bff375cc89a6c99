"""
Kiosk settings built from the YAML configuration.
Read once at startup; immutable afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from src.common.config import Config
from src.common.logger import setup_logger

from .content_selector import SelectionMode
from .scene_policy import ScenePolicy

logger = setup_logger(__name__)

DEFAULT_ACTIVITY_ACTIONS = (
    "Start", "South", "East", "West", "North", "LeftStick", "RightStick", "Dpad"
)


def _action_list(value: Any) -> Tuple[str, ...]:
    """Normalize a configured action list; a single name becomes a 1-tuple."""
    if not value:
        return DEFAULT_ACTIVITY_ACTIONS
    if not isinstance(value, (list, tuple)):
        value = [value]
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class KioskSettings:
    """Configuration surface of the kiosk controller."""

    attract_screen: str = "Attract"
    boot_screen: Optional[str] = "Kiosk"
    auto_start_from_boot: bool = True
    content_screens: Tuple[str, ...] = ()
    play_mode: SelectionMode = SelectionMode.SHUFFLE
    shuffle_seed: Optional[int] = None
    default_policy: ScenePolicy = field(default_factory=ScenePolicy)
    scene_policies: Tuple[ScenePolicy, ...] = ()
    grace_seconds: float = 0.35
    min_reset_interval: float = 0.25
    vector2_deadzone: float = 0.35
    start_action: str = "Start"
    activity_actions: Tuple[str, ...] = DEFAULT_ACTIVITY_ACTIONS
    tick_hz: float = 30.0
    idle_log_interval: float = 1.0
    no_content_warning_interval: float = 10.0

    @classmethod
    def from_config(cls, config: Config) -> 'KioskSettings':
        """
        Build settings from a Config instance.

        Args:
            config: Loaded Config

        Returns:
            KioskSettings instance
        """
        raw_mode = config.get('kiosk.play_mode', 'shuffle')
        try:
            play_mode = SelectionMode.parse(raw_mode)
        except ValueError:
            logger.warning("Unknown play mode '%s'; using shuffle", raw_mode)
            play_mode = SelectionMode.SHUFFLE

        default_policy = ScenePolicy.from_dict(config.get('policies.default', {}) or {})
        scene_policies = tuple(
            ScenePolicy.from_dict(p) for p in (config.get('policies.scenes', []) or [])
        )

        seed = config.get('kiosk.shuffle_seed')
        boot_screen = config.get('kiosk.boot_screen', 'Kiosk')

        settings = cls(
            attract_screen=str(config.get('kiosk.attract_screen', 'Attract')),
            boot_screen=str(boot_screen) if boot_screen else None,
            auto_start_from_boot=bool(config.get('kiosk.auto_start_from_boot', True)),
            content_screens=tuple(str(s) for s in (config.get('kiosk.content_screens', []) or [])),
            play_mode=play_mode,
            shuffle_seed=int(seed) if seed is not None else None,
            default_policy=default_policy,
            scene_policies=scene_policies,
            grace_seconds=max(float(config.get('input.grace_seconds', 0.35)), 0.0),
            min_reset_interval=max(float(config.get('input.min_reset_interval', 0.25)), 0.0),
            vector2_deadzone=float(config.get('input.vector2_deadzone', 0.35)),
            start_action=str(config.get('input.start_action', 'Start')),
            activity_actions=_action_list(config.get('input.activity_actions')),
            tick_hz=float(config.get('kiosk.tick_hz', 30.0)),
            idle_log_interval=float(config.get('logging.idle_log_interval', 1.0)),
            no_content_warning_interval=float(
                config.get('logging.no_content_warning_interval', 10.0)
            ),
        )
        settings.log_warnings()
        return settings

    def log_warnings(self) -> None:
        """Log configuration problems that are tolerated at runtime."""
        if not self.content_screens:
            logger.warning("No content screens configured")
        if self.attract_screen in self.content_screens:
            logger.warning("Attract screen '%s' is listed as content", self.attract_screen)
        if self.tick_hz <= 0:
            logger.warning("tick_hz must be positive (got %s)", self.tick_hz)
