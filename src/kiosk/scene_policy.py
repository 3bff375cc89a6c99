"""
Per-screen inactivity policies.
Maps the active screen to its soft (advance) and hard (back to attract)
timeouts, falling back to a default policy for unlisted screens.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, NamedTuple, Optional

from src.common.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ScenePolicy:
    """Inactivity policy for one screen."""

    screen: str = ""
    enable_soft: bool = False
    soft_seconds: float = 30.0   # advance to next content
    enable_hard: bool = False
    hard_seconds: float = 120.0  # go to attract (must be > soft)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScenePolicy':
        """
        Build a policy from a config mapping.

        Negative durations are clamped to zero.

        Args:
            data: Mapping with screen, enable_soft, soft_seconds,
                  enable_hard, hard_seconds

        Returns:
            ScenePolicy instance
        """
        screen = str(data.get('screen', ''))
        soft = float(data.get('soft_seconds', 30.0))
        hard = float(data.get('hard_seconds', 120.0))

        if soft < 0 or hard < 0:
            logger.warning(
                "Negative timeout in policy for '%s' (soft=%s, hard=%s); clamping to 0",
                screen, soft, hard
            )
            soft = max(soft, 0.0)
            hard = max(hard, 0.0)

        return cls(
            screen=screen,
            enable_soft=bool(data.get('enable_soft', False)),
            soft_seconds=soft,
            enable_hard=bool(data.get('enable_hard', False)),
            hard_seconds=hard,
        )


class EffectivePolicy(NamedTuple):
    """Resolved timeouts in seconds; 0 means disabled."""

    soft: float
    hard: float


class PolicyTable:
    """Lookup of screen name -> ScenePolicy with a default fallback."""

    def __init__(
        self,
        default: Optional[ScenePolicy] = None,
        overrides: Iterable[ScenePolicy] = ()
    ):
        """
        Initialize the policy table.

        Args:
            default: Policy for screens without an override (both disabled if None)
            overrides: Per-screen policies; the first entry for a screen wins
        """
        self.default = default or ScenePolicy()
        self._policies: Dict[str, ScenePolicy] = {}

        for policy in overrides:
            if policy.screen in self._policies:
                logger.warning("Duplicate policy for screen '%s' ignored", policy.screen)
                continue
            self._policies[policy.screen] = policy

    def policy_for(self, screen: Optional[str]) -> ScenePolicy:
        """Get the raw policy registered for a screen (or the default)."""
        return self._policies.get(screen, self.default)

    def effective_policy(self, screen: Optional[str]) -> EffectivePolicy:
        """
        Resolve the soft/hard timeouts for a screen.

        When both are enabled and hard does not exceed soft, hard is raised
        to soft + 1 second.

        Args:
            screen: Screen name

        Returns:
            EffectivePolicy with 0 for each disabled timeout
        """
        policy = self.policy_for(screen)

        soft = policy.soft_seconds if policy.enable_soft else 0.0
        hard = policy.hard_seconds if policy.enable_hard else 0.0

        if hard > 0 and soft > 0 and hard <= soft:
            hard = soft + 1.0

        return EffectivePolicy(soft=soft, hard=hard)

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, screen: str) -> bool:
        return screen in self._policies

    def __repr__(self) -> str:
        """String representation."""
        return f"PolicyTable(overrides={len(self._policies)})"
