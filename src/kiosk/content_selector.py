"""
Content selection for the kiosk rotation.
Picks the next content screen in linear, random or shuffle-bag order.
"""

import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Sequence

from src.common.logger import setup_logger

from .errors import NoContentConfigured

logger = setup_logger(__name__)


class SelectionMode(Enum):
    """How the next content item is chosen."""
    LINEAR = "linear"
    RANDOM = "random"
    SHUFFLE = "shuffle"

    @classmethod
    def parse(cls, value: Any) -> 'SelectionMode':
        """
        Parse a mode from a config value (case-insensitive).

        Raises:
            ValueError: If the value names no known mode
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass
class PlaylistState:
    """Mutable selection state owned by the ContentSelector."""

    mode: SelectionMode = SelectionMode.SHUFFLE
    linear_cursor: int = -1
    shuffle_bag: Deque[int] = field(default_factory=deque)
    rng: random.Random = field(default_factory=random.Random)


class ContentSelector:
    """
    Chooses the next content index.

    - LINEAR: cyclic (cursor + 1) mod N, starting at index 0
    - RANDOM: independent uniform draw each call
    - SHUFFLE: draws from a permuted bag, refilled only when empty
    """

    def __init__(
        self,
        content_screens: Sequence[str],
        attract_screen: str,
        mode: SelectionMode = SelectionMode.SHUFFLE,
        seed: Optional[int] = None
    ):
        """
        Initialize the selector.

        Args:
            content_screens: Ordered content screen names
            attract_screen: Attract screen name (never returned as content)
            mode: Selection mode
            seed: RNG seed for reproducible random/shuffle order
        """
        self.content_screens: List[str] = list(content_screens)
        self.attract_screen = attract_screen
        self.state = PlaylistState(mode=mode, rng=random.Random(seed))

        if attract_screen in self.content_screens:
            logger.warning(
                "Attract screen '%s' is listed as content; it will be skipped",
                attract_screen
            )

        self._refill_bag()

        logger.info(
            "ContentSelector initialized with %d items in %s mode",
            len(self.content_screens),
            mode.name
        )

    @property
    def mode(self) -> SelectionMode:
        return self.state.mode

    def __len__(self) -> int:
        return len(self.content_screens)

    def _refill_bag(self) -> None:
        """Refill the shuffle bag with a fresh permutation of all indices."""
        bag = list(range(len(self.content_screens)))
        self.state.rng.shuffle(bag)
        self.state.shuffle_bag = deque(bag)

    def next_index(self) -> Optional[int]:
        """
        Advance the selection and return the next content index.

        Returns:
            Index in [0, N), or None when no content is configured
        """
        n = len(self.content_screens)
        if n == 0:
            return None

        state = self.state

        if state.mode == SelectionMode.LINEAR:
            state.linear_cursor = (state.linear_cursor + 1) % n
            return state.linear_cursor

        if state.mode == SelectionMode.RANDOM:
            return state.rng.randrange(n)

        # SHUFFLE
        if not state.shuffle_bag:
            self._refill_bag()
        return state.shuffle_bag.popleft()

    def has_playable_content(self) -> bool:
        """Check if at least one entry is not the attract screen."""
        return any(s != self.attract_screen for s in self.content_screens)

    def next_screen(self) -> str:
        """
        Get the next content screen name, skipping attract entries.

        Returns:
            Content screen name

        Raises:
            NoContentConfigured: If there is nothing playable
        """
        if not self.has_playable_content():
            raise NoContentConfigured("No content screens configured")

        while True:
            index = self.next_index()
            screen = self.content_screens[index]
            if screen != self.attract_screen:
                return screen
            logger.warning("Attract screen was in content list; skipping.")

    def peek_info(self) -> Dict[str, Any]:
        """
        Get selection state for status reporting.

        Returns:
            Dictionary with mode, count, cursor and bag size
        """
        return {
            'mode': self.state.mode.value,
            'count': len(self.content_screens),
            'linear_cursor': self.state.linear_cursor,
            'bag_remaining': len(self.state.shuffle_bag),
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ContentSelector(mode={self.state.mode.value}, "
            f"items={len(self.content_screens)})"
        )
