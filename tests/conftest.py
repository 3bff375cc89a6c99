"""
Pytest fixtures for kiosk controller tests.

Provides a controllable clock, default settings and a recording sink.
"""

import pytest

from src.kiosk.content_selector import SelectionMode
from src.kiosk.presentation import LoggingPresentationSink
from src.kiosk.scene_policy import ScenePolicy
from src.kiosk.settings import KioskSettings


class FakeClock:
    """Monotonic clock advanced manually by tests."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    """Fake monotonic clock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def sink():
    """Presentation sink that records displayed screens."""
    return LoggingPresentationSink()


@pytest.fixture
def settings():
    """Settings with three content screens and linear rotation."""
    return KioskSettings(
        attract_screen="Attract",
        boot_screen="Kiosk",
        content_screens=("Gallery", "Planetarium", "Reef"),
        play_mode=SelectionMode.LINEAR,
        scene_policies=(
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=30.0,
                        enable_hard=True, hard_seconds=120.0),
            ScenePolicy("Planetarium", enable_hard=True, hard_seconds=120.0),
            ScenePolicy("Reef", enable_soft=True, soft_seconds=30.0),
        ),
    )
