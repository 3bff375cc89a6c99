"""Unit tests for the InputClassifier module.

Tests grace window handling, button rising edges, Vector2 deadzone edge
triggering, and attract-screen filtering.
"""

import pytest

from src.kiosk.input_classifier import (
    ActivityKind,
    ActivityState,
    DeviceEvent,
    InputClassifier,
    InputKind,
    button_pressed,
    vector_magnitude,
)


ACTIONS = ["Start", "South", "East", "LeftStick", "Dpad"]


@pytest.fixture
def classifier():
    """Classifier with the default deadzone."""
    return InputClassifier(ACTIONS, start_action="Start", vector2_deadzone=0.35)


@pytest.fixture
def state():
    """Activity state after a transition at t=0."""
    s = ActivityState(grace_seconds=0.35)
    s.mark_input(0.0)
    s.apply_grace(0.0)
    return s


def button(name, value, t):
    return DeviceEvent(name, InputKind.BUTTON, value, t)


def stick(name, x, y, t):
    return DeviceEvent(name, InputKind.VECTOR2, (x, y), t)


class TestHelpers:
    """Tests for value helpers."""

    def test_vector_magnitude(self):
        """Test magnitude of a pair."""
        assert vector_magnitude((3, 4)) == pytest.approx(5.0)

    def test_vector_magnitude_malformed(self):
        """Test that non-pairs raise ValueError."""
        with pytest.raises(ValueError):
            vector_magnitude(0.5)

    def test_button_pressed(self):
        """Test press point handling."""
        assert button_pressed(True) is True
        assert button_pressed(1) is True
        assert button_pressed(0.5) is True
        assert button_pressed(0.2) is False
        assert button_pressed(False) is False


class TestGraceWindow:
    """Tests for the post-transition grace window."""

    def test_event_inside_grace_discarded(self, classifier, state):
        """Test that an event at t=0.1 after a transition at t=0 is ignored."""
        assert classifier.classify(button("South", 1, 0.1), state, in_attract=False) is None

    def test_event_after_grace_accepted(self, classifier, state):
        """Test that an event at t=0.36 is accepted."""
        result = classifier.classify(button("South", 1, 0.36), state, in_attract=False)
        assert result is not None
        assert result.kind == ActivityKind.ACTIVITY
        assert result.reason == "action:South"

    def test_release_inside_grace_still_tracked(self, classifier, state):
        """Test that a press held across the grace window can fire again after release."""
        state.button_was_pressed["South"] = True
        classifier.classify(button("South", 0, 0.2), state, in_attract=False)
        result = classifier.classify(button("South", 1, 0.5), state, in_attract=False)
        assert result is not None


class TestButtons:
    """Tests for button edge detection."""

    def test_press_fires_once_while_held(self, classifier, state):
        """Test that a held button only counts on the rising edge."""
        assert classifier.classify(button("South", 1, 1.0), state, False) is not None
        assert classifier.classify(button("South", 1, 1.1), state, False) is None
        assert classifier.classify(button("South", 0, 1.2), state, False) is None
        assert classifier.classify(button("South", 1, 1.3), state, False) is not None

    def test_unlisted_action_ignored(self, classifier, state):
        """Test that actions not in the activity list do not count."""
        assert classifier.classify(button("North", 1, 1.0), state, False) is None

    def test_malformed_value_dropped(self, classifier, state):
        """Test that malformed values never raise."""
        assert classifier.classify(button("South", "pressed", 1.0), state, False) is None


class TestVector2:
    """Tests for Vector2 deadzone edge triggering."""

    def test_crossing_fires_once(self, classifier, state):
        """Test 0.2 -> 0.5 fires once, not again while held, then again after re-crossing."""
        assert classifier.classify(stick("LeftStick", 0.2, 0.0, 1.0), state, False) is None

        result = classifier.classify(stick("LeftStick", 0.5, 0.0, 1.1), state, False)
        assert result is not None
        assert result.reason == "vec2-edge:LeftStick"

        assert classifier.classify(stick("LeftStick", 0.5, 0.0, 1.2), state, False) is None
        assert classifier.classify(stick("LeftStick", 0.0, 0.5, 1.3), state, False) is None

        assert classifier.classify(stick("LeftStick", 0.1, 0.0, 1.4), state, False) is None
        assert classifier.classify(stick("LeftStick", 0.5, 0.0, 1.5), state, False) is not None

    def test_axes_tracked_independently(self, classifier, state):
        """Test that edge memory is kept per axis name."""
        assert classifier.classify(stick("LeftStick", 0.9, 0.0, 1.0), state, False) is not None
        assert classifier.classify(stick("Dpad", 1.0, 0.0, 1.1), state, False) is not None
        assert state.vector2_was_active == {"LeftStick": True, "Dpad": True}

    def test_malformed_vector_dropped(self, classifier, state):
        """Test that a scalar Vector2 value is dropped."""
        event = DeviceEvent("LeftStick", InputKind.VECTOR2, 0.9, 1.0)
        assert classifier.classify(event, state, False) is None


class TestAttractFiltering:
    """Tests for attract-screen filtering."""

    def test_start_leaves_attract(self, classifier, state):
        """Test that Start in attract is a leave-attract request."""
        result = classifier.classify(button("Start", 1, 1.0), state, in_attract=True)
        assert result.kind == ActivityKind.LEAVE_ATTRACT

    def test_other_input_suppressed(self, classifier, state):
        """Test that other activity-worthy input is suppressed in attract."""
        assert classifier.classify(button("South", 1, 1.0), state, True) is None
        assert classifier.classify(stick("LeftStick", 1.0, 0.0, 1.0), state, True) is None

    def test_attract_does_not_update_vector_memory(self, classifier, state):
        """Test that sticks moved in attract do not consume the edge."""
        classifier.classify(stick("LeftStick", 1.0, 0.0, 1.0), state, True)
        assert "LeftStick" not in state.vector2_was_active

    def test_start_counts_as_activity_in_content(self, classifier, state):
        """Test that Start is plain activity outside attract."""
        result = classifier.classify(button("Start", 1, 1.0), state, in_attract=False)
        assert result.kind == ActivityKind.ACTIVITY


class TestActivityState:
    """Tests for ActivityState helpers."""

    def test_idle_and_grace(self):
        """Test idle time and grace deadline arithmetic."""
        s = ActivityState(grace_seconds=0.5)
        s.mark_input(10.0)
        s.apply_grace(10.0)
        assert s.idle_seconds(12.5) == pytest.approx(2.5)
        assert s.in_grace(10.4) is True
        assert s.in_grace(10.5) is False

    def test_input_kind_parse(self):
        """Test parsing kinds from message strings."""
        assert InputKind.parse("Button") is InputKind.BUTTON
        assert InputKind.parse("vector2") is InputKind.VECTOR2
        with pytest.raises(ValueError):
            InputKind.parse("axis")
