"""Unit tests for the scene policy table.

Tests policy parsing, default fallback, and the hard-above-soft correction.
"""

import pytest

from src.kiosk.scene_policy import EffectivePolicy, PolicyTable, ScenePolicy


class TestScenePolicy:
    """Tests for ScenePolicy."""

    def test_defaults_disabled(self):
        """Test that a bare policy has both timeouts disabled."""
        policy = ScenePolicy()
        assert policy.enable_soft is False
        assert policy.enable_hard is False
        assert policy.soft_seconds == 30.0
        assert policy.hard_seconds == 120.0

    def test_from_dict(self):
        """Test building a policy from a config mapping."""
        policy = ScenePolicy.from_dict({
            'screen': 'Reef',
            'enable_soft': True,
            'soft_seconds': 45,
            'enable_hard': True,
            'hard_seconds': 200,
        })
        assert policy == ScenePolicy('Reef', True, 45.0, True, 200.0)

    def test_from_dict_clamps_negative(self):
        """Test that negative durations are clamped to zero."""
        policy = ScenePolicy.from_dict({'screen': 'Reef', 'soft_seconds': -5})
        assert policy.soft_seconds == 0.0


class TestPolicyTable:
    """Tests for PolicyTable lookups."""

    def test_unknown_screen_uses_default(self):
        """Test that unknown screens get the default policy, never an error."""
        default = ScenePolicy(enable_hard=True, hard_seconds=90.0)
        table = PolicyTable(default=default)
        assert table.effective_policy("Nowhere") == EffectivePolicy(soft=0.0, hard=90.0)
        assert table.effective_policy(None) == EffectivePolicy(soft=0.0, hard=90.0)

    def test_default_default_is_disabled(self):
        """Test that the built-in default disables both timeouts."""
        table = PolicyTable()
        assert table.effective_policy("Gallery") == EffectivePolicy(0.0, 0.0)

    def test_override_used(self):
        """Test that a per-screen override is returned for its screen."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=30.0),
        ])
        assert table.effective_policy("Gallery") == EffectivePolicy(30.0, 0.0)
        assert "Gallery" in table
        assert len(table) == 1

    def test_hard_raised_above_soft(self):
        """Test soft=30, hard=20 yields an effective hard of 31."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=30.0,
                        enable_hard=True, hard_seconds=20.0),
        ])
        assert table.effective_policy("Gallery") == EffectivePolicy(30.0, 31.0)

    def test_equal_hard_and_soft_corrected(self):
        """Test that hard equal to soft is also raised."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=30.0,
                        enable_hard=True, hard_seconds=30.0),
        ])
        assert table.effective_policy("Gallery").hard == 31.0

    def test_no_correction_when_soft_disabled(self):
        """Test that a disabled soft timeout leaves hard untouched."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=False, soft_seconds=30.0,
                        enable_hard=True, hard_seconds=20.0),
        ])
        assert table.effective_policy("Gallery") == EffectivePolicy(0.0, 20.0)

    def test_enabled_with_zero_seconds_is_disabled(self):
        """Test that an enabled timeout of 0 seconds counts as disabled."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=0.0,
                        enable_hard=True, hard_seconds=10.0),
        ])
        assert table.effective_policy("Gallery") == EffectivePolicy(0.0, 10.0)

    def test_duplicate_screen_first_wins(self):
        """Test that the first policy registered for a screen wins."""
        table = PolicyTable(overrides=[
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=10.0),
            ScenePolicy("Gallery", enable_soft=True, soft_seconds=99.0),
        ])
        assert table.effective_policy("Gallery").soft == 10.0
        assert len(table) == 1

    def test_repr(self):
        """Test string representation."""
        assert repr(PolicyTable()) == "PolicyTable(overrides=0)"
