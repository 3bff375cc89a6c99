"""
Error taxonomy for the kiosk controller.
None of these are fatal to the rotation loop; they are raised at the edges
and caught where the controller, listener or overlay can log and carry on.
"""


class KioskError(Exception):
    """Base class for kiosk errors."""
    pass


class ConfigurationWarning(KioskError):
    """Content or policy configuration is unusable for the requested operation."""
    pass


class NoContentConfigured(ConfigurationWarning):
    """No playable content screen is configured."""
    pass


class InputBackendUnavailable(KioskError):
    """The device event source could not be reached."""
    pass


class MalformedOverrideData(KioskError):
    """Binding override data could not be parsed."""
    pass
