"""
Kiosk package: inactivity/rotation controller for an unattended display.
Contains the input classifier, policy table, content selector, controller,
presentation sinks, device event listener and rebind overlay.
"""
