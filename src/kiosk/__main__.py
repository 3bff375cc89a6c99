"""
Entry point for: python3 -m src.kiosk

Runs the kiosk rotation controller tick loop.
"""

from .kiosk_app import main

if __name__ == "__main__":
    main()
