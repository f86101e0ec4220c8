"""Terminal control panel for a Ruuvi sensor gateway."""

__version__ = "0.3.0"
