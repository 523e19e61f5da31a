"""calswitch - drive an on/off switch from calendar events."""

__version__ = "0.1.0"
