"""Actuator interface."""

from typing import Protocol


class Actuator(Protocol):
    """Interface for whatever the actions switch on and off."""

    def set_state(self, state: bool, summary: str) -> None:
        """Switch on (True) or off (False). summary names the triggering event."""
        ...
