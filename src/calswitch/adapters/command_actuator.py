"""Shell command actuator - runs a command on each state change."""

import logging
import shlex
import subprocess

logger = logging.getLogger(__name__)


class CommandActuator:
    """
    Actuator that runs a configured shell command per transition.

    With no command configured the transition is only logged.
    Implements Actuator protocol.
    """

    def __init__(
        self,
        on_command: str = "",
        off_command: str = "",
        timeout: int = 30,
    ):
        self.on_command = on_command
        self.off_command = off_command
        self.timeout = timeout
        self.state: bool | None = None

    def set_state(self, state: bool, summary: str) -> None:
        """Switch on or off. Command failures are logged, not raised."""
        label = "on" if state else "off"
        if state == self.state:
            logger.debug(f"Already {label}, ignoring ({summary})")
            return
        logger.info(f"Switching {label} ({summary})")
        self.state = state

        command = self.on_command if state else self.off_command
        if not command:
            return

        try:
            subprocess.run(
                shlex.split(command),
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            logger.warning(f"Switch {label} command failed ({e.returncode}): {e.stderr.strip()}")
        except FileNotFoundError:
            logger.warning(f"Switch {label} command not found: {command}")
        except subprocess.TimeoutExpired:
            logger.warning(f"Switch {label} command timed out after {self.timeout}s")
