"""
Hand the finished composite to the external screen-lock program.
"""
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from core.errors import FatalConfigError, LockProgramError
from core.logging.logger import get_logger
from core.settings.config import LOCK_PROGRAMS

logger = get_logger(__name__)

# Command line per supported program; "{image}" is replaced by the composite path.
LOCK_COMMANDS = {
    "i3lock": ["i3lock", "--image", "{image}"],
    "swaylock": ["swaylock", "--image", "{image}"],
}


class LockLauncher:
    """Runs the configured lock program with the composite as background."""

    def __init__(self, program: str = "i3lock",
                 which: Callable[[str], Optional[str]] = shutil.which,
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        if program not in LOCK_PROGRAMS:
            raise FatalConfigError(f"Unsupported lock program: {program}")
        self.program = program
        self._which = which
        self._runner = runner

    def build_command(self, image_path: Path) -> List[str]:
        return [part.replace("{image}", str(image_path)) for part in LOCK_COMMANDS[self.program]]

    def ensure_available(self) -> str:
        """
        Resolve the program on PATH.

        Raises:
            FatalConfigError: program not installed
        """
        resolved = self._which(self.program)
        if not resolved:
            raise FatalConfigError(f"Lock program '{self.program}' not found on PATH")
        return resolved

    def launch(self, image_path: Path) -> None:
        """
        Start the lock program and wait for it to return.

        Raises:
            FatalConfigError: program not installed
            LockProgramError: program could not start or exited non-zero
        """
        self.ensure_available()
        command = self.build_command(image_path)
        logger.info("[LOCK] Running %s", " ".join(command))
        try:
            result = self._runner(command, capture_output=True, text=True, check=False)
        except OSError as e:
            raise LockProgramError(self.program, f"failed to start: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or "").strip().splitlines()
            reason = detail[-1] if detail else f"exit status {result.returncode}"
            raise LockProgramError(self.program, reason)
        logger.info("[LOCK] %s returned", self.program)
