"""Execution backend contract

Responsibilities:
- Define the file and command interface shared by both backends
- Map an input reference to the name commands use for it
- Provide idempotent, best-effort deletion helpers for cleanup
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from ..exceptions import BackendError
from ..models import CommandResult, InputReference

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"


def check_name(name: str) -> str:
    """Reject names that would escape a backend's flat file namespace"""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise BackendError(f"Invalid file name: {name!r}", module="backends")
    return name


class ExecutionBackend(ABC):
    """Runs encoder/prober commands against a private file namespace.

    File names are flat names inside that namespace. ``run`` returns the
    exit status in a :class:`CommandResult`; it raises
    :class:`~tagexport.exceptions.BackendError` only when the command could
    not be started at all.
    """

    name = "backend"

    #: Whether a separate prober binary is available for metadata queries
    supports_prober = False

    #: Whether the encoder must be asked which filters it has
    checks_filters = False

    @abstractmethod
    async def write_file(self, name: str, data: bytes) -> None:
        """Create or replace ``name`` with ``data``"""

    @abstractmethod
    async def read_file(self, name: str) -> bytes:
        """Return the contents of ``name``"""

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Delete ``name``; a missing file is not an error"""

    @abstractmethod
    async def run(self, args: Sequence[str], tool: str = FFMPEG) -> CommandResult:
        """Run ``tool`` with ``args`` and wait for it to exit"""

    @abstractmethod
    async def prepare_input(self, source: InputReference) -> str:
        """Make the input available to commands and return its name"""

    @property
    def owns_input(self) -> bool:
        """True when the input was copied in and must be deleted on cleanup"""
        return True

    async def close(self) -> None:
        """Release per-export resources"""

    async def safe_delete(self, name: str) -> None:
        try:
            await self.delete_file(name)
        except Exception as e:
            logger.warning("[%s] failed to delete %s: %s", self.name, name, e)

    async def safe_delete_all(self, names: Iterable[str]) -> None:
        for name in dict.fromkeys(names):
            await self.safe_delete(name)
