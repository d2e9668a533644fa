"""
command_jobs.py

Primary/fallback command strategies for the risky pipeline steps (clip cut
and concatenation). A job tries each strategy once, in order, and reports
which one succeeded instead of leaving callers to catch exceptions.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .backends.base import FFMPEG, ExecutionBackend
from .exceptions import (
    BackendError, CommandExecutionError, ConcatenationError, ExportError, SegmentEncodingError
)
from .models import CommandResult, StrategyOutcome

logger = logging.getLogger(__name__)

@dataclass
class Strategy:
    """One way of producing an output: a name and the arguments to run."""

    name: str
    args: List[str]
    tool: str = FFMPEG

class CommandJob:
    """
    Base class representing a command job.

    Attributes:
        strategies: Strategies to try, primary first
        description: Human-readable step name for logs and errors
    """
    error_class = CommandExecutionError
    module = "command_jobs"

    def __init__(self, strategies: Sequence[Strategy], description: str = "command"):
        if not strategies:
            raise ValueError("CommandJob needs at least one strategy")
        self.strategies = list(strategies)
        self.description = description
        self.attempts: List[str] = []

    async def execute(self, backend: ExecutionBackend) -> StrategyOutcome:
        """
        Try each strategy exactly once until one succeeds.

        Raises:
            CommandExecutionError (or the job's error class): If every strategy fails
        """
        last_error: Optional[str] = None
        for index, strategy in enumerate(self.strategies):
            self.attempts.append(strategy.name)
            try:
                result = await backend.run(strategy.args, tool=strategy.tool)
            except BackendError as e:
                last_error = e.message
                result = None
            if result is not None and result.ok:
                if index > 0:
                    logger.info("%s succeeded with fallback strategy '%s'", self.description, strategy.name)
                return StrategyOutcome(name=strategy.name, index=index, result=result)

            if result is not None:
                last_error = _failure_summary(result)
            if index + 1 < len(self.strategies):
                logger.warning("%s: strategy '%s' failed (%s); falling back to '%s'",
                               self.description, strategy.name, last_error,
                               self.strategies[index + 1].name)
            else:
                logger.error("%s: strategy '%s' failed (%s)", self.description, strategy.name, last_error)

        raise self.error_class(
            f"{self.description} failed after trying {', '.join(self.attempts)}: {last_error}",
            module=self.module
        )

def _failure_summary(result: CommandResult) -> str:
    tail = result.stderr.strip().splitlines()[-1:] if result.stderr else []
    summary = f"exit status {result.returncode}"
    if tail:
        summary += f": {tail[0]}"
    return summary

class CutJob(CommandJob):
    """Job for cutting one segment into a clip."""
    error_class = SegmentEncodingError
    module = "cut"

class ConcatJob(CommandJob):
    """Job for concatenating clips into the output."""
    error_class = ConcatenationError
    module = "concatenation"

class GapJob(CommandJob):
    """Job for encoding the black/silent gap clip."""
    error_class = ExportError
    module = "gap"
