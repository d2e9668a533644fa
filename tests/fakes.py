"""In-memory execution backend for driving the pipeline without an encoder."""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tagexport.backends.base import FFMPEG, FFPROBE, ExecutionBackend, check_name
from tagexport.models import CommandResult, EmbeddedInput, InputReference, NativeInput

FILTERS_OUTPUT = """Filters:
  T.. = Timeline support
 ... drawbox           V->V       Draw a colored box on the input video.
 T.C drawtext          V->V       Draw text on top of video frames using libfreetype library.
"""

FRAME_RATE_JSON = '{"streams": [{"avg_frame_rate": "30000/1001", "r_frame_rate": "30000/1001"}]}'

Rule = Callable[[List[str], str], Optional[CommandResult]]


class FakeBackend(ExecutionBackend):
    """Records every call; encoder commands "produce" their last argument.

    ``rules`` are consulted in order for each ``run``; the first one to
    return a CommandResult wins, otherwise a default success is produced.
    """

    name = "fake"

    def __init__(self, supports_prober: bool = True, checks_filters: bool = True,
                 owns_input: bool = True):
        self.files: Dict[str, bytes] = {}
        self.calls: List[Tuple[str, List[str]]] = []
        self.deleted: List[str] = []
        self.rules: List[Rule] = []
        self.supports_prober = supports_prober
        self.checks_filters = checks_filters
        self._owns_input = owns_input
        self.closed = False

    @property
    def owns_input(self) -> bool:
        return self._owns_input

    def fail_when(self, predicate: Callable[[List[str], str], bool], returncode: int = 1,
                  stderr: str = "simulated failure") -> None:
        def rule(args, tool):
            if predicate(args, tool):
                return CommandResult(args=list(args), returncode=returncode, stderr=stderr)
            return None
        self.rules.append(rule)

    def encoder_calls(self) -> List[List[str]]:
        return [args for tool, args in self.calls if tool == FFMPEG]

    async def write_file(self, name: str, data: bytes) -> None:
        self.files[check_name(name)] = bytes(data)

    async def read_file(self, name: str) -> bytes:
        try:
            return self.files[name]
        except KeyError:
            raise FileNotFoundError(name)

    async def delete_file(self, name: str) -> None:
        self.deleted.append(name)
        self.files.pop(name, None)

    async def prepare_input(self, source: InputReference) -> str:
        if isinstance(source, NativeInput):
            return str(source.path)
        assert isinstance(source, EmbeddedInput)
        await self.write_file("input_fake.mp4", source.data)
        return "input_fake.mp4"

    async def run(self, args: Sequence[str], tool: str = FFMPEG) -> CommandResult:
        args = list(args)
        self.calls.append((tool, args))
        for rule in self.rules:
            result = rule(args, tool)
            if result is not None:
                return result
        return self._default(args, tool)

    def _default(self, args: List[str], tool: str) -> CommandResult:
        if tool == FFPROBE:
            if "stream=width,height" in args:
                return CommandResult(args=args, returncode=0, stdout="1920x1080\n")
            if "stream=sample_rate" in args:
                return CommandResult(args=args, returncode=0, stdout="44100\n")
            if "stream=avg_frame_rate,r_frame_rate" in args:
                return CommandResult(args=args, returncode=0, stdout=FRAME_RATE_JSON)
            return CommandResult(args=args, returncode=1, stderr="unknown query")
        if "-filters" in args:
            return CommandResult(args=args, returncode=0, stdout=FILTERS_OUTPUT)
        output = args[-1]
        self.files[output] = f"encoded:{output}".encode()
        return CommandResult(args=args, returncode=0)

    async def close(self) -> None:
        self.closed = True
