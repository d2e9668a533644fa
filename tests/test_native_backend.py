"""Unit tests for the native execution backend"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from tagexport.backends import FFMPEG, FFPROBE, NativeBackend, check_name
from tagexport.exceptions import BackendError, DependencyError, InputReadError
from tagexport.models import EmbeddedInput, NativeInput
from tagexport.utils import augmented_path, resolve_binary


def fake_process(stdout=b"", stderr_lines=(), returncode=0):
    process = MagicMock()
    process.stdout.read = AsyncMock(return_value=stdout)
    process.stderr.readline = AsyncMock(side_effect=list(stderr_lines) + [b""])
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestBinaryResolution(unittest.TestCase):
    def test_augmented_path(self):
        path = augmented_path(["/opt/homebrew/bin", "/usr/bin"], base=os.pathsep.join(["/usr/bin", "/bin"]))
        self.assertEqual(path.split(os.pathsep), ["/usr/bin", "/bin", "/opt/homebrew/bin"])

    @patch("tagexport.utils.shutil.which", return_value=None)
    def test_missing_binary(self, mock_which):
        with self.assertRaises(DependencyError) as ctx:
            resolve_binary("ffmpeg", env_var="TAGEXPORT_FFMPEG")
        self.assertIn("TAGEXPORT_FFMPEG", ctx.exception.message)

    @patch("tagexport.utils.shutil.which", return_value=None)
    def test_missing_explicit_binary(self, mock_which):
        with self.assertRaises(DependencyError):
            resolve_binary("ffmpeg", explicit="/nowhere/ffmpeg")

    @patch("tagexport.utils.shutil.which", return_value="/opt/homebrew/bin/ffmpeg")
    def test_search_uses_extra_dirs(self, mock_which):
        self.assertEqual(resolve_binary("ffmpeg", extra_dirs=["/opt/homebrew/bin"]),
                         "/opt/homebrew/bin/ffmpeg")
        self.assertIn("/opt/homebrew/bin", mock_which.call_args.kwargs["path"])

    def test_check_name(self):
        self.assertEqual(check_name("clip_0.mp4"), "clip_0.mp4")
        for bad in ["", ".", "..", "../clip.mp4", "dir/clip.mp4", "dir\\clip.mp4"]:
            with self.assertRaises(BackendError):
                check_name(bad)


class TestNativeBackend(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.work_dir = Path(self.tmp.name)
        self.backend = NativeBackend(work_dir=self.work_dir, extra_paths=["/opt/homebrew/bin"])
        self.backend._resolved = {FFMPEG: "/usr/bin/ffmpeg", FFPROBE: "/usr/bin/ffprobe"}

    def tearDown(self):
        self.tmp.cleanup()

    async def test_file_operations(self):
        await self.backend.write_file("concat_1.txt", b"file 'clip_0.mp4'")
        self.assertEqual((self.work_dir / "concat_1.txt").read_bytes(), b"file 'clip_0.mp4'")
        self.assertEqual(await self.backend.read_file("concat_1.txt"), b"file 'clip_0.mp4'")
        await self.backend.delete_file("concat_1.txt")
        await self.backend.delete_file("concat_1.txt")
        self.assertFalse((self.work_dir / "concat_1.txt").exists())

    async def test_rejects_paths_outside_work_dir(self):
        with self.assertRaises(BackendError):
            await self.backend.write_file("../escape.txt", b"")

    async def test_run(self):
        process = fake_process(stdout=b"1920x1080\n", stderr_lines=[b"frame=1\n", b"done\n"])
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            result = await self.backend.run(["-v", "error", "input.mp4"], tool=FFPROBE)

        self.assertTrue(result.ok)
        self.assertEqual(result.stdout, "1920x1080\n")
        self.assertEqual(result.stderr, "frame=1\ndone")
        args = spawn.call_args.args
        self.assertEqual(args[0], "/usr/bin/ffprobe")
        self.assertEqual(list(args[1:]), ["-v", "error", "input.mp4"])
        kwargs = spawn.call_args.kwargs
        self.assertEqual(kwargs["cwd"], str(self.work_dir))
        self.assertIn("/opt/homebrew/bin", kwargs["env"]["PATH"].split(os.pathsep))

    async def test_run_failure_keeps_stderr_tail(self):
        lines = [f"line {i}\n".encode() for i in range(30)]
        process = fake_process(stderr_lines=lines, returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await self.backend.run(["-i", "input.mp4", "clip_0.mp4"])
        self.assertFalse(result.ok)
        self.assertEqual(result.returncode, 1)
        tail = result.stderr.splitlines()
        self.assertEqual(len(tail), 20)
        self.assertEqual(tail[-1], "line 29")

    async def test_spawn_failure(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ffmpeg"))):
            with self.assertRaises(BackendError):
                await self.backend.run(["-version"])

    async def test_prepare_input(self):
        source = self.work_dir / "game.mp4"
        source.write_bytes(b"video")
        name = await self.backend.prepare_input(NativeInput(source))
        self.assertEqual(name, str(source.resolve()))
        self.assertFalse(self.backend.owns_input)

    async def test_prepare_missing_input(self):
        with self.assertRaises(InputReadError):
            await self.backend.prepare_input(NativeInput(self.work_dir / "missing.mp4"))

    async def test_prepare_rejects_in_memory_input(self):
        with self.assertRaises(BackendError):
            await self.backend.prepare_input(EmbeddedInput(b"video"))

    async def test_close_keeps_caller_work_dir(self):
        await self.backend.close()
        self.assertTrue(self.work_dir.exists())

    async def test_close_removes_own_work_dir(self):
        with patch("tagexport.backends.native.WORKING_ROOT", self.work_dir):
            backend = NativeBackend()
            await backend.write_file("clip_0.mp4", b"data")
            own_dir = backend.work_dir
            self.assertEqual(own_dir.parent, self.work_dir)
            await backend.close()
        self.assertFalse(own_dir.exists())

if __name__ == "__main__":
    unittest.main()
