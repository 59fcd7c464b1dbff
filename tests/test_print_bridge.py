"""
Tests for the print command bridge and output routing.
"""

import asyncio
import io
import os
import sys
import threading

import pytest

from selpg.output import PrintPipeBridge, open_output
from selpg.utils.errors import (
    OutputError,
    PrinterExitError,
    PrinterRelayError,
    PrinterSpawnError,
)


class ClosedWriter(io.BytesIO):
    """Writer that rejects every write."""

    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")


def feed_and_launch(bridge: PrintPipeBridge, destination: str, payload: bytes):
    """Launch the bridge on a fresh pipe, write the payload and close the write end."""
    read_fd, write_fd = os.pipe()
    task = bridge.launch(destination, read_fd)
    with os.fdopen(write_fd, "wb") as writer:
        writer.write(payload)
    return task


class TestPrintPipeBridge:
    """Spawning, relaying and completion of the print command."""

    def test_build_command_appends_destination(self):
        bridge = PrintPipeBridge(command=["lp"])

        assert bridge.build_command("office") == ["lp", "-d", "office"]

    def test_command_from_settings(self, monkeypatch):
        monkeypatch.setenv("SELPG_PRINT_COMMAND", "lpr -P")

        assert PrintPipeBridge().command == ["lpr", "-P"]

    @pytest.mark.asyncio
    async def test_relays_consumer_output(self, echo_upper_command):
        stdout, stderr = io.BytesIO(), io.BytesIO()
        bridge = PrintPipeBridge(command=echo_upper_command, stdout=stdout, stderr=stderr)

        result = await feed_and_launch(bridge, "office", b"page one\n")

        assert stdout.getvalue() == b"PAGE ONE\n"
        assert result.returncode == 0
        assert result.stdout_bytes == len(b"PAGE ONE\n")
        assert result.destination == "office"
        assert result.command[-2:] == ["-d", "office"]

    @pytest.mark.asyncio
    async def test_relays_stderr_separately(self):
        command = [
            sys.executable,
            "-c",
            "import sys; sys.stdin.buffer.read(); sys.stderr.write('queued\\n'); print('request id is office-1')",
        ]
        stdout, stderr = io.BytesIO(), io.BytesIO()
        bridge = PrintPipeBridge(command=command, stdout=stdout, stderr=stderr)

        result = await feed_and_launch(bridge, "office", b"x")

        assert stdout.getvalue().strip() == b"request id is office-1"
        assert stderr.getvalue().strip() == b"queued"
        assert result.stderr_bytes == len(stderr.getvalue())

    @pytest.mark.asyncio
    async def test_resolves_without_output(self, silent_command):
        stdout, stderr = io.BytesIO(), io.BytesIO()
        bridge = PrintPipeBridge(command=silent_command, stdout=stdout, stderr=stderr)

        result = await feed_and_launch(bridge, "office", b"")

        assert result.stdout_bytes == 0
        assert result.stderr_bytes == 0
        assert stdout.getvalue() == b""

    @pytest.mark.asyncio
    async def test_large_output_is_fully_relayed(self, echo_upper_command):
        stdout = io.BytesIO()
        payload = b"0123456789abcdef\n" * 20000
        bridge = PrintPipeBridge(command=echo_upper_command, stdout=stdout, stderr=io.BytesIO())

        read_fd, write_fd = os.pipe()
        task = bridge.launch("office", read_fd)
        writer = os.fdopen(write_fd, "wb")
        # Write from a thread so the loop keeps relaying while the pipe is full.
        await asyncio.to_thread(writer.write, payload)
        writer.close()
        result = await task

        assert stdout.getvalue() == payload.upper()
        assert result.stdout_bytes == len(payload)

    @pytest.mark.asyncio
    async def test_nonzero_exit(self):
        command = [sys.executable, "-c", "import sys; sys.stdin.buffer.read(); sys.exit(3)"]
        bridge = PrintPipeBridge(command=command, stdout=io.BytesIO(), stderr=io.BytesIO())

        with pytest.raises(PrinterExitError) as exc_info:
            await feed_and_launch(bridge, "office", b"data")

        assert exc_info.value.returncode == 3

    @pytest.mark.asyncio
    async def test_spawn_failure(self, tmp_path):
        missing = str(tmp_path / "no-such-print-command")
        bridge = PrintPipeBridge(command=[missing], stdout=io.BytesIO(), stderr=io.BytesIO())

        read_fd, write_fd = os.pipe()
        task = bridge.launch("office", read_fd)
        os.close(write_fd)

        with pytest.raises(PrinterSpawnError, match="no-such-print-command"):
            await task

    @pytest.mark.asyncio
    async def test_relay_failure(self, echo_upper_command):
        bridge = PrintPipeBridge(command=echo_upper_command, stdout=ClosedWriter(), stderr=io.BytesIO())

        with pytest.raises(PrinterRelayError, match="stdout"):
            await feed_and_launch(bridge, "office", b"hello")


class TestOpenOutput:
    """Routing between direct output and the print bridge."""

    @pytest.mark.asyncio
    async def test_direct_output(self):
        stdout = io.BytesIO()

        async with open_output(None, stdout=stdout) as sink:
            assert sink.is_direct
            sink.writer.write(b"pages")

        assert stdout.getvalue() == b"pages"
        assert sink.bridge_result is None

    @pytest.mark.asyncio
    async def test_direct_output_closed(self):
        with pytest.raises(OutputError):
            async with open_output(None, stdout=ClosedWriter()) as sink:
                sink.writer.write(b"pages")

    @pytest.mark.asyncio
    async def test_destination_routes_through_bridge(self, echo_upper_command):
        stdout = io.BytesIO()
        bridge = PrintPipeBridge(command=echo_upper_command, stdout=stdout, stderr=io.BytesIO())

        async with open_output("office", bridge=bridge) as sink:
            assert not sink.is_direct
            sink.writer.write(b"first ")
            sink.writer.write(b"second")

        assert stdout.getvalue() == b"FIRST SECOND"
        assert sink.bridge_result.stdout_bytes == len(b"FIRST SECOND")

    @pytest.mark.asyncio
    async def test_bridge_awaited_when_body_fails(self, echo_upper_command):
        stdout = io.BytesIO()
        bridge = PrintPipeBridge(command=echo_upper_command, stdout=stdout, stderr=io.BytesIO())

        with pytest.raises(RuntimeError, match="scan failed"):
            async with open_output("office", bridge=bridge) as sink:
                sink.writer.write(b"partial")
                raise RuntimeError("scan failed")

        assert stdout.getvalue() == b"PARTIAL"
        assert sink.bridge_result is not None

    @pytest.mark.asyncio
    async def test_spawn_failure_reported_over_broken_pipe(self, tmp_path):
        bridge = PrintPipeBridge(
            command=[str(tmp_path / "missing")], stdout=io.BytesIO(), stderr=io.BytesIO()
        )

        with pytest.raises(PrinterSpawnError):
            async with open_output("office", bridge=bridge) as sink:
                # Give the bridge time to fail and close the read end.
                await asyncio.sleep(0.1)
                sink.writer.write(b"x" * 1024)
                sink.writer.flush()


class ThreadRecordingWriter(io.BytesIO):
    """Writer that remembers which threads wrote to it."""

    def __init__(self) -> None:
        super().__init__()
        self.threads = set()

    def write(self, data):
        self.threads.add(threading.get_ident())
        return super().write(data)


@pytest.mark.asyncio
async def test_relay_writes_happen_off_the_event_loop(echo_upper_command):
    stdout = ThreadRecordingWriter()
    bridge = PrintPipeBridge(command=echo_upper_command, stdout=stdout, stderr=io.BytesIO())

    await feed_and_launch(bridge, "office", b"page\n")

    assert stdout.getvalue() == b"PAGE\n"
    assert stdout.threads
    assert threading.get_ident() not in stdout.threads
