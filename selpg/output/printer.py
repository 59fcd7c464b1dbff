"""
Bridge between selpg's output pipe and an external print command.

The bridge spawns the print command with the read end of a pipe as its
standard input, relays the command's own stdout and stderr back to the
caller, and reports the outcome through a single asyncio task. The caller
must close the pipe's write end before awaiting that task, otherwise the
command never sees end-of-input and the task never completes.
"""

import asyncio
import os
import sys
from typing import BinaryIO, Optional, Sequence

from selpg.config import get_settings
from selpg.models import BridgeResult
from selpg.utils.errors import PrinterExitError, PrinterRelayError, PrinterSpawnError
from selpg.utils.logging import get_logger

logger = get_logger(__name__)

RELAY_CHUNK_SIZE = 64 * 1024


class PrintPipeBridge:
    """Run a print command fed from a pipe and relay its output."""

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
    ) -> None:
        """
        Initialize the bridge.

        Args:
            command: Print program and leading arguments (defaults to settings)
            stdout: Where the command's stdout is relayed (defaults to sys.stdout)
            stderr: Where the command's stderr is relayed (defaults to sys.stderr)
        """
        self.command = list(command) if command else get_settings().get_print_command()
        self.stdout = stdout
        self.stderr = stderr

    def build_command(self, destination: str) -> list[str]:
        """Return the argument vector used for a destination."""
        return [*self.command, "-d", destination]

    def launch(self, destination: str, read_fd: int) -> "asyncio.Task[BridgeResult]":
        """
        Start the print command in the background.

        The bridge takes ownership of ``read_fd`` and closes it in every case.
        Must be called with a running event loop.

        Args:
            destination: Printer destination passed to the command
            read_fd: Read end of the pipe carrying the selected pages

        Returns:
            Task resolving to a BridgeResult, or raising a PrinterError
        """
        return asyncio.create_task(
            self._run(destination, read_fd),
            name=f"print-bridge[{destination}]",
        )

    async def _run(self, destination: str, read_fd: int) -> BridgeResult:
        command = self.build_command(destination)
        stdout_target = self.stdout if self.stdout is not None else sys.stdout.buffer
        stderr_target = self.stderr if self.stderr is not None else sys.stderr.buffer

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=read_fd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug("Print command failed to start", extra={"command": command, "error": str(e)})
            raise PrinterSpawnError(command, e.strerror or str(e)) from e
        finally:
            # The child holds its own copy; ours would keep the pipe open.
            os.close(read_fd)

        logger.info("Print command started", extra={"command": command, "pid": process.pid})

        relayed = await asyncio.gather(
            self._relay(process.stdout, stdout_target, "stdout"),
            self._relay(process.stderr, stderr_target, "stderr"),
            return_exceptions=True,
        )
        returncode = await process.wait()

        for outcome in relayed:
            if isinstance(outcome, BaseException):
                raise outcome
        if returncode != 0:
            logger.debug("Print command failed", extra={"command": command, "returncode": returncode})
            raise PrinterExitError(command, returncode)

        stdout_bytes, stderr_bytes = relayed
        logger.info(
            "Print command finished",
            extra={"command": command, "stdout_bytes": stdout_bytes, "stderr_bytes": stderr_bytes},
        )
        return BridgeResult(
            command=command,
            destination=destination,
            returncode=returncode,
            stdout_bytes=stdout_bytes,
            stderr_bytes=stderr_bytes,
        )

    async def _relay(self, reader: asyncio.StreamReader, target: BinaryIO, stream_name: str) -> int:
        """Copy one output stream of the command to the caller, in order."""
        copied = 0
        failure: Optional[Exception] = None

        while True:
            chunk = await reader.read(RELAY_CHUNK_SIZE)
            if not chunk:
                break
            if failure is not None:
                # Keep draining so the command is never blocked on a full pipe.
                continue
            try:
                # A slow caller stdout must not stall the other stream.
                await asyncio.to_thread(_write_and_flush, target, chunk)
                copied += len(chunk)
            except (OSError, ValueError) as e:
                logger.debug(f"Relaying print command {stream_name} failed", extra={"error": str(e)})
                failure = e

        if failure is not None:
            raise PrinterRelayError(
                f"failed to relay print command {stream_name}: {failure}",
                {"stream": stream_name, "bytes_relayed": copied},
            ) from failure
        return copied


def _write_and_flush(target: BinaryIO, chunk: bytes) -> None:
    target.write(chunk)
    target.flush()
