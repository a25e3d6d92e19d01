"""Best-effort clipboard copy with a scratch-file fallback.

The primary path pipes text into an asynchronous clipboard writer. When that
is unavailable or refuses the write, the text is staged in a private
per-call scratch file which is fed to a legacy synchronous copy command and
removed again on every exit path.
"""

import asyncio
import contextlib
import logging
import os
import shutil
import subprocess
import tempfile
from collections.abc import Iterator, Sequence
from typing import IO, Protocol

from pydantic import BaseModel, Field

from plugin_catalog.core.config import Settings, constants
from plugin_catalog.core.errors import ClipboardFallbackError, ClipboardPrimaryError


logger = logging.getLogger(__name__)


# Commands that read the clipboard text from stdin, in preference order
CLIPBOARD_PROVIDERS: tuple[tuple[str, ...], ...] = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard", "-in"),
    ("xsel", "--clipboard", "--input"),
    ("pbcopy",),
    ("clip",),
)


def detect_clipboard_command(configured: Sequence[str] | None = None) -> list[str] | None:
    """Pick the configured clipboard command or the first installed provider."""
    if configured:
        return list(configured)
    for cmd in CLIPBOARD_PROVIDERS:
        if shutil.which(cmd[0]):
            return list(cmd)
    return None


class CopyOutcome(BaseModel):
    """Result of one clipboard copy attempt."""

    success: bool = Field(..., description="Whether the text reached the clipboard")
    method: str = Field(..., description="Which path produced this outcome ('primary' or 'fallback')")
    error: str | None = Field(None, description="Error message if failed")


class AsyncClipboardWriter(Protocol):
    """Asynchronous clipboard capability used by the primary path."""

    async def write_text(self, text: str) -> None:
        """Write text to the clipboard, raising ClipboardPrimaryError on failure."""
        ...


class SubprocessClipboardWriter:
    """Writes the clipboard through a provider command run as an asyncio subprocess."""

    def __init__(self, command: Sequence[str] | None, *, timeout: float = constants.CLIPBOARD_TIMEOUT_SECONDS) -> None:
        self.command = list(command) if command else None
        self.timeout = timeout

    async def write_text(self, text: str) -> None:
        if not self.command:
            raise ClipboardPrimaryError("No clipboard provider available")

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise ClipboardPrimaryError(f"Could not start {self.command[0]}: {e}") from e

        try:
            await asyncio.wait_for(process.communicate(text.encode("utf-8")), timeout=self.timeout)
        except TimeoutError as e:
            process.kill()
            await process.wait()
            raise ClipboardPrimaryError(f"{self.command[0]} timed out after {self.timeout}s") from e

        if process.returncode != 0:
            raise ClipboardPrimaryError(f"{self.command[0]} exited with status {process.returncode}")


@contextlib.contextmanager
def scratch_container(text: str, *, directory: str | None = None) -> Iterator[IO[bytes]]:
    """Stage text in a private scratch file, rewound so its whole content is selected.

    The file is removed when the block exits, whether or not it raised.
    """
    handle = tempfile.NamedTemporaryFile(
        mode="w+b", prefix=constants.CLIPBOARD_SCRATCH_PREFIX, dir=directory, delete=False
    )
    try:
        with handle:
            handle.write(text.encode("utf-8"))
            handle.flush()
            handle.seek(0)
            yield handle
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(handle.name)


class ClipboardService:
    """Copies text to the system clipboard, degrading to the legacy path when needed.

    Failures of both paths are logged and swallowed; callers never see an error.
    """

    def __init__(
        self,
        primary: AsyncClipboardWriter,
        legacy_command: Sequence[str] | None,
        *,
        scratch_dir: str | None = None,
        timeout: float = constants.CLIPBOARD_TIMEOUT_SECONDS,
    ) -> None:
        self.primary = primary
        self.legacy_command = list(legacy_command) if legacy_command else None
        self.scratch_dir = scratch_dir
        self.timeout = timeout

    async def _attempt_primary(self, text: str) -> CopyOutcome:
        try:
            await self.primary.write_text(text)
        except ClipboardPrimaryError as e:
            logger.info("clipboard_primary_failed", extra={"error": str(e)})
            return CopyOutcome(success=False, method="primary", error=str(e))
        return CopyOutcome(success=True, method="primary")

    def _run_legacy_command(self, handle: IO[bytes]) -> None:
        if not self.legacy_command:
            raise ClipboardFallbackError("No legacy clipboard command available")
        try:
            subprocess.run(
                self.legacy_command,
                stdin=handle,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise ClipboardFallbackError(f"{self.legacy_command[0]} exited with status {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            raise ClipboardFallbackError(f"{self.legacy_command[0]} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ClipboardFallbackError(f"Could not start {self.legacy_command[0]}: {e}") from e

    def _attempt_fallback(self, text: str) -> CopyOutcome:
        try:
            with scratch_container(text, directory=self.scratch_dir) as handle:
                self._run_legacy_command(handle)
        except (ClipboardFallbackError, OSError) as e:
            return CopyOutcome(success=False, method="fallback", error=str(e))
        return CopyOutcome(success=True, method="fallback")

    async def copy(self, text: str) -> None:
        """Copy text to the clipboard on a best-effort basis."""
        outcome = await self._attempt_primary(text)
        if outcome.success:
            logger.debug("clipboard_copied", extra={"method": outcome.method, "length": len(text)})
            return

        outcome = await asyncio.to_thread(self._attempt_fallback, text)
        if outcome.success:
            logger.debug("clipboard_copied", extra={"method": outcome.method, "length": len(text)})
            return

        # No user-facing error for a failed copy
        logger.warning("clipboard_copy_failed", extra={"error": outcome.error})


def create_clipboard_service(settings: Settings) -> ClipboardService:
    """Build a clipboard service from settings, auto-detecting provider commands."""
    primary_command = detect_clipboard_command(settings.clipboard_command)
    legacy_command = detect_clipboard_command(settings.legacy_clipboard_command)
    logger.info(
        "clipboard_configured",
        extra={
            "primary": primary_command[0] if primary_command else None,
            "legacy": legacy_command[0] if legacy_command else None,
        },
    )
    return ClipboardService(SubprocessClipboardWriter(primary_command), legacy_command)
