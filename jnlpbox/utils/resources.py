"""Scoped acquisition helpers for temporary files and directories.

Cleanup always runs. When the guarded block already raised, a failure during
cleanup is logged and dropped so the original error is the one that surfaces.
"""

import os
import shutil
import tempfile
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from jnlpbox.core.errors import FilesystemError
from jnlpbox.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)


@contextmanager
def scoped_cleanup(cleanup: Callable[[], None], resource: str) -> Iterator[None]:
    """Run ``cleanup`` on every exit path, keeping the primary error.

    Args:
        cleanup: Callable releasing the resource
        resource: Human readable resource name for log events
    """
    try:
        yield
    except BaseException:
        try:
            cleanup()
        except Exception as cleanup_error:
            logger.debug(
                "cleanup_failed_after_error",
                resource=resource,
                error=str(cleanup_error),
            )
        raise
    cleanup()


@contextmanager
def scoped_temp_dir(prefix: str, archive_path: Path | None = None) -> Iterator[Path]:
    """Create a uniquely named working directory and remove it afterwards.

    Raises:
        FilesystemError: If the directory cannot be created, or cannot be
            removed after an otherwise successful block
    """
    try:
        workdir = Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as e:
        raise FilesystemError(
            f"Cannot create temporary directory: {e}", archive_path
        ) from e

    def _remove() -> None:
        try:
            shutil.rmtree(workdir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(
                f"Cannot delete folder {workdir}: {e}", archive_path
            ) from e

    with scoped_cleanup(_remove, str(workdir)):
        yield workdir


def replace_atomically(tmp_path: Path, target: Path) -> None:
    """Move a fully written ``tmp_path`` over ``target`` in one step."""
    os.replace(tmp_path, target)


def remove_quietly(path: Path) -> None:
    """Remove ``path`` if it exists; other OS errors propagate."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def _open_sibling_temp(target: Path) -> tuple[int, Path]:
    """Exclusively create a temporary file beside ``target``.

    Created with mode 0o666 so the process umask decides the final
    permissions, like any other newly written file.
    """
    tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex[:12]}.tmp")
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
    return os.open(tmp_path, flags, 0o666), tmp_path


def write_bytes_atomically(target: Path, data: bytes) -> None:
    """Write ``data`` next to ``target`` and move it into place.

    A new file gets the default permissions for the process umask; an
    existing ``target`` keeps its mode.

    Raises:
        FilesystemError: If the file cannot be written or moved
    """
    try:
        fd, tmp_path = _open_sibling_temp(target)
    except OSError as e:
        raise FilesystemError(f"Cannot create temporary file for {target}: {e}") from e

    with scoped_cleanup(lambda: remove_quietly(tmp_path), str(tmp_path)):
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            if target.exists():
                shutil.copymode(target, tmp_path)
            replace_atomically(tmp_path, target)
        except OSError as e:
            raise FilesystemError(f"Could not write {target}: {e}") from e


__all__ = [
    "remove_quietly",
    "replace_atomically",
    "scoped_cleanup",
    "scoped_temp_dir",
    "write_bytes_atomically",
]
