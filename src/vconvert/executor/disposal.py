"""Disposal of source files after a successful conversion."""

import errno
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from send2trash import send2trash
from send2trash.exceptions import TrashPermissionError

from vconvert.domain import DisposalMode

logger = logging.getLogger(__name__)


class DisposalErrorType(Enum):
    """Categorization of disposal errors."""

    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    NO_TRASH = "no_trash"
    IO_ERROR = "io_error"
    UNKNOWN = "unknown"


_ERRNO_TO_TYPE = {
    errno.EACCES: DisposalErrorType.PERMISSION,
    errno.EPERM: DisposalErrorType.PERMISSION,
    errno.ENOENT: DisposalErrorType.NOT_FOUND,
    errno.EIO: DisposalErrorType.IO_ERROR,
    errno.EROFS: DisposalErrorType.IO_ERROR,
}


@dataclass(frozen=True)
class DisposalResult:
    """Result of disposing of a source file."""

    success: bool
    path: Path
    mode: DisposalMode
    error_message: str | None = None
    error_type: DisposalErrorType | None = None


def dispose_source(path: Path, mode: DisposalMode) -> DisposalResult:
    """Move ``path`` to the trash, or delete it permanently.

    Failures are reported in the result, never raised: a source that could
    not be disposed of does not undo the conversion that preceded it.

    Args:
        path: Source file to dispose of.
        mode: TRASH (recoverable) or DELETE (permanent).

    Returns:
        DisposalResult describing what happened.
    """
    try:
        if mode is DisposalMode.DELETE:
            path.unlink()
            logger.info("Deleted source: %s", path)
        else:
            # send2trash needs an absolute path on Linux
            send2trash(str(path.resolve()))
            logger.info("Moved source to trash: %s", path)
    except TrashPermissionError as e:
        logger.warning("No usable trash for %s: %s", path, e)
        return DisposalResult(
            success=False,
            path=path,
            mode=mode,
            error_message=f"could not move to trash: {e}",
            error_type=DisposalErrorType.NO_TRASH,
        )
    except OSError as e:
        error_type = _ERRNO_TO_TYPE.get(e.errno, DisposalErrorType.UNKNOWN)
        verb = "delete" if mode is DisposalMode.DELETE else "trash"
        logger.warning("Could not %s source %s: %s", verb, path, e)
        return DisposalResult(
            success=False,
            path=path,
            mode=mode,
            error_message=f"could not {verb} source: {e}",
            error_type=error_type,
        )
    return DisposalResult(success=True, path=path, mode=mode)
