"""Infrastructure: per-invocation build workspace.

The workspace is a uniquely named temporary directory with a ``rootfs``
staging area and a ``tmp`` scratch area for workflow handlers.  Use it
as a context manager; removal then happens on every exit path.

Rules
-----
* :meth:`BuildWorkspace.cleanup` is idempotent and safe to call even if
  creation failed half-way.
* Termination signals cannot interrupt removal.
* Creation errors are mapped to :class:`WorkspaceCreationError`.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from recoverctl.core.models import WorkspacePaths
from recoverctl.exceptions import WorkspaceCreationError
from recoverctl.infra.signals import termination_deferred
from recoverctl.logging import PRINT

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "recoverctl."


class BuildWorkspace:
    """Scoped build directory.

    Parameters
    ----------
    keep:
        Leave the directory in place on exit (debug retention).
    parent:
        Directory to create the workspace in; ``None`` uses the
        platform default temporary directory.
    """

    def __init__(self, *, keep: bool = False, parent: Path | None = None) -> None:
        self.keep: bool = keep
        self._parent: Path | None = parent
        self._build_dir: Path | None = None
        self.paths: WorkspacePaths | None = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> WorkspacePaths:
        return self.create()

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self) -> WorkspacePaths:
        """Create the build directory and its subdirectories.

        Raises
        ------
        WorkspaceCreationError
            If any of the directories cannot be created.
        """
        if self.paths is not None:
            return self.paths
        try:
            self._build_dir = Path(
                tempfile.mkdtemp(
                    prefix=WORKSPACE_PREFIX,
                    dir=str(self._parent) if self._parent else None,
                )
            )
            rootfs_dir = self._build_dir / "rootfs"
            tmp_dir = self._build_dir / "tmp"
            rootfs_dir.mkdir()
            tmp_dir.mkdir()
        except OSError as exc:
            self.cleanup()
            raise WorkspaceCreationError(
                f"Could not create build area: {exc}",
                hint="Check free space and permissions of the temporary directory.",
            ) from exc

        self.paths = WorkspacePaths(
            build_dir=self._build_dir,
            rootfs_dir=rootfs_dir,
            tmp_dir=tmp_dir,
        )
        logger.debug("Using build area %s", self._build_dir)
        return self.paths

    def cleanup(self) -> None:
        """Remove the build directory unless it is to be kept.

        Termination signals are held back while the directory is being
        removed; the directory is forgotten only once it is gone.
        """
        build_dir = self._build_dir
        self.paths = None
        if build_dir is None or not build_dir.exists():
            self._build_dir = None
            return
        if self.keep:
            logger.info(
                "Keeping build area %s (remove it manually when done)", build_dir,
                extra=PRINT,
            )
            self._build_dir = None
            return
        logger.debug("Removing build area %s", build_dir)
        with termination_deferred():
            try:
                shutil.rmtree(build_dir)
            except OSError as exc:
                logger.error("Could not remove build area %s: %s", build_dir, exc)
                return
            self._build_dir = None
