"""Installer dispatch and the git package post-install patch."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from collections.abc import Sequence
from pathlib import Path

from stackpkg.core.errors import DelegateFailure
from stackpkg.core.installer import Installer
from stackpkg.models.artifacts import bare_package_name

logger = logging.getLogger(__name__)

GIT_PACKAGE = "git"


def is_git_family(identifier: str) -> bool:
    return bare_package_name(identifier) == GIT_PACKAGE


def _remove_existing(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def copy_tree_preserving_links(src: Path, dst: Path) -> int:
    """Copy *src* over *dst*, overwriting, and keep hard links as links.

    Files that share an inode in *src* share one inode in *dst*. Symlinks
    are recreated rather than followed. Returns the number of entries
    written.
    """
    src = Path(src)
    dst = Path(dst)
    seen: dict[tuple[int, int], Path] = {}
    written = 0

    for root, dirs, files in os.walk(src):
        root_path = Path(root)
        target_dir = dst / root_path.relative_to(src)
        if target_dir.is_symlink() or target_dir.is_file():
            target_dir.unlink()
        target_dir.mkdir(parents=True, exist_ok=True)

        for name in list(dirs):
            source = root_path / name
            if source.is_symlink():
                target = target_dir / name
                _remove_existing(target)
                os.symlink(os.readlink(source), target)
                written += 1
                dirs.remove(name)

        for name in files:
            source = root_path / name
            target = target_dir / name
            st = source.lstat()
            _remove_existing(target)

            if stat.S_ISLNK(st.st_mode):
                os.symlink(os.readlink(source), target)
            else:
                key = (st.st_dev, st.st_ino)
                if st.st_nlink > 1 and key in seen:
                    os.link(seen[key], target)
                else:
                    shutil.copy2(source, target, follow_symlinks=False)
                    if st.st_nlink > 1:
                        seen[key] = target
            written += 1

    return written


class InstallerDispatcher:
    """Hands the unpacked artifact to the installer.

    Parameters
    ----------
    installer:
        Any ``Installer`` Protocol implementation.
    install_root:
        Working directory holding the unpacked artifact.
    git_destination:
        Where the git package tree is re-materialized with its hard links.
    """

    def __init__(
        self,
        installer: Installer,
        install_root: Path,
        git_destination: Path,
    ) -> None:
        self._installer = installer
        self._install_root = Path(install_root)
        self._git_destination = Path(git_destination)

    def dispatch(self, command: str, identifier: str, args: Sequence[str] = ()) -> None:
        """Run the installer; raise ``DelegateFailure`` on a non-zero exit."""
        returncode = self._installer.run(
            command, identifier, list(args), cwd=self._install_root
        )
        if returncode != 0:
            logger.error(
                "Installer %s %s exited with %d", command, identifier, returncode
            )
            raise DelegateFailure(command, identifier, returncode)

        if is_git_family(identifier):
            self._relink_git_tree(identifier)

    def _relink_git_tree(self, identifier: str) -> None:
        # The installer materializes hard-linked git helpers as full copies.
        source = self._install_root / identifier / "files" / GIT_PACKAGE
        if not source.is_dir():
            logger.warning("No git tree at %s; skipping relink", source)
            return
        count = copy_tree_preserving_links(source, self._git_destination)
        logger.info(
            "Copied %d git entries to %s preserving hard links",
            count,
            self._git_destination,
        )
