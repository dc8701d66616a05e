"""Permission normalization after install.

Applies a configured chmod-style mode to the installer's state directory,
the persistent volume directory, operator-declared extra directories and
the package's own install directories. Mode strings follow chmod(1):
an octal value (``775``) or symbolic clauses (``g+rwX``, ``u=rwx,go=rx``),
optionally preceded by ``-R``.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from stackpkg.core.errors import ConfigurationError
from stackpkg.core.installer import Installer

logger = logging.getLogger(__name__)

CLIENT_SUFFIX = "-client"

_WHO_BITS: dict[str, int] = {
    "u": stat.S_IRWXU | stat.S_ISUID,
    "g": stat.S_IRWXG | stat.S_ISGID,
    "o": stat.S_IRWXO | stat.S_ISVTX,
}
_WHO_BITS["a"] = _WHO_BITS["u"] | _WHO_BITS["g"] | _WHO_BITS["o"]

_PERM_BITS: dict[str, int] = {
    "r": 0o444,
    "w": 0o222,
    "x": 0o111,
    "s": stat.S_ISUID | stat.S_ISGID,
    "t": stat.S_ISVTX,
}

_CLAUSE = re.compile(r"^([ugoa]*)((?:[-+=][rwxXst]*)+)$")
_ACTION = re.compile(r"([-+=])([rwxXst]*)")
_OCTAL = re.compile(r"^[0-7]{1,4}$")


class ModeSpec(BaseModel):
    """A parsed chmod mode."""

    model_config = ConfigDict(frozen=True)

    recursive: bool = False
    octal: int | None = None
    clauses: list[tuple[str, list[tuple[str, str]]]] = []

    def apply(self, current: int, is_dir: bool) -> int:
        """Return the new permission bits for a file with mode *current*."""
        if self.octal is not None:
            return self.octal

        mode = stat.S_IMODE(current)
        for who, actions in self.clauses:
            who_mask = 0
            for w in who or "a":
                who_mask |= _WHO_BITS[w]
            for op, perms in actions:
                bits = 0
                for p in perms:
                    if p == "X":
                        if is_dir or mode & 0o111:
                            bits |= _PERM_BITS["x"]
                    else:
                        bits |= _PERM_BITS[p]
                bits &= who_mask
                if op == "+":
                    mode |= bits
                elif op == "-":
                    mode &= ~bits
                else:
                    mode = (mode & ~who_mask) | bits
        return mode


def parse_mode(value: str) -> ModeSpec:
    """Parse ``[-R] MODE`` into a ``ModeSpec``."""
    tokens = value.split()
    recursive = False
    while tokens and tokens[0].startswith("-") and not _CLAUSE.match(tokens[0]):
        flag = tokens.pop(0)
        if flag != "-R":
            raise ConfigurationError(f"Unsupported chmod flag {flag!r} in {value!r}")
        recursive = True

    if len(tokens) != 1:
        raise ConfigurationError(f"Invalid chmod mode {value!r}")
    mode = tokens[0]

    if _OCTAL.match(mode):
        return ModeSpec(recursive=recursive, octal=int(mode, 8))

    clauses: list[tuple[str, list[tuple[str, str]]]] = []
    for clause in mode.split(","):
        match = _CLAUSE.match(clause)
        if match is None:
            raise ConfigurationError(f"Invalid chmod clause {clause!r} in {value!r}")
        who, actions = match.groups()
        clauses.append((who, _ACTION.findall(actions)))
    return ModeSpec(recursive=recursive, clauses=clauses)


def _chmod_path(path: Path, spec: ModeSpec) -> None:
    st = path.lstat()
    if stat.S_ISLNK(st.st_mode):
        return
    new_mode = spec.apply(st.st_mode, stat.S_ISDIR(st.st_mode))
    if new_mode != stat.S_IMODE(st.st_mode):
        os.chmod(path, new_mode)


def apply_mode(path: Path, spec: ModeSpec) -> None:
    """Apply *spec* to *path*, descending into it when recursive."""
    path = Path(path)
    _chmod_path(path, spec)
    if not (spec.recursive and path.is_dir() and not path.is_symlink()):
        return
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            _chmod_path(Path(root) / name, spec)


class PermissionNormalizer:
    """Reconciles modes across well-known and package directories.

    Parameters
    ----------
    mode:
        chmod-style mode string; ``None`` disables normalization.
    fixed_dirs:
        Directories always normalized (installer state, volume dir).
    extra_dirs:
        Operator-declared additional directories.
    volume_dir:
        Parent of the per-package persistent directory.
    installer:
        Queried for the package's install directories.
    home:
        Working directory for installer queries.
    """

    def __init__(
        self,
        mode: str | None,
        *,
        fixed_dirs: Iterable[Path],
        extra_dirs: Iterable[Path] = (),
        volume_dir: Path,
        installer: Installer,
        home: Path,
    ) -> None:
        self._spec = parse_mode(mode) if mode else None
        self._fixed = [Path(d) for d in fixed_dirs]
        self._extra = [Path(d) for d in extra_dirs]
        self._volume_dir = Path(volume_dir)
        self._installer = installer
        self._home = Path(home)

    @property
    def enabled(self) -> bool:
        return self._spec is not None

    def targets(self, package_name: str) -> list[Path]:
        """Build the target list, creating the package volume directory."""
        targets = [*self._fixed, *self._extra]
        metadata = self._installer.inspect(package_name, cwd=self._home)
        targets.extend(metadata.installdirs)
        # Client packages keep no persistent per-package directory.
        if not package_name.endswith(CLIENT_SUFFIX):
            package_dir = self._volume_dir / package_name
            package_dir.mkdir(parents=True, exist_ok=True)
            targets.append(package_dir)
        return list(dict.fromkeys(targets))

    def normalize(self, package_name: str) -> list[Path]:
        """Apply the configured mode; return the paths that were processed."""
        if self._spec is None:
            return []

        applied: list[Path] = []
        for target in self.targets(package_name):
            if not target.exists():
                logger.warning("Skipping missing permission target %s", target)
                continue
            apply_mode(target, self._spec)
            applied.append(target)
        logger.info("Normalized permissions on %d paths", len(applied))
        return applied
