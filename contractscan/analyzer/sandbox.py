"""
Sandbox Manager

Materializes caller-supplied files into a private temporary directory for
one analysis run, and removes that directory on every exit path.

Usage:
    sandboxes = SandboxManager(engine)

    with sandboxes.acquire({"A.sol": "contract A {}"}) as sandbox:
        invoker.run(sandbox.root, extra_args)
    # sandbox.root no longer exists here
"""

import re
import shutil
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Mapping, Optional

from loguru import logger

from ..core.exceptions import InvalidRequestError, SandboxCreationError, UnsafePathError
from .engines import EngineProfile, PathLayout


_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def safe_relative_path(path: str) -> PurePosixPath:
    """
    Validate and normalize a caller-declared file path.

    Backslashes are treated as separators, empty and "." segments are
    dropped. Absolute paths, drive letters, ".." segments and NUL bytes
    are rejected.

    Args:
        path: Declared path, e.g. "contracts/Token.sol"

    Returns:
        Normalized relative path

    Raises:
        UnsafePathError: if the path could escape the sandbox root
    """
    if not isinstance(path, str) or not path.strip():
        raise UnsafePathError("file path must not be empty", path=path)
    if "\x00" in path:
        raise UnsafePathError("file path contains a NUL character", path=path)

    normalized = path.strip().replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PREFIX.match(normalized):
        raise UnsafePathError("absolute file paths are not allowed", path=path)

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise UnsafePathError("path traversal is not allowed", path=path)
    if not parts:
        raise UnsafePathError("file path has no file name", path=path)

    return PurePosixPath(*parts)


def destination_for(path: str, layout: PathLayout, source_dir: str = "") -> str:
    """
    Sandbox-relative destination for a declared path under a layout policy.

    FLAT keeps only the file name; TREE keeps the whole relative path.
    Both are placed under source_dir when the engine has one.
    """
    relative = safe_relative_path(path)
    target = PurePosixPath(relative.name) if layout == PathLayout.FLAT else relative
    if source_dir:
        target = PurePosixPath(source_dir) / target
    return target.as_posix()


@dataclass
class SandboxHandle:
    """An allocated sandbox. Owned by exactly one in-flight request."""

    root: Path
    files: List[str] = field(default_factory=list)
    released: bool = False


class SandboxManager:
    """
    Creates and destroys per-request sandboxes for one engine.

    Sandbox structure (aderyn example):
        contractscan_aderyn_xxxxxx/
        ├── foundry.toml      # scaffold manifest
        ├── lib/
        ├── script/
        ├── test/
        └── src/
            └── Token.sol     # caller files
    """

    def __init__(
        self,
        engine: EngineProfile,
        base_dir: Optional[str] = None,
        prefix: Optional[str] = None,
    ):
        """
        Args:
            engine: Active engine profile (layout and scaffold)
            base_dir: Parent directory for sandboxes (default: system temp)
            prefix: Directory name prefix
        """
        self.engine = engine
        self.base_dir = Path(base_dir) if base_dir else None
        self.prefix = prefix or f"contractscan_{engine.name}_"

        # Stats
        self.created = 0
        self.released = 0
        self._stats_lock = threading.Lock()

    @property
    def source_dir(self) -> str:
        return self.engine.scaffold.source_dir if self.engine.scaffold else ""

    def plan(self, files: Mapping[str, str]) -> Dict[str, str]:
        """
        Map every caller file to its destination inside the sandbox.

        Runs before any filesystem work, so rejected bundles never touch disk.

        Returns:
            destination path -> content

        Raises:
            UnsafePathError: a path would escape the sandbox
            InvalidRequestError: two paths map to the same destination, or a
                file would have to double as a directory
        """
        planned: Dict[str, str] = {}
        origins: Dict[str, str] = {}

        for path, content in files.items():
            dest = destination_for(path, self.engine.layout, self.source_dir)
            if dest in planned:
                raise InvalidRequestError(
                    f"'{path}' and '{origins[dest]}' map to the same sandbox file",
                    destination=dest,
                )
            planned[dest] = content
            origins[dest] = path

        parents = {
            parent.as_posix()
            for dest in planned
            for parent in PurePosixPath(dest).parents
        }
        clashes = sorted(parents.intersection(planned))
        if clashes:
            raise InvalidRequestError(
                f"'{origins[clashes[0]]}' is used both as a file and as a directory"
            )

        return planned

    def create(self, files: Mapping[str, str]) -> SandboxHandle:
        """
        Allocate a sandbox and write the scaffold and caller files into it.

        Raises:
            UnsafePathError / InvalidRequestError: rejected during planning
            SandboxCreationError: directory allocation or a write failed;
                anything partially created is removed first
        """
        planned = self.plan(files)

        try:
            root = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.base_dir))
        except OSError as e:
            raise SandboxCreationError(
                "could not allocate sandbox directory", error=str(e)
            ) from e

        with self._stats_lock:
            self.created += 1

        try:
            self._materialize_scaffold(root)
            self._write_files(root, planned)
        except OSError as e:
            self._remove(root)
            raise SandboxCreationError(
                "failed to write files into sandbox", error=str(e)
            ) from e
        except BaseException:
            self._remove(root)
            raise

        logger.debug(f"[Sandbox] Created {root} with {len(planned)} files")
        return SandboxHandle(root=root, files=list(planned))

    def release(self, handle: SandboxHandle) -> None:
        """Remove the sandbox tree. A second release of a handle is a no-op."""
        if handle.released:
            logger.warning(f"[Sandbox] Already released: {handle.root}")
            return

        handle.released = True
        self._remove(handle.root)

        with self._stats_lock:
            self.released += 1

    @contextmanager
    def acquire(self, files: Mapping[str, str]) -> Iterator[SandboxHandle]:
        """Scoped sandbox: released on normal exit and on any exception."""
        handle = self.create(files)
        try:
            yield handle
        finally:
            self.release(handle)

    def _materialize_scaffold(self, root: Path) -> None:
        scaffold = self.engine.scaffold
        if scaffold is None:
            return

        for directory in scaffold.directories:
            (root / directory).mkdir(parents=True, exist_ok=True)

        for rel_path, content in scaffold.files.items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

    def _write_files(self, root: Path, planned: Dict[str, str]) -> None:
        resolved_root = root.resolve()

        for rel_path, content in planned.items():
            target = root / rel_path
            if resolved_root not in target.resolve().parents:
                raise UnsafePathError("file path resolves outside the sandbox", path=rel_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

    def _remove(self, root: Path) -> None:
        try:
            shutil.rmtree(root)
            logger.debug(f"[Sandbox] Removed {root}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"[Sandbox] Failed to remove {root}: {e}")
