"""Fetchers that return a document's bytes as of a named revision."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from .exceptions import RevisionUnavailableError

logger = logging.getLogger(__name__)


class GitRevisionFetcher:
    """Read ``file_path`` at ``revision`` with ``git show``.

    The revision string is passed to git untouched. Relative paths are taken
    relative to ``repo_root``; absolute paths are rewritten relative to the
    top level of the repository that contains them.
    """

    def __init__(self, repo_root: Optional[Union[str, Path]] = None, timeout: Optional[float] = None):
        self.repo_root = Path(repo_root) if repo_root is not None else None
        self.timeout = timeout

    def __call__(self, revision: str, file_path: str) -> bytes:
        cwd, relative = self._locate(revision, file_path)
        output = self._git(["show", f"{revision}:{relative}"], cwd, revision, file_path)
        logger.debug("Fetched %s at %s (%d bytes)", relative, revision, len(output))
        return output

    def _locate(self, revision: str, file_path: str) -> Tuple[Optional[Path], str]:
        path = Path(file_path)
        if not path.is_absolute():
            # "./" makes git resolve against the working directory, not the top level
            prefix = "" if self.repo_root is not None else "./"
            return self.repo_root, prefix + path.as_posix()
        toplevel = self._git(["rev-parse", "--show-toplevel"], path.parent, revision, file_path)
        root = Path(toplevel.decode("utf-8").strip())
        try:
            relative = path.resolve().relative_to(root.resolve())
        except ValueError as exc:
            raise RevisionUnavailableError(revision, file_path, "file is outside the repository") from exc
        return root, relative.as_posix()

    def _git(self, args, cwd: Optional[Path], revision: str, file_path: str) -> bytes:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=cwd,
                check=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr.decode("utf-8", errors="replace").strip() if exc.stderr else ""
            raise RevisionUnavailableError(revision, file_path, stderr or "git exited with an error") from exc
        except subprocess.TimeoutExpired as exc:
            raise RevisionUnavailableError(revision, file_path, f"git timed out after {exc.timeout}s") from exc
        except FileNotFoundError as exc:
            raise RevisionUnavailableError(revision, file_path, "git executable not found") from exc
        return result.stdout


class InMemoryFetcher:
    """Serves fixture content keyed by ``(revision, file_path)``."""

    def __init__(self, contents: Optional[Mapping[Tuple[str, str], Union[bytes, str]]] = None):
        self._contents: Dict[Tuple[str, str], bytes] = {}
        for key, value in (contents or {}).items():
            self.add(key[0], key[1], value)
        self.calls: list = []

    def add(self, revision: str, file_path: str, content: Union[bytes, str]) -> None:
        self._contents[(revision, file_path)] = content.encode("utf-8") if isinstance(content, str) else content

    def __call__(self, revision: str, file_path: str) -> bytes:
        self.calls.append((revision, file_path))
        try:
            return self._contents[(revision, file_path)]
        except KeyError:
            raise RevisionUnavailableError(revision, file_path) from None


__all__ = ["GitRevisionFetcher", "InMemoryFetcher"]
