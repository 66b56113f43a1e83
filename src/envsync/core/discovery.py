"""Discovery of .env files in a project tree."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path

from envsync.config import EnvFile

logger = logging.getLogger(__name__)

ALWAYS_IGNORED_DIRS = frozenset({".git", "node_modules", "dist"})

# Patterns made only of these characters match a whole path segment
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def parse_gitignore(gitignore_path: Path) -> list[str]:
    """Read exclude patterns from a .gitignore file.

    Blank lines, comments and a literal ``.env`` entry are dropped, since
    .env files are what discovery is looking for.
    """
    try:
        content = gitignore_path.read_text(encoding="utf-8")
    except OSError:
        return []

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line == ".env":
            continue
        patterns.append(line)
    return patterns


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into a regex matched against the whole path.

    ``*`` and ``?`` stay within one path segment, ``**`` spans segments and
    a ``**/`` prefix also matches at the top level. Leading and trailing
    slashes are ignored.
    """
    glob = pattern.strip("/")
    parts: list[str] = []
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            parts.append(".*")
            i += 2
        elif glob[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            parts.append("[^/]")
            i += 1
        elif glob[i] == "[" and (end := glob.find("]", i + 2)) != -1:
            body = glob[i + 1 : end]
            if body[0] in "!^":
                body = "^" + body[1:]
            parts.append("[" + body.replace("\\", "\\\\") + "]")
            i = end + 1
        else:
            parts.append(re.escape(glob[i]))
            i += 1
    return re.compile("".join(parts))


def is_ignored(rel_path: str, patterns: list[str]) -> bool:
    """Check a root-relative POSIX path against exclude patterns."""
    segments = rel_path.split("/")
    for pattern in patterns:
        if _SEGMENT_PATTERN.match(pattern) and pattern in segments:
            return True
        if pattern.strip("/") and compile_glob(pattern).fullmatch(rel_path):
            return True
    return False


def is_env_filename(filename: str, include_suffixes: bool = False) -> bool:
    """Check whether a file name is a discoverable .env file.

    Without ``include_suffixes`` only the bare ``.env`` and names without a
    dot after the ``.env`` prefix (e.g. ``.envrc``) qualify.
    """
    if not filename.startswith(".env"):
        return False
    if include_suffixes or filename == ".env":
        return True
    return filename.find(".", 4) == -1


def find_env_files(
    root_dir: Path | str,
    exclude_patterns: list[str],
    recursive: bool = True,
    include_suffixes: bool = False,
) -> list[Path]:
    """Walk ``root_dir`` and return absolute paths of .env files.

    Args:
        root_dir: Directory to start from
        exclude_patterns: Patterns to skip; replaced by .gitignore entries when
            ``root_dir`` contains a .gitignore
        recursive: Descend into subdirectories
        include_suffixes: Also return suffixed files such as ``.env.local``

    Returns:
        Paths in directory enumeration order
    """
    root = Path(root_dir).resolve()
    gitignore = root / ".gitignore"
    patterns = parse_gitignore(gitignore) if gitignore.exists() else list(exclude_patterns)

    found: list[Path] = []

    def walk(current: Path) -> None:
        try:
            entries = list(os.scandir(current))
        except OSError as e:
            logger.warning("Permission denied or error reading %s: %s", current, e)
            return

        for entry in entries:
            full_path = Path(entry.path)
            rel_path = full_path.relative_to(root).as_posix()

            if entry.is_dir(follow_symlinks=False):
                if entry.name in ALWAYS_IGNORED_DIRS:
                    continue
                if patterns and is_ignored(rel_path, patterns):
                    continue
                if recursive:
                    walk(full_path)
            elif entry.is_file() and entry.name.startswith(".env"):
                if patterns and is_ignored(rel_path, patterns):
                    continue
                if not is_env_filename(entry.name, include_suffixes):
                    continue
                found.append(full_path)

    walk(root)
    logger.debug("Found %d .env file(s) under %s", len(found), root)
    return found


def to_env_file(path: Path, root: Path) -> EnvFile:
    """Build a tracked-file entry for ``path`` relative to ``root``."""
    path = Path(path)
    rel_path = path.resolve().relative_to(Path(root).resolve()).as_posix()
    return EnvFile(name=path.name, path=rel_path, extension=os.path.splitext(path.name)[1])
