"""Source tree discovery helpers."""

from __future__ import annotations

import os
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from vibeguard.errors import DirectoryEnumerationError

DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/vendor/**",
    "**/__pycache__/**",
    "**/*.pyc",
    "**/target/**",
    "**/bin/**",
    "**/obj/**",
)

SUPPORTED_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".vue", ".svelte",
    ".py", ".php", ".rb", ".go", ".java", ".cs",
    ".cpp", ".c", ".h", ".hpp", ".rs", ".kt",
    ".swift", ".dart", ".scala", ".clj", ".hs",
    ".json", ".yaml", ".yml", ".xml", ".env",
    ".config", ".conf", ".ini", ".toml",
})

BINARY_EXTENSIONS = frozenset({
    ".exe", ".dll", ".so", ".dylib", ".bin", ".dat",
    ".img", ".iso", ".dmg", ".pkg", ".deb", ".rpm",
    ".zip", ".tar", ".gz", ".bz2", ".7z", ".rar",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
    ".mp3", ".mp4", ".avi", ".mov", ".wmv", ".flv",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt",
    ".sqlite", ".db", ".mdb", ".accdb",
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    ".class", ".jar", ".war", ".ear",
    ".o", ".obj", ".lib", ".a",
})

# Dependency manifests whose names carry no supported extension.
MANIFEST_NAMES = frozenset({
    "pipfile", "gemfile", "yarn.lock", "requirements.txt", "pom.xml", "build.gradle",
})

PathLike = Union[str, Path]


def matches_glob(rel_path: str, patterns: Iterable[str]) -> bool:
    """Match a POSIX relative path against glob patterns.

    ``*`` crosses directory separators, and a leading ``**/`` also matches
    zero directories so ``**/dist/**`` excludes a top-level ``dist``.
    """

    for pattern in patterns:
        if fnmatch(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch(rel_path, pattern[3:]):
            return True
    return False


def is_supported_file(path: PathLike) -> bool:
    name = Path(path).name.lower()
    suffix = Path(name).suffix
    if suffix in BINARY_EXTENSIONS:
        return False
    if name == ".env" or name.startswith(".env."):
        return True
    return suffix in SUPPORTED_EXTENSIONS or name in MANIFEST_NAMES


def discover_files(
    root: PathLike,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> List[Tuple[Path, str]]:
    """Return ``(path, relative_path)`` pairs for every scannable file under ``root``.

    A file root is returned alone, unfiltered. Excluded directories are pruned
    before descent and excluded files are never opened.
    """

    root = Path(root)
    if root.is_file():
        return [(root, str(root))]

    exclude_patterns = tuple(DEFAULT_EXCLUDE_PATTERNS) + tuple(exclude)

    def _raise(error: OSError) -> None:
        raise DirectoryEnumerationError(f"Could not read directory {error.filename}: {error.strerror}") from error

    found: List[Tuple[Path, str]] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=False):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"
        dirnames[:] = sorted(d for d in dirnames if not matches_glob(f"{prefix}{d}/", exclude_patterns))

        for fname in sorted(filenames):
            rel_path = f"{prefix}{fname}"
            if matches_glob(rel_path, exclude_patterns):
                continue
            if include and not matches_glob(rel_path, include):
                continue
            if not is_supported_file(fname):
                continue
            found.append((Path(dirpath) / fname, rel_path))
    return found
