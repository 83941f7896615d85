"""Load candidate files as line-indexed text."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import yaml

from vibeguard.errors import BinaryFile, FileTooLarge, UnreadableFile
from vibeguard.rules import FileContent

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
BINARY_SNIFF_BYTES = 512
NON_PRINTABLE_THRESHOLD = 0.3
TEXT_CONTROL_BYTES = frozenset({0x09, 0x0A, 0x0D})


def is_binary_sample(sample: bytes) -> bool:
    """Classify a leading byte sample as binary.

    Any NUL byte is decisive. Otherwise the sample is binary when more than 30%
    of it is control bytes other than tab, LF and CR. An empty sample is text.
    """

    if not sample:
        return False
    if b"\x00" in sample:
        return True
    non_printable = sum(1 for byte in sample if byte < 0x20 and byte not in TEXT_CONTROL_BYTES)
    return non_printable / len(sample) > NON_PRINTABLE_THRESHOLD


def is_binary_file(path: Path) -> bool:
    with path.open("rb") as handle:
        return is_binary_sample(handle.read(BINARY_SNIFF_BYTES))


def load_file(path: Union[str, Path], display_path: Optional[str] = None) -> FileContent:
    """Return the file as ``FileContent`` or raise a ``SkipFile`` subclass.

    ``display_path`` is the path recorded on the content and on any issue; it
    defaults to ``path`` as given.
    """

    path = Path(path)
    shown = display_path if display_path is not None else str(path)
    try:
        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise FileTooLarge(shown, f"{size} bytes exceeds the {MAX_FILE_SIZE} byte limit")
        if is_binary_file(path):
            raise BinaryFile(shown, "binary content")
        content = path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        raise UnreadableFile(shown, exc.strerror or str(exc)) from exc
    return FileContent.from_text(shown, content)


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)
