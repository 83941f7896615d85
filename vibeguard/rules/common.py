"""Matching primitive and suppression helpers shared by every rule."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

TEST_PATH_PATTERN = re.compile(r"test|spec|__tests__", re.IGNORECASE)

COMMENT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^\s*//"),
    re.compile(r"^\s*#"),
    re.compile(r"^\s*/?\*"),
)

IMPORT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^\s*import\s+.*from\s+['\"`]"),
    re.compile(r"^\s*import\s+['\"`]"),
    re.compile(r"^\s*(?:const|let|var)\s+.*=\s+require\s*\(\s*['\"`]"),
    re.compile(r"^\s*export\s+.*from\s+['\"`]"),
    re.compile(r"^\s*from\s+['\"`]"),
)

# Prefixes shared by most "value comes from the request" patterns.
USER_INPUT = r"(?:req\.|request\.|input\.|params\.|query\.)"
PHP_INPUT = r"(?:\$_GET|\$_POST|\$_REQUEST)"


@dataclass(frozen=True)
class Detection:
    """A compiled pattern and the label reported when it matches.

    ``repeat`` selects between recording every match on a line and only the
    first one.
    """

    pattern: Pattern[str]
    label: str
    repeat: bool = True


def detection(regex: str, label: str, flags: int = re.IGNORECASE, repeat: bool = True) -> Detection:
    return Detection(re.compile(regex, flags), label, repeat)


@dataclass(frozen=True)
class Match:
    """One pattern occurrence located on a single line."""

    text: str
    groups: Tuple[Optional[str], ...]
    line: int
    column: int
    line_content: str


def find_matches(lines: Sequence[str], pattern: Pattern[str], repeat: bool = True) -> List[Match]:
    """Apply ``pattern`` to each line independently.

    Line and column are 1-indexed. Matches never cross a line boundary.
    """

    matches: List[Match] = []
    for index, line_content in enumerate(lines):
        if repeat:
            found = pattern.finditer(line_content)
        else:
            first = pattern.search(line_content)
            found = [first] if first else []
        for match in found:
            if not match.group(0):
                continue
            matches.append(
                Match(
                    text=match.group(0),
                    groups=match.groups(),
                    line=index + 1,
                    column=match.start() + 1,
                    line_content=line_content,
                )
            )
    return matches


def build_issue(
    rule,
    file: str,
    line: int,
    column: int,
    line_content: str,
    message: str,
    suggestion: str,
    severity: Optional[Severity] = None,
) -> SecurityIssue:
    """Create an issue whose identity and default severity come from ``rule``."""

    return SecurityIssue(
        rule=rule.name,
        severity=severity or rule.severity,
        message=message,
        file=file,
        line=line,
        column=column,
        code=line_content.strip(),
        suggestion=suggestion,
    )


def context_window(lines: Sequence[str], line: int, radius: int) -> str:
    """Return the lines within ``radius`` of the 1-indexed ``line``."""

    start = max(0, line - radius - 1)
    end = min(len(lines), line + radius)
    return "\n".join(lines[start:end])


def has_marker(text: str, markers: Iterable[Pattern[str]]) -> bool:
    return any(marker.search(text) for marker in markers)


def is_comment_line(line: str, extra: Iterable[Pattern[str]] = ()) -> bool:
    return has_marker(line, COMMENT_PATTERNS) or has_marker(line, extra)


def is_import_statement(line: str) -> bool:
    return has_marker(line, IMPORT_PATTERNS)


def is_test_path(path: str) -> bool:
    return bool(TEST_PATH_PATTERN.search(path))


def mask_secret(value: str) -> str:
    """Keep the first and last four characters, star out at most ten in between."""

    if len(value) <= 8:
        return "*" * len(value)
    middle = "*" * min(len(value) - 8, 10)
    return f"{value[:4]}{middle}{value[-4:]}"
