"""Rule protocol and shared rule inputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Tuple

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity


class Rule(Protocol):
    """Protocol implemented by all rule evaluators."""

    name: str
    description: str
    severity: Severity

    def check(self, file: "FileContent") -> List[SecurityIssue]:
        """Analyze one loaded file and return the issues it contains."""


@dataclass(frozen=True)
class FileContent:
    """One loaded text file, split into lines for line-oriented matching."""

    path: str
    content: str
    lines: Tuple[str, ...]

    @classmethod
    def from_text(cls, path: str, content: str) -> "FileContent":
        return cls(path=path, content=content, lines=tuple(content.split("\n")))
