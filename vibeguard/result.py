"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, List, Sequence, Tuple

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


@dataclass(frozen=True)
class SecurityIssue:
    """Capture a single reported weakness."""

    rule: str
    severity: Severity
    message: str
    file: str
    line: int
    column: int
    code: str
    suggestion: str

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class SkippedFile:
    """Record a file the scanner could not scan and why."""

    path: str
    reason: str
    detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class Summary:
    """Aggregate issue counts by severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value.upper(), getattr(self, severity.value)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value) for severity in SEVERITY_ORDER)


@dataclass
class ScanResult:
    """Bundle issues, per-severity summary and skipped files for one scan."""

    issues: List[SecurityIssue] = field(default_factory=list)
    files_scanned: int = 0
    summary: Summary = field(default_factory=Summary)
    skipped: List[SkippedFile] = field(default_factory=list)

    @property
    def issues_found(self) -> int:
        return len(self.issues)

    @property
    def files_skipped(self) -> int:
        return len(self.skipped)

    @property
    def passed(self) -> bool:
        return not self.issues

    def add_issue(self, issue: SecurityIssue) -> None:
        self.summary.increment(issue.severity)
        self.issues.append(issue)

    def extend(self, issues: Iterable[SecurityIssue]) -> None:
        for issue in issues:
            self.add_issue(issue)

    def add_skipped(self, skipped: SkippedFile) -> None:
        self.skipped.append(skipped)

    def to_dict(self) -> Dict[str, object]:
        return {
            "issues": [issue.to_dict() for issue in self.issues],
            "filesScanned": self.files_scanned,
            "issuesFound": self.issues_found,
            "summary": self.summary.to_dict(),
            "skipped": [skipped.to_dict() for skipped in self.skipped],
        }

    def exit_code(self) -> int:
        return 0 if self.issues_found == 0 else 1

    def top_issues(self, limit: int = 5) -> List[SecurityIssue]:
        """Return issues ordered by severity ranking."""

        ordered = sorted(
            self.issues,
            key=lambda issue: (-issue.severity.rank, issue.file, issue.line, issue.column),
        )
        return ordered[:limit]


def truncate_path(path: str, max_length: int = 35) -> str:
    """Shorten a path for table display.

    Backslashes become slashes, repeated slashes collapse and leading ``..``
    segments are dropped before shortening to ``first/.../last``.
    """

    parts = [part for part in path.replace("\\", "/").split("/") if part]
    while parts and parts[0] in ("..", "."):
        parts.pop(0)
    cleaned = ("/" if path.startswith("/") else "") + "/".join(parts)
    if len(cleaned) <= max_length or len(parts) <= 2:
        return cleaned
    shortened = f"{parts[0]}/.../{parts[-1]}"
    if len(shortened) <= max_length:
        return shortened
    return "..." + cleaned[-(max_length - 3):]


def format_issue_table(result: ScanResult, verbose: bool = False) -> str:
    """Create a human-readable issue listing for console output."""

    if not result.issues:
        return f"No security issues found in {result.files_scanned} files"

    lines: List[str] = []
    lines.append(f"Found {result.issues_found} security issues in {result.files_scanned} files")
    lines.append("")
    header = f"{'Rule':<26} | {'Severity':<8} | {'File':<35} | {'Line':>5} | Message"
    lines.append(header)
    lines.append("-" * len(header))
    for issue in result.issues:
        lines.append(
            f"{issue.rule:<26} | {issue.severity.value.upper():<8} | "
            f"{truncate_path(issue.file):<35} | {issue.line:>5} | {issue.message}"
        )
        if verbose:
            lines.append(f"  Location  : {issue.file}:{issue.line}:{issue.column}")
            lines.append(f"  Code      : {issue.code}")
            lines.append(f"  Suggestion: {issue.suggestion}")
    return "\n".join(lines)


def format_summary_table(result: ScanResult, max_issues: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Files     : {result.files_scanned}")
    lines.append(f"Issues    : {result.summary.total}")
    if result.skipped:
        lines.append(f"Skipped   : {result.files_skipped} (binary, too large, or unreadable)")

    issues = result.top_issues(max_issues)
    if issues:
        lines.append("")
        lines.append("Top Issues")
        lines.append("-" * 40)
        for issue in issues:
            lines.append(f"[{issue.severity.value.upper()}] {issue.rule}: {issue.message}")
            lines.append(f"  Location: {issue.file}:{issue.line}:{issue.column}")
    return "\n".join(lines)
