"""Detect SQL statements assembled from strings and variables."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, detection, find_matches, has_marker, is_comment_line, is_test_path

CONCAT_TAIL = r"['\"`]\s*\+\s*[^'\"`\s)]+"

DETECTIONS = (
    detection(r"(?:query|sql|execute)\s*\(\s*['\"`][^'\"`]*" + CONCAT_TAIL, "String concatenation in SQL query"),
    detection(r"['\"`]SELECT\s+[^'\"`]*" + CONCAT_TAIL, "SELECT query with concatenation"),
    detection(r"['\"`]INSERT\s+[^'\"`]*" + CONCAT_TAIL, "INSERT query with concatenation"),
    detection(r"['\"`]UPDATE\s+[^'\"`]*" + CONCAT_TAIL, "UPDATE query with concatenation"),
    detection(r"['\"`]DELETE\s+[^'\"`]*" + CONCAT_TAIL, "DELETE query with concatenation"),
    detection(r"`SELECT\s+[^`]*\$\{[^}]+\}[^`]*`", "Template literal SQL with variables"),
    detection(r"`INSERT\s+[^`]*\$\{[^}]+\}[^`]*`", "Template literal INSERT with variables"),
    detection(r"`UPDATE\s+[^`]*\$\{[^}]+\}[^`]*`", "Template literal UPDATE with variables"),
    detection(r"`DELETE\s+[^`]*\$\{[^}]+\}[^`]*`", "Template literal DELETE with variables"),
    detection(r"(?:query|sql)\s*=\s*['\"`][^'\"`]*%s[^'\"`]*['\"`]\s*%\s*\(", "Python string formatting in SQL"),
    detection(r"(?:query|sql)\s*=\s*f['\"`][^'\"`]*\{[^}]+\}[^'\"`]*['\"`]", "Python f-string in SQL"),
    detection(r"String\.format\s*\(\s*['\"`][^'\"`]*\{[^}]*\}[^'\"`]*['\"`]", "Java String.format in SQL"),
    detection(r"WHERE\s+[^'\"`\s]+\s*=\s*['\"`]?\s*\+\s*[^'\"`\s)]+", "WHERE clause with concatenation"),
    detection(r"WHERE\s+[^'\"`\s]+\s*=\s*\$\{[^}]+\}", "WHERE clause with template variable"),
    detection(r"\.query\s*\(\s*['\"`][^'\"`]*['\"`]\s*\+", "Database query with concatenation"),
    detection(r"\.exec\s*\(\s*['\"`][^'\"`]*['\"`]\s*\+", "Database exec with concatenation"),
    detection(r"\.raw\s*\(\s*['\"`][^'\"`]*['\"`]\s*\+", "Raw SQL query with concatenation"),
    detection(r"\.where\s*\(\s*['\"`][^'\"`]*['\"`]\s*\+", "ORM where clause with concatenation"),
    detection(r"\.whereRaw\s*\(\s*['\"`][^'\"`]*['\"`]\s*\+", "ORM raw where with concatenation"),
)

PARAMETERIZATION_MARKERS = (
    re.compile(r"\?\s*,"),
    re.compile(r"\$\d+"),
    re.compile(r":\w+"),
    re.compile(r"prepare", re.IGNORECASE),
    re.compile(r"bind", re.IGNORECASE),
    re.compile(r"params", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
)

SQL_COMMENT = (re.compile(r"^\s*--"),)

SUGGESTION = (
    "Use parameterized queries or prepared statements instead of string concatenation. Replace "
    "concatenation with placeholders (?, $1, :param) and pass values as parameters."
)


class SqlInjectionRule:
    """Flag queries built by concatenation, interpolation or string formatting."""

    name = "sql-injection"
    description = "Detects potential SQL injection vulnerabilities"
    severity = Severity.HIGH

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if is_test_path(file.path):
            return []

        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if has_marker(match.line_content, PARAMETERIZATION_MARKERS):
                    continue
                if is_comment_line(match.line_content, SQL_COMMENT):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Potential SQL injection vulnerability: {item.label}",
                        SUGGESTION,
                    )
                )
        return issues
