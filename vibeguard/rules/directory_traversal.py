"""Detect file system access driven by user-controlled paths."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import (
    PHP_INPUT,
    USER_INPUT,
    build_issue,
    context_window,
    detection,
    find_matches,
    has_marker,
    is_comment_line,
    is_import_statement,
    is_test_path,
)

SAFE_CONTEXT_LINES = 5
TEST_CONTEXT_LINES = 10
ASSIGNMENT_LOOKBACK = 3

HARDCODED_SEQUENCE = "Hardcoded directory traversal sequence"

SUGGESTION = (
    "Validate and sanitize file paths. Use path.resolve(), path.normalize(), or whitelist allowed "
    "directories. Never trust user input for file paths."
)
JOIN_SUGGESTION = "Use path.resolve() or path.join() and validate input."

DETECTIONS = (
    detection(
        r"(?:readFile|writeFile|createReadStream|createWriteStream|unlink|rmdir|mkdir|stat|access)\s*\(\s*"
        + USER_INPUT
        + r"[^)]*",
        "File operation with user input",
    ),
    detection(r"express\.static\s*\(\s*" + USER_INPUT, "Express static serving with user input"),
    detection(r"res\.sendFile\s*\(\s*" + USER_INPUT, "Express sendFile with user input"),
    detection(r"['\"`][^'\"`]*/['\"`]\s*\+\s*" + USER_INPUT, "Path concatenation with user input"),
    detection(r"\$\{[^}]*" + USER_INPUT + r"[^}]*\}", "Template literal path with user input", flags=0),
    detection(r"\.\./", HARDCODED_SEQUENCE, flags=0),
    detection(r"File\s*\(\s*" + USER_INPUT, "File constructor with user input"),
    detection(
        r"FileInputStream\s*\(\s*(?:request\.getParameter|request\.getAttribute)",
        "Java FileInputStream with user input",
    ),
    detection(r"fopen\s*\(\s*" + PHP_INPUT, "PHP fopen with user input"),
    detection(r"file_get_contents\s*\(\s*" + PHP_INPUT, "PHP file_get_contents with user input"),
    detection(r"open\s*\(\s*(?:request\.|flask\.request\.)", "Python file open with user input"),
    detection(r"os\.path\.join\s*\([^)]*(?:request\.|flask\.request\.)", "Python path join with user input"),
    detection(
        r"path\.join\s*\([^)]*" + USER_INPUT + r"(?![^)]*(?:path\.resolve|path\.normalize))",
        "Path join without normalization",
    ),
    detection(r"(?:require|import)\s*\(\s*" + USER_INPUT, "Module import with user input"),
    detection(
        r"(?:include|require|include_once|require_once)\s*\(\s*" + PHP_INPUT,
        "PHP include with user input",
    ),
)

SAFE_MARKERS = (
    re.compile(r"path\.resolve", re.IGNORECASE),
    re.compile(r"path\.normalize", re.IGNORECASE),
    re.compile(r"path\.basename", re.IGNORECASE),
    re.compile(r"sanitize", re.IGNORECASE),
    re.compile(r"validate", re.IGNORECASE),
    re.compile(r"whitelist", re.IGNORECASE),
    re.compile(r"allowedPaths", re.IGNORECASE),
    re.compile(r"isValidPath", re.IGNORECASE),
    re.compile(r"checkPath", re.IGNORECASE),
    re.compile(r"replace\s*\(\s*/\\?\.\\?\.", re.IGNORECASE),
    re.compile(r"filter", re.IGNORECASE),
    re.compile(r"startsWith", re.IGNORECASE),
    re.compile(r"includes.*allowed", re.IGNORECASE),
    re.compile(r"truncateFilePath", re.IGNORECASE),
    re.compile(r"sanitizedPath", re.IGNORECASE),
)

TEST_VOCABULARY = (
    re.compile(r"test", re.IGNORECASE),
    re.compile(r"spec", re.IGNORECASE),
    re.compile(r"describe", re.IGNORECASE),
    re.compile(r"it\(", re.IGNORECASE),
    re.compile(r"expect", re.IGNORECASE),
    re.compile(r"assert", re.IGNORECASE),
    re.compile(r"mock", re.IGNORECASE),
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"demo", re.IGNORECASE),
    re.compile(r"truncateFilePath", re.IGNORECASE),
    re.compile(r"sanitizedPath", re.IGNORECASE),
    re.compile(r"replace\s*\(\s*/\\?\.\\?\.", re.IGNORECASE),
)

# A "../" inside the module string of an import/require is a relative import.
MODULE_STRING_PREFIX = re.compile(r"(?:import|require|from)\s+['\"`][^'\"`]*$")

FS_CALL_ON_FILE_PATH = re.compile(r"fs\.(readFile|writeFile|createReadStream|createWriteStream)\s*\(\s*filePath")
FILE_PATH_FROM_QUERY = re.compile(r"const\s+filePath\s*=\s*req\.query\.")
CONCATENATED_FILE_PATH = re.compile(r"const\s+filePath\s*=\s*basePath\s*\+\s*req\.query\.filename")
TEMPLATE_FILE_PATH = re.compile(r"const\s+filePath\s*=.*\$\{basePath\}\$\{req\.query\.filename\}")


class DirectoryTraversalRule:
    """Flag file reads, writes and includes whose path comes from the request."""

    name = "directory-traversal"
    description = "Detects potential directory traversal vulnerabilities"
    severity = Severity.HIGH

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if is_test_path(file.path):
            return []

        issues: List[SecurityIssue] = []
        issues.extend(self._check_query_assignments(file))
        issues.extend(self._check_file_path_construction(file))

        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if has_marker(context_window(file.lines, match.line, SAFE_CONTEXT_LINES), SAFE_MARKERS):
                    continue
                if is_comment_line(match.line_content) or is_import_statement(match.line_content):
                    continue
                if item.label == HARDCODED_SEQUENCE and self._is_benign_sequence(file, match):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Potential directory traversal vulnerability: {item.label}",
                        SUGGESTION,
                    )
                )
        return issues

    def _check_query_assignments(self, file: FileContent) -> List[SecurityIssue]:
        """An fs call on ``filePath`` shortly after it was read from ``req.query``."""

        issues: List[SecurityIssue] = []
        for index, line_content in enumerate(file.lines):
            call = FS_CALL_ON_FILE_PATH.search(line_content)
            if not call:
                continue
            line = index + 1
            if has_marker(context_window(file.lines, line, SAFE_CONTEXT_LINES), SAFE_MARKERS):
                continue
            lookback = file.lines[max(0, index - ASSIGNMENT_LOOKBACK):index + 1]
            if any(FILE_PATH_FROM_QUERY.search(previous) for previous in lookback):
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        line,
                        call.start() + 1,
                        line_content,
                        "Potential directory traversal vulnerability: File operation with user input",
                        SUGGESTION,
                    )
                )
        return issues

    def _check_file_path_construction(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        checks = (
            (CONCATENATED_FILE_PATH, "Path concatenation vulnerability: Path concatenation with user input"),
            (TEMPLATE_FILE_PATH, "Template literal path vulnerability: Template literal path with user input"),
        )
        for pattern, message in checks:
            for index, line_content in enumerate(file.lines):
                if not pattern.search(line_content):
                    continue
                line = index + 1
                if has_marker(context_window(file.lines, line, SAFE_CONTEXT_LINES), SAFE_MARKERS):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        line,
                        line_content.find("basePath") + 1,
                        line_content,
                        message,
                        JOIN_SUGGESTION,
                    )
                )
        return issues

    def _is_benign_sequence(self, file: FileContent, match) -> bool:
        prefix = match.line_content[: match.column - 1]
        if MODULE_STRING_PREFIX.search(prefix):
            return True
        return has_marker(context_window(file.lines, match.line, TEST_CONTEXT_LINES), TEST_VOCABULARY)
