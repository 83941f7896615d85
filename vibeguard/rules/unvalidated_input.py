"""Detect request data used without nearby validation."""

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
    is_test_path,
)

VALIDATION_CONTEXT_LINES = 3

DETECTIONS = (
    detection(
        r"req\.(?:body|query|params)\.[a-zA-Z_][a-zA-Z0-9_]*"
        r"(?!\s*\.\s*(?:validate|sanitize|escape|trim|length|match|test))",
        "Express request parameter",
        flags=0,
    ),
    detection(r"req\.(?:body|query|params)(?!\s*\.\s*(?:validate|sanitize|escape))", "Express request object", flags=0),
    detection(r"(?:eval|exec|system|shell_exec)\s*\(\s*" + USER_INPUT, "Code execution with user input"),
    detection(r"(?:innerHTML|outerHTML)\s*=\s*" + USER_INPUT, "DOM manipulation with user input"),
    detection(r"(?:readFile|writeFile|unlink|rmdir|mkdir)\s*\(\s*" + USER_INPUT, "File operation with user input"),
    detection(r"(?:open|fopen|file_get_contents)\s*\(\s*" + PHP_INPUT, "PHP file operation with user input"),
    detection(
        r"\.(?:query|exec|execute)\s*\(\s*" + USER_INPUT + r"(?![^)]*(?:validate|sanitize|escape))",
        "Database query with unvalidated input",
    ),
    detection(r"(?:spawn|exec|execSync)\s*\(\s*" + USER_INPUT, "Command execution with user input"),
    detection(
        r"(?:os\.system|subprocess\.call|eval|exec)\s*\(\s*(?:request\.|flask\.request\.)",
        "Python system call with user input",
    ),
    detection(r"(?:system|exec|shell_exec|passthru)\s*\(\s*" + PHP_INPUT, "PHP system call with user input"),
    detection(
        r"(?:include|require|include_once|require_once)\s*\(\s*" + PHP_INPUT,
        "PHP file inclusion with user input",
    ),
    detection(
        r"Runtime\.getRuntime\(\)\.exec\s*\(\s*(?:request\.getParameter|request\.getAttribute)",
        "Java runtime execution with user input",
    ),
    detection(r"\$\{" + USER_INPUT + r"[^}]+\}", "Template literal with user input", flags=0),
)

VALIDATION_MARKERS = (
    re.compile(r"validate", re.IGNORECASE),
    re.compile(r"sanitize", re.IGNORECASE),
    re.compile(r"escape", re.IGNORECASE),
    re.compile(r"filter", re.IGNORECASE),
    re.compile(r"clean", re.IGNORECASE),
    re.compile(r"trim", re.IGNORECASE),
    re.compile(r"strip", re.IGNORECASE),
    re.compile(r"whitelist", re.IGNORECASE),
    re.compile(r"blacklist", re.IGNORECASE),
    re.compile(r"check", re.IGNORECASE),
    re.compile(r"verify", re.IGNORECASE),
    re.compile(r"isValid", re.IGNORECASE),
    re.compile(r"typeof", re.IGNORECASE),
    re.compile(r"instanceof", re.IGNORECASE),
    re.compile(r"\.length\s*[><=]"),
    re.compile(r"\.match\s*\("),
    re.compile(r"\.test\s*\("),
    re.compile(r"parseInt", re.IGNORECASE),
    re.compile(r"parseFloat", re.IGNORECASE),
    re.compile(r"Number\("),
    re.compile(r"String\("),
    re.compile(r"Boolean\("),
)

PASSIVE_USE_MARKERS = (
    re.compile(r"console\.", re.IGNORECASE),
    re.compile(r"log\(", re.IGNORECASE),
    re.compile(r"print\(", re.IGNORECASE),
    re.compile(r"echo\s", re.IGNORECASE),
    re.compile(r"return\s", re.IGNORECASE),
    re.compile(r"res\.json\s*\(", re.IGNORECASE),
    re.compile(r"res\.send\s*\(", re.IGNORECASE),
    re.compile(r"JSON\.stringify", re.IGNORECASE),
)

SUGGESTION = (
    "Validate and sanitize user input before use. Consider using validation libraries like Joi, "
    "express-validator, or built-in validation methods."
)


class UnvalidatedInputRule:
    """Flag request values that reach sinks with no validation in the surrounding lines."""

    name = "unvalidated-input"
    description = "Detects potentially unvalidated user input"
    severity = Severity.MEDIUM

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if is_test_path(file.path):
            return []

        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if has_marker(context_window(file.lines, match.line, VALIDATION_CONTEXT_LINES), VALIDATION_MARKERS):
                    continue
                if is_comment_line(match.line_content):
                    continue
                # logging and response echoes are not sinks
                if has_marker(match.line_content, PASSIVE_USE_MARKERS):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Potentially unvalidated user input: {item.label}",
                        SUGGESTION,
                    )
                )
        return issues
