"""Detect CORS policies that admit any origin, method or header."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, context_window, detection, find_matches, has_marker

SAFE_CONTEXT_LINES = 5

DETECTIONS = (
    detection(r"Access-Control-Allow-Origin\s*:\s*['\"`]\*['\"`]", "Wildcard CORS origin allows any domain"),
    detection(r"cors\(\s*\{\s*origin\s*:\s*['\"`]\*['\"`]", "CORS middleware configured with wildcard origin"),
    detection(
        r"\.header\s*\(\s*['\"`]Access-Control-Allow-Origin['\"`]\s*,\s*['\"`]\*['\"`]",
        "Manual CORS header set to wildcard",
    ),
    detection(
        r"app\.use\s*\(\s*cors\s*\(\s*\{\s*origin\s*:\s*true",
        "CORS origin set to true (allows all origins)",
    ),
    detection(r"app\.use\s*\(\s*cors\s*\(\s*\)\s*\)", "CORS middleware used without origin restrictions"),
    detection(
        r"Access-Control-Allow-Credentials\s*:\s*['\"`]true['\"`]",
        "CORS credentials enabled - ensure origin is restricted",
    ),
    detection(r"Access-Control-Allow-Methods\s*:\s*['\"`]\*['\"`]", "CORS allows all HTTP methods"),
    detection(r"Access-Control-Allow-Headers\s*:\s*['\"`]\*['\"`]", "CORS allows all headers"),
    detection(
        r"@CrossOrigin\s*\(\s*origins\s*=\s*['\"`]\*['\"`]",
        "Spring @CrossOrigin annotation with wildcard origin",
    ),
    detection(r"enable_cors\s*\(\s*origins\s*=\s*\[\s*['\"`]\*['\"`]", "FastAPI CORS with wildcard origin"),
)

DEVELOPMENT_MARKERS = (
    re.compile(r"localhost", re.IGNORECASE),
    re.compile(r"127\.0\.0\.1"),
    re.compile(r"\.local", re.IGNORECASE),
    re.compile(r"development", re.IGNORECASE),
    re.compile(r"staging", re.IGNORECASE),
    re.compile(r"test", re.IGNORECASE),
)

SUGGESTION = (
    "Restrict CORS origins to specific domains. Use specific origins like 'https://yourdomain.com' "
    "instead of '*'. Consider using environment variables for different environments."
)


class OpenCorsRule:
    """Flag wildcard CORS configuration outside development contexts."""

    name = "open-cors"
    description = "Detects overly permissive CORS configurations"
    severity = Severity.HIGH

    def check(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if has_marker(context_window(file.lines, match.line, SAFE_CONTEXT_LINES), DEVELOPMENT_MARKERS):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Permissive CORS configuration: {item.label}",
                        SUGGESTION,
                    )
                )
        return issues
