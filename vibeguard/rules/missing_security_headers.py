"""Detect server code that never sets the standard HTTP security headers."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import Match, build_issue, detection, find_matches, is_test_path

SECURITY_HEADERS: Sequence[str] = (
    "Content-Security-Policy",
    "X-Frame-Options",
    "X-Content-Type-Options",
    "X-XSS-Protection",
    "Strict-Transport-Security",
    "Referrer-Policy",
    "Permissions-Policy",
    "X-Permitted-Cross-Domain-Policies",
)

SERVER_PATTERNS = (
    detection(r"app\.(?:get|post|put|delete|patch|use)\s*\(", "Express route handler"),
    detection(r"router\.(?:get|post|put|delete|patch|use)\s*\(", "Express router"),
    detection(r"app\.listen\s*\(", "Express server"),
    detection(r"export\s+(?:default\s+)?(?:async\s+)?function\s+handler", "Next.js API handler"),
    detection(
        r"export\s+(?:const|let|var)\s+\w+\s*=\s*(?:async\s+)?\([^)]*req[^)]*res[^)]*\)",
        "Next.js API function",
    ),
    detection(r"createServer\s*\(\s*(?:async\s+)?\([^)]*req[^)]*res[^)]*\)", "Node.js HTTP server"),
    detection(r"http\.createServer", "HTTP server creation"),
    detection(r"res\.(?:send|json|render|redirect)", "Response method"),
    detection(r"response\.(?:send|json|render|redirect)", "Response method"),
    detection(r"@app\.route", "Flask route"),
    detection(r"return\s+(?:render_template|jsonify|redirect)", "Flask response"),
    detection(r"def\s+\w+\s*\([^)]*request[^)]*\)", "Django view function"),
    detection(r"HttpResponse\s*\(", "Django HTTP response"),
    detection(r"header\s*\(\s*['\"`][^'\"`]*['\"`]", "PHP header function"),
)

WEB_SOURCE = re.compile(r"\.(?:js|ts|jsx|tsx|py|php|rb|go|java|cs)$", re.IGNORECASE)
HELMET = re.compile(r"helmet\s*\(\s*\)|helmet\.", re.IGNORECASE)

HEADER_RECOMMENDATIONS = (
    ("Content-Security-Policy", "CSP: \"default-src 'self'\""),
    ("X-Frame-Options", "X-Frame-Options: 'DENY'"),
    ("X-Content-Type-Options", "X-Content-Type-Options: 'nosniff'"),
    ("Strict-Transport-Security", "HSTS: 'max-age=31536000; includeSubDomains'"),
)


def header_patterns(header: str) -> List[re.Pattern]:
    """Build the idioms that set ``header`` across the supported frameworks."""

    name = re.escape(header)
    quote = "['\"`]"
    return [
        re.compile(rf"res\.(?:set|header)\s*\(\s*{quote}{name}{quote}", re.IGNORECASE),
        re.compile(rf"res\.setHeader\s*\(\s*{quote}{name}{quote}", re.IGNORECASE),
        re.compile(rf"{quote}{name}{quote}\s*:\s*{quote}", re.IGNORECASE),
        re.compile(rf"header\s*\(\s*{quote}{name}:", re.IGNORECASE),
        re.compile(rf"response\.headers\[{quote}{name}{quote}\]", re.IGNORECASE),
        re.compile(rf"response\[{quote}{name}{quote}\]", re.IGNORECASE),
    ]


def has_security_header(content: str, header: str) -> bool:
    if HELMET.search(content):
        return True
    return any(pattern.search(content) for pattern in header_patterns(header))


def header_recommendations(missing: Sequence[str]) -> str:
    recommendations = [text for header, text in HEADER_RECOMMENDATIONS if header in missing]
    suffix = "..." if len(recommendations) > 2 else ""
    return ", ".join(recommendations[:2]) + suffix


class MissingSecurityHeadersRule:
    """Report once per server file when any of the security headers is never set."""

    name = "missing-security-headers"
    description = "Detects missing HTTP security headers"
    severity = Severity.MEDIUM

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if is_test_path(file.path) or not WEB_SOURCE.search(file.path):
            return []

        location = self._report_location(file)
        if location is None:
            return []

        missing = [header for header in SECURITY_HEADERS if not has_security_header(file.content, header)]
        if not missing:
            return []

        return [
            build_issue(
                self,
                file.path,
                location.line,
                location.column,
                location.line_content,
                f"Missing security headers: {', '.join(missing)}",
                "Add security headers to protect against common attacks. Consider using helmet.js for Express "
                f"or implementing headers manually: {header_recommendations(missing)}",
            )
        ]

    def _report_location(self, file: FileContent) -> Optional[Match]:
        """The first server or route match, in pattern order."""

        for item in SERVER_PATTERNS:
            matches = find_matches(file.lines, item.pattern, repeat=False)
            if matches:
                return matches[0]
        return None
