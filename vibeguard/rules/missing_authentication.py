"""Detect route handlers registered without any visible authentication."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import Match, build_issue, context_window, detection, find_matches, has_marker

AUTH_CONTEXT_LINES = 10

UNGUARDED_ARGS = r"\s*,\s*(?!.*auth|.*login|.*verify|.*middleware)"
UNGUARDED_BODY = r"(?![\s\S]*auth|[\s\S]*login|[\s\S]*verify)"

# Flask and FastAPI decorators are written across two lines; with line-scoped
# matching these two entries cannot fire.
DETECTIONS = (
    detection(r"app\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]" + UNGUARDED_ARGS, "Express"),
    detection(r"router\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]" + UNGUARDED_ARGS, "Express"),
    detection(
        r"export\s+(?:default\s+)?(?:async\s+)?function\s+handler\s*\([^)]*\)\s*\{" + UNGUARDED_BODY,
        "Next.js",
    ),
    detection(
        r"@app\.route\s*\(\s*['\"`]([^'\"`]+)['\"`](?:[^)]*)\)\s*\n\s*def\s+\w+\s*\([^)]*\)\s*:" + UNGUARDED_BODY,
        "Flask",
    ),
    detection(
        r"@app\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*\)\s*\n\s*(?:async\s+)?def\s+\w+\s*\([^)]*\)\s*:"
        + UNGUARDED_BODY,
        "FastAPI",
    ),
    detection(r"Route::(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]" + UNGUARDED_ARGS, "Laravel"),
)

PROTECTION_MARKERS = tuple(
    re.compile(word, re.IGNORECASE)
    for word in (
        "auth",
        "login",
        "verify",
        "middleware",
        "guard",
        "protect",
        "secure",
        "jwt",
        "token",
        "session",
        "permission",
        "role",
    )
)

PUBLIC_ENDPOINTS = tuple(
    re.compile(path, re.IGNORECASE)
    for path in (
        r"/public",
        r"/health",
        r"/ping",
        r"/status",
        r"/docs",
        r"/swagger",
        r"/api-docs",
        r"/favicon",
        r"/robots\.txt",
        r"/sitemap",
        r"/login",
        r"/register",
        r"/signup",
        r"/forgot-password",
        r"/reset-password",
    )
)

SUGGESTION = (
    "Add authentication middleware or verify that this endpoint should be publicly accessible. "
    "Consider using authentication guards, middleware, or decorators."
)


def extract_route(match: Match) -> str:
    for group in match.groups:
        if group and group.startswith("/"):
            return group
    return match.text


class MissingAuthenticationRule:
    """Flag routes with no authentication hint in the handler or its surroundings."""

    name = "missing-authentication"
    description = "Detects potentially unprotected routes and endpoints"
    severity = Severity.HIGH

    def check(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                route = extract_route(match)
                if has_marker(route, PUBLIC_ENDPOINTS):
                    continue
                if has_marker(context_window(file.lines, match.line, AUTH_CONTEXT_LINES), PROTECTION_MARKERS):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Potentially unprotected {item.label} route: {route}",
                        SUGGESTION,
                    )
                )
        return issues
