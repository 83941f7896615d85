"""Detect plain HTTP usage and insecure transport settings."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, detection, find_matches, has_marker

DETECTIONS = (
    detection(r"['\"`]http://(?!localhost|127\.0\.0\.1|0\.0\.0\.0)[^'\"`\s]+['\"`]", "HTTP URL"),
    detection(r"(?:api_url|endpoint|base_url)\s*[:=]\s*['\"`]http://[^'\"`\s]+['\"`]", "HTTP API Endpoint"),
    detection(r"fetch\s*\(\s*['\"`]http://[^'\"`\s]+['\"`]", "HTTP Fetch Request"),
    detection(r"axios\.(?:get|post|put|delete)\s*\(\s*['\"`]http://[^'\"`\s]+['\"`]", "HTTP Axios Request"),
    detection(r"(?:protocol|scheme)\s*[:=]\s*['\"`]http['\"`]", "HTTP Protocol Configuration"),
    detection(r"secure\s*[:=]\s*false", "Insecure Configuration"),
    detection(r"app\.listen\s*\(\s*\d+\s*,\s*['\"`]0\.0\.0\.0['\"`]", "HTTP Server Binding"),
    detection(r"createServer\s*\(\s*(?!.*https)", "HTTP Server Creation"),
    detection(r"httpOnly\s*:\s*false", "Insecure Cookie Configuration"),
    detection(r"secure\s*:\s*false", "Insecure Cookie Security"),
    detection(r"src\s*=\s*['\"`]http://[^'\"`\s]+['\"`]", "Mixed Content Resource"),
    detection(r"href\s*=\s*['\"`]http://[^'\"`\s]+['\"`]", "Mixed Content Link"),
    detection(r"@RequestMapping.*http:", "HTTP Spring Mapping"),
    detection(r"ALLOWED_HOSTS\s*=\s*\[\s*['\"`]\*['\"`]", "Permissive Host Configuration"),
)

DEVELOPMENT_MARKERS = (
    re.compile(r"localhost", re.IGNORECASE),
    re.compile(r"127\.0\.0\.1"),
    re.compile(r"0\.0\.0\.0"),
    re.compile(r"\.local", re.IGNORECASE),
    re.compile(r"development", re.IGNORECASE),
    re.compile(r"dev", re.IGNORECASE),
    re.compile(r"staging", re.IGNORECASE),
    re.compile(r"test", re.IGNORECASE),
    re.compile(r"mock", re.IGNORECASE),
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
)

NON_PRODUCTION_PATH = re.compile(r"test|spec|__tests__|dev|development|local", re.IGNORECASE)
HTTP_URL = re.compile(r"http://[^'\"`\s]+")

SUGGESTION = (
    "Use HTTPS instead of HTTP for secure communication. Replace 'http://' with 'https://' and "
    "ensure SSL/TLS certificates are properly configured."
)


class InsecureHttpRule:
    """Flag production code that talks or serves plain HTTP."""

    name = "insecure-http"
    description = "Detects insecure HTTP usage instead of HTTPS"
    severity = Severity.MEDIUM

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if NON_PRODUCTION_PATH.search(file.path):
            return []

        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if has_marker(match.text, DEVELOPMENT_MARKERS) or has_marker(match.line_content, DEVELOPMENT_MARKERS):
                    continue
                url = HTTP_URL.search(match.text)
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Insecure {item.label} detected: {url.group(0) if url else match.text}",
                        SUGGESTION,
                    )
                )
        return issues
