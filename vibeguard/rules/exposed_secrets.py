"""Detect API keys, tokens and credentials committed to source."""

from __future__ import annotations

import base64
import binascii
import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, detection, find_matches, mask_secret

BASE64_SECRET = "Base64 Encoded Secret"

DETECTIONS = (
    detection(r"(?:api[_-]?key|apikey)\s*[:=]\s*['\"`]([a-zA-Z0-9_\-]{20,})", "API Key"),
    detection(r"(?:secret[_-]?key|secretkey)\s*[:=]\s*['\"`]([a-zA-Z0-9_\-]{20,})", "Secret Key"),
    detection(r"(?:access[_-]?token|accesstoken)\s*[:=]\s*['\"`]([a-zA-Z0-9_\-]{20,})", "Access Token"),
    detection(r"AKIA[0-9A-Z]{16}", "AWS Access Key", flags=0),
    detection(r"(?:aws[_-]?secret|AWS_SECRET)\s*[:=]\s*['\"`]([a-zA-Z0-9/+=]{40})", "AWS Secret"),
    detection(r"ghp_[a-zA-Z0-9]{36}", "GitHub Personal Access Token", flags=0),
    detection(r"ghs_[a-zA-Z0-9]{36}", "GitHub App Token", flags=0),
    detection(r"ghr_[a-zA-Z0-9]{36}", "GitHub Refresh Token", flags=0),
    detection(r"AIza[0-9A-Za-z_\-]{35}", "Google API Key", flags=0),
    detection(r"xox[baprs]-[0-9a-zA-Z\-]{10,}", "Slack Token", flags=0),
    detection(r"eyJ[a-zA-Z0-9_\-]*\.eyJ[a-zA-Z0-9_\-]*\.[a-zA-Z0-9_\-]*", "JWT Token", flags=0),
    detection(r"(?:mongodb|mysql|postgres|redis)://[^\s'\"]+", "Database URL"),
    detection(
        r"(?:secret|token|key|auth|password)\s*[:=]\s*['\"`]([A-Za-z0-9+/]{40,}={0,2})['\"`]",
        BASE64_SECRET,
    ),
    detection(r"(?:password|passwd|pwd)\s*[:=]\s*['\"`]([^'\"`\s]{8,})", "Password"),
    detection(r"(?:^|[^a-zA-Z0-9_])(?:token|auth)\s*[:=]\s*['\"`]([a-zA-Z0-9_\-]{20,})", "Auth Token"),
)

FALSE_POSITIVE_PATTERNS = (
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"demo", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"your[_-]?key", re.IGNORECASE),
    re.compile(r"your[_-]?token", re.IGNORECASE),
    re.compile(r"your[_-]?secret", re.IGNORECASE),
    re.compile(r"\$\{.*\}"),
    re.compile(r"%.*%"),
    re.compile(r"\{\{.*\}\}"),
    re.compile(r"^xxx+$", re.IGNORECASE),
    re.compile(r"^aaa+$", re.IGNORECASE),
    re.compile(r"^000+$"),
    re.compile(r"^111+$"),
    re.compile(r"^(?:123)+$"),
    re.compile(r"test", re.IGNORECASE),
    re.compile(r"mock", re.IGNORECASE),
    re.compile(r"sample", re.IGNORECASE),
    re.compile(r"dummy", re.IGNORECASE),
    re.compile(r"^(.)\1{7,}$"),
)

QUOTED_VALUE = re.compile(r"['\"`]([^'\"`]+)['\"`]")
REPEATED_CHARACTER = re.compile(r"^(.)\1{7,}$")
SEQUENTIAL_DIGITS = re.compile(r"^(?:012|123|234|345|456|567|678|789|890)+$")

BASE64_CANDIDATE = re.compile(r"[A-Za-z0-9+/]{32,}={0,2}")
DECODED_PLACEHOLDER = re.compile(r"^(?:test|example|demo|placeholder|sample|dummy)", re.IGNORECASE)
DECODED_REPEATED = re.compile(r"^(.)\1+$", re.DOTALL)
MIN_DECODED_LENGTH = 8

SUGGESTION = (
    "Remove hardcoded secrets and use environment variables or secure secret management instead. "
    "Consider using tools like dotenv for local development."
)


def is_false_positive(text: str) -> bool:
    """Reject placeholder-looking matches before they become issues."""

    if any(pattern.search(text) for pattern in FALSE_POSITIVE_PATTERNS):
        return True
    quoted = QUOTED_VALUE.search(text)
    if quoted:
        value = quoted.group(1)
        if REPEATED_CHARACTER.match(value) or SEQUENTIAL_DIGITS.match(value):
            return True
    return False


def is_valid_base64_secret(text: str) -> bool:
    """Decode the base64 run in ``text`` and keep it only if it looks like real data."""

    candidate = BASE64_CANDIDATE.search(text)
    if not candidate:
        return False
    encoded = candidate.group(0)
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        decoded = base64.b64decode(padded, validate=True).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return False
    if DECODED_PLACEHOLDER.match(decoded):
        return False
    if len(decoded) < MIN_DECODED_LENGTH:
        return False
    if DECODED_REPEATED.match(decoded):
        return False
    return True


class ExposedSecretsRule:
    """Flag literal credentials in any scanned file."""

    name = "exposed-secrets"
    description = "Detects exposed API keys, tokens, and credentials"
    severity = Severity.CRITICAL

    def check(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if is_false_positive(match.text):
                    continue
                if item.label == BASE64_SECRET and not is_valid_base64_secret(match.text):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Exposed {item.label} detected: {mask_secret(match.text)}",
                        SUGGESTION,
                    )
                )
        return issues
