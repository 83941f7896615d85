"""Detect sensitive configuration values hardcoded in config and source files."""

from __future__ import annotations

import re
from typing import List

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, detection, find_matches, mask_secret

DETECTIONS = (
    detection(
        r"(?:database_url|db_url|connection_string)\s*[:=]\s*['\"`]([^'\"`\s]+)['\"`]",
        "Database Connection",
    ),
    detection(r"(?:mongodb|mysql|postgres|redis)://[^'\"`\s]+", "Database URL"),
    detection(
        r"(?:encryption_key|secret_key|private_key)\s*[:=]\s*['\"`]([a-zA-Z0-9+/=]{20,})['\"`]",
        "Encryption Key",
    ),
    detection(r"-----BEGIN\s+(?:RSA\s+)?PRIVATE\s+KEY-----", "Private Key"),
    detection(
        r"(?:app_secret|session_secret|jwt_secret)\s*[:=]\s*['\"`]([^'\"`\s]{16,})['\"`]",
        "Application Secret",
    ),
    detection(r"(?:salt|hash_salt)\s*[:=]\s*['\"`]([^'\"`\s]{8,})['\"`]", "Cryptographic Salt"),
    detection(r"(?:stripe_secret|stripe_key)\s*[:=]\s*['\"`](sk_[a-zA-Z0-9_]+)['\"`]", "Stripe Secret Key"),
    detection(r"(?:sendgrid_api_key)\s*[:=]\s*['\"`](SG\.[a-zA-Z0-9_\-.]+)['\"`]", "SendGrid API Key"),
    detection(r"(?:twilio_auth_token)\s*[:=]\s*['\"`]([a-zA-Z0-9]{32})['\"`]", "Twilio Auth Token"),
    detection(
        r"(?:admin_password|root_password|db_password)\s*[:=]\s*['\"`]([^'\"`\s]{6,})['\"`]",
        "Admin Password",
    ),
    detection(
        r"(?:webhook_secret|signing_secret)\s*[:=]\s*['\"`]([^'\"`\s]{16,})['\"`]",
        "Webhook Secret",
    ),
    detection(
        r"password\s*[:=]\s*['\"`](?!.*(?:password|secret|key|token))[^'\"`\s]{8,}['\"`]",
        "Configuration Password",
    ),
)

FALSE_POSITIVE_PATTERNS = (
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"sample", re.IGNORECASE),
    re.compile(r"demo", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"your[_-]?(?:key|secret|password)", re.IGNORECASE),
    re.compile(r"\$\{.*\}"),
    re.compile(r"%.*%"),
    re.compile(r"\{\{.*\}\}"),
    re.compile(r"^x+$", re.IGNORECASE),
    re.compile(r"^\*+$"),
    re.compile(r"^0+$"),
    re.compile(r"^1+$"),
    re.compile(r"test", re.IGNORECASE),
    re.compile(r"mock", re.IGNORECASE),
    re.compile(r"fake", re.IGNORECASE),
)

SENSITIVE_FILES = (
    re.compile(r"\.env", re.IGNORECASE),
    re.compile(r"\.config", re.IGNORECASE),
    re.compile(r"\.conf", re.IGNORECASE),
    re.compile(r"\.ini", re.IGNORECASE),
    re.compile(r"\.properties", re.IGNORECASE),
    re.compile(r"\.ya?ml", re.IGNORECASE),
    re.compile(r"\.json", re.IGNORECASE),
    re.compile(r"\.toml", re.IGNORECASE),
    re.compile(r"config\.", re.IGNORECASE),
    re.compile(r"settings\.", re.IGNORECASE),
    re.compile(r"constants\.", re.IGNORECASE),
    re.compile(r"\.(?:js|ts|py|php|rb)$", re.IGNORECASE),
)

SUGGESTION = (
    "Move sensitive data to environment variables or secure configuration management. "
    "Use process.env.VARIABLE_NAME or a secrets management service."
)


class HardcodedSensitiveDataRule:
    """Flag connection strings, keys and secrets in configuration-like files."""

    name = "hardcoded-sensitive-data"
    description = "Detects hardcoded sensitive information in configuration files"
    severity = Severity.CRITICAL

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if not any(pattern.search(file.path) for pattern in SENSITIVE_FILES):
            return []

        issues: List[SecurityIssue] = []
        for item in DETECTIONS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if any(pattern.search(match.text) for pattern in FALSE_POSITIVE_PATTERNS):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Hardcoded {item.label} found: {mask_secret(match.text)}",
                        SUGGESTION,
                    )
                )
        return issues
