"""Detect known-vulnerable, deprecated and suspicious packages in dependency manifests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from vibeguard.result import SecurityIssue
from vibeguard.severity import Severity

from . import FileContent
from .common import build_issue, detection, find_matches

DEV_DEPENDENCY = "Development dependency"


@dataclass(frozen=True)
class Advisory:
    """A package name, the version specs it affects and why."""

    name: str
    versions: Tuple[str, ...]
    reason: str


ADVISORIES: Sequence[Advisory] = (
    Advisory("lodash", ("<4.17.21",), "Prototype pollution vulnerabilities"),
    Advisory("moment", ("*",), "Deprecated package, use date-fns or dayjs instead"),
    Advisory("request", ("*",), "Deprecated package with security issues"),
    Advisory("node-uuid", ("*",), "Deprecated, use uuid package instead"),
    Advisory("growl", ("<1.10.0",), "Command injection vulnerability"),
    Advisory("handlebars", ("<4.7.7",), "Template injection vulnerabilities"),
    Advisory("serialize-javascript", ("<3.1.0",), "XSS vulnerability"),
    Advisory("minimist", ("<1.2.6",), "Prototype pollution vulnerability"),
    Advisory("yargs-parser", ("<13.1.2",), "Prototype pollution vulnerability"),
    Advisory("ini", ("<1.3.6",), "Prototype pollution vulnerability"),
    Advisory("django", ("<3.2.13",), "Multiple security vulnerabilities"),
    Advisory("flask", ("<2.0.0",), "Security improvements in newer versions"),
    Advisory("requests", ("<2.20.0",), "SSL verification issues"),
    Advisory("pyyaml", ("<5.4",), "Arbitrary code execution vulnerability"),
    Advisory("pillow", ("<8.3.2",), "Multiple image processing vulnerabilities"),
    Advisory("symfony/symfony", ("<4.4.35",), "Multiple security vulnerabilities"),
    Advisory("laravel/framework", ("<8.75.0",), "Security vulnerabilities"),
    Advisory("monolog/monolog", ("<2.3.5",), "Remote code execution vulnerability"),
)

SUSPICIOUS = (
    detection(
        r"(?:^|\s)(?:eval|exec|shell|cmd|system|proc|spawn)(?:-|_)?(?:js|py|php|rb)?\s*[:=]",
        "Suspicious package name",
    ),
    detection(r"(?:^|\s)(?:backdoor|malware|virus|trojan|keylogger)\s*[:=]", "Malicious package name"),
    detection(r"(?:^|\s)(?:lodahs|momnet|expres|reactt|angualr|vuejs)\s*[:=]", "Potential typosquatting"),
    detection(
        r"[\"'](?:\*|latest|>.*|>=.*\|\|.*|.*\.\*\.\*)[\"']",
        "Overly permissive version range",
        flags=0,
    ),
    detection(
        r"\"devDependencies\"\s*:\s*\{[^}]*\"(?:nodemon|webpack-dev-server|jest|mocha|chai|sinon)\"",
        DEV_DEPENDENCY,
    ),
)

MANIFEST_FILES = (
    re.compile(r"package\.json$", re.IGNORECASE),
    re.compile(r"requirements\.txt$", re.IGNORECASE),
    re.compile(r"Pipfile$", re.IGNORECASE),
    re.compile(r"composer\.json$", re.IGNORECASE),
    re.compile(r"Gemfile$", re.IGNORECASE),
    re.compile(r"pom\.xml$", re.IGNORECASE),
    re.compile(r"build\.gradle$", re.IGNORECASE),
    re.compile(r"yarn\.lock$", re.IGNORECASE),
    re.compile(r"package-lock\.json$", re.IGNORECASE),
)

REQUIREMENTS_FILE = re.compile(r"requirements\.txt$", re.IGNORECASE)
TOP_LEVEL_SECTION = re.compile(r"^\"[^\"]+\"\s*:\s*\{")

SUSPICIOUS_SUGGESTION = (
    "Review this dependency carefully. Ensure it's from a trusted source and serves a legitimate purpose."
)


def compare_versions(left: str, right: str) -> int:
    """Compare dot-separated numeric versions; suffixes are stripped, missing parts are 0."""

    def parts(version: str) -> List[int]:
        cleaned = re.sub(r"[^\d.]", "", version)
        return [int(part) if part else 0 for part in cleaned.split(".")]

    left_parts, right_parts = parts(left), parts(right)
    for index in range(max(len(left_parts), len(right_parts))):
        a = left_parts[index] if index < len(left_parts) else 0
        b = right_parts[index] if index < len(right_parts) else 0
        if a < b:
            return -1
        if a > b:
            return 1
    return 0


def is_vulnerable_version(version: str, specs: Sequence[str]) -> bool:
    for spec in specs:
        if spec == "*":
            return True
        if spec.startswith("<") and compare_versions(version, spec[1:]) < 0:
            return True
        if version == spec:
            return True
    return False


def is_in_dev_dependencies(lines: Sequence[str], line: int) -> bool:
    """Walk back from ``line`` to find which dependency section encloses it."""

    for index in range(line - 1, -1, -1):
        stripped = lines[index].strip()
        if not stripped:
            continue
        if '"devDependencies"' in stripped:
            return True
        if '"dependencies"' in stripped:
            return False
        if TOP_LEVEL_SECTION.match(stripped) and "Dependencies" not in stripped:
            break
    return False


class InsecureDependenciesRule:
    """Flag risky entries in package manifests and lockfiles."""

    name = "insecure-dependencies"
    description = "Detects potentially insecure dependencies and packages"
    severity = Severity.MEDIUM

    def check(self, file: FileContent) -> List[SecurityIssue]:
        if not any(pattern.search(file.path) for pattern in MANIFEST_FILES):
            return []

        issues: List[SecurityIssue] = []
        issues.extend(self._check_advisories(file))
        issues.extend(self._check_suspicious(file))
        return issues

    def _version_patterns(self, file: FileContent, advisory: Advisory) -> List[re.Pattern]:
        name = re.escape(advisory.name)
        patterns = [re.compile(rf"[\"']{name}[\"']\s*:\s*[\"']([^\"']+)[\"']", re.IGNORECASE)]
        if REQUIREMENTS_FILE.search(file.path):
            patterns.append(re.compile(rf"^\s*{name}\s*==\s*([0-9][^\s;#]*)", re.IGNORECASE))
        return patterns

    def _check_advisories(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        for advisory in ADVISORIES:
            for pattern in self._version_patterns(file, advisory):
                for match in find_matches(file.lines, pattern):
                    version = match.groups[0]
                    if not version or not is_vulnerable_version(version, advisory.versions):
                        continue
                    issues.append(
                        build_issue(
                            self,
                            file.path,
                            match.line,
                            match.column,
                            match.line_content,
                            f"Vulnerable dependency: {advisory.name}@{version}",
                            f"{advisory.reason}. Update to a secure version or find an alternative package.",
                        )
                    )
        return issues

    def _check_suspicious(self, file: FileContent) -> List[SecurityIssue]:
        issues: List[SecurityIssue] = []
        for item in SUSPICIOUS:
            for match in find_matches(file.lines, item.pattern, item.repeat):
                if item.label == DEV_DEPENDENCY and is_in_dev_dependencies(file.lines, match.line):
                    continue
                issues.append(
                    build_issue(
                        self,
                        file.path,
                        match.line,
                        match.column,
                        match.line_content,
                        f"Suspicious dependency pattern: {item.label}",
                        SUSPICIOUS_SUGGESTION,
                    )
                )
        return issues
