"""Run the rule set over a file or a directory tree and aggregate the findings."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .config import VibeGuardConfig
from .errors import (
    ConfigurationError,
    FatalSingleFileReadError,
    InvalidTargetType,
    PathNotFound,
    SkipFile,
    UnreadableFile,
)
from .result import ScanResult, SecurityIssue, SkippedFile
from .rules import FileContent, Rule
from .rules.directory_traversal import DirectoryTraversalRule
from .rules.exposed_secrets import ExposedSecretsRule
from .rules.hardcoded_sensitive_data import HardcodedSensitiveDataRule
from .rules.insecure_dependencies import InsecureDependenciesRule
from .rules.insecure_http import InsecureHttpRule
from .rules.missing_authentication import MissingAuthenticationRule
from .rules.missing_security_headers import MissingSecurityHeadersRule
from .rules.open_cors import OpenCorsRule
from .rules.sql_injection import SqlInjectionRule
from .rules.unvalidated_input import UnvalidatedInputRule
from .utils.code import discover_files, matches_glob
from .utils.fileio import load_file

logger = logging.getLogger(__name__)

RULE_ERROR = "rule_error"

PathLike = Union[str, Path]


def load_rules() -> List[Rule]:
    return [
        ExposedSecretsRule(),
        MissingAuthenticationRule(),
        OpenCorsRule(),
        HardcodedSensitiveDataRule(),
        InsecureHttpRule(),
        SqlInjectionRule(),
        UnvalidatedInputRule(),
        DirectoryTraversalRule(),
        InsecureDependenciesRule(),
        MissingSecurityHeadersRule(),
    ]


def default_workers() -> int:
    return min(8, os.cpu_count() or 1)


@dataclass
class FileOutcome:
    """What one worker task produced for one file."""

    path: str
    issues: List[SecurityIssue] = field(default_factory=list)
    skipped: Optional[SkippedFile] = None
    errors: List[SkippedFile] = field(default_factory=list)


class Scanner:
    """Apply every enabled rule to each discovered file.

    Files are processed by a thread pool, one task per file. Outcomes are
    collected in discovery order by the calling thread, which is the only
    writer to the ``ScanResult``.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        config: Optional[VibeGuardConfig] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.config = config or VibeGuardConfig()
        candidates = list(rules) if rules is not None else load_rules()
        self._rules = [rule for rule in candidates if self.config.is_enabled(rule.name)]
        if workers is not None and workers < 1:
            raise ConfigurationError(f"workers must be at least 1 (got {workers})")
        self.workers = workers or default_workers()

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def get_rule(self, name: str) -> Optional[Rule]:
        return next((rule for rule in self._rules if rule.name == name), None)

    def scan(
        self,
        target: PathLike,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        cancel: Optional[threading.Event] = None,
    ) -> ScanResult:
        path = Path(target)
        if not path.exists():
            raise PathNotFound(target)
        if path.is_file():
            return self.scan_file(path)
        if path.is_dir():
            return self.scan_directory(path, include=include, exclude=exclude, cancel=cancel)
        raise InvalidTargetType(target)

    def scan_file(self, path: PathLike) -> ScanResult:
        """Scan a single file.

        An oversized or binary file yields an empty result with the skip
        recorded; a file that cannot be read fails the scan.
        """

        path = Path(path)
        try:
            file = load_file(path)
        except UnreadableFile as exc:
            raise FatalSingleFileReadError(f"Could not scan file {path}: {exc.detail}") from exc
        except SkipFile as exc:
            outcome = FileOutcome(str(path), skipped=SkippedFile(exc.path, exc.reason, exc.detail))
        else:
            outcome = self._check(file)

        result = ScanResult()
        self._aggregate(result, outcome)
        return result

    def scan_directory(
        self,
        root: PathLike,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        cancel: Optional[threading.Event] = None,
    ) -> ScanResult:
        """Scan every supported file below ``root``.

        Reported paths start with the name of ``root`` itself, so a root such
        as ``__tests__/`` is still recognised as test code. Globs from the
        command line and the configuration match the part below ``root``.

        Setting ``cancel`` stops further files from being started; files
        already in progress finish and the partial result is returned.
        """

        include = tuple(include) or self.config.include
        exclude = self.config.exclude + tuple(exclude)
        candidates = discover_files(Path(root), include=include, exclude=exclude)
        logger.debug("Discovered %d candidate files under %s", len(candidates), root)
        base = Path(root).resolve().name

        result = ScanResult()
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = []
            for path, rel_path in candidates:
                if cancel is not None and cancel.is_set():
                    break
                display_path = f"{base}/{rel_path}" if base else rel_path
                futures.append(executor.submit(self._process, path, display_path, rel_path, cancel))
            for future in futures:
                outcome = future.result()
                if outcome is not None:
                    self._aggregate(result, outcome)

        if cancel is not None and cancel.is_set():
            logger.info("Scan cancelled after %d of %d files", result.files_scanned, len(candidates))
        logger.info(
            "Scanned %d files, skipped %d, found %d issues",
            result.files_scanned,
            result.files_skipped,
            result.issues_found,
        )
        return result

    def _process(
        self,
        path: Path,
        display_path: str,
        rel_path: str,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[FileOutcome]:
        if cancel is not None and cancel.is_set():
            return None
        try:
            file = load_file(path, display_path)
        except SkipFile as exc:
            return FileOutcome(display_path, skipped=SkippedFile(exc.path, exc.reason, exc.detail))
        return self._check(file, rel_path)

    def _check(self, file: FileContent, rel_path: Optional[str] = None) -> FileOutcome:
        """Run each enabled rule on ``file``.

        Per-rule excludes match ``rel_path`` when given. A rule that raises is
        recorded as a ``rule_error`` and the remaining rules still run.
        """

        match_path = rel_path if rel_path is not None else file.path
        outcome = FileOutcome(file.path)
        for rule in self._rules:
            rule_config = self.config.rule(rule.name)
            if rule_config.exclude and matches_glob(match_path, rule_config.exclude):
                continue
            try:
                found = rule.check(file)
            except Exception as exc:
                outcome.errors.append(SkippedFile(file.path, RULE_ERROR, f"{rule.name}: {exc}"))
                continue
            if rule_config.severity is not None:
                found = [replace(issue, severity=rule_config.severity) for issue in found]
            outcome.issues.extend(found)
        return outcome

    def _aggregate(self, result: ScanResult, outcome: FileOutcome) -> None:
        if outcome.skipped is not None:
            skipped = outcome.skipped
            logger.warning("Skipped %s (%s): %s", skipped.path, skipped.reason, skipped.detail)
            result.add_skipped(skipped)
            return
        for error in outcome.errors:
            logger.warning("Rule failed on %s: %s", error.path, error.detail)
            result.add_skipped(error)
        logger.debug("Scanned %s: %d issues", outcome.path, len(outcome.issues))
        result.files_scanned += 1
        result.extend(outcome.issues)
