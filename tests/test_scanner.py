import threading

import pytest

from vibeguard.config import RuleConfig, VibeGuardConfig
from vibeguard.errors import ConfigurationError, FatalSingleFileReadError, PathNotFound, UnreadableFile
from vibeguard.rules.directory_traversal import DirectoryTraversalRule
from vibeguard.rules.exposed_secrets import ExposedSecretsRule
from vibeguard.scanner import Scanner, load_rules
from vibeguard.severity import Severity

AWS_KEY_LINE = 'const accessId = "AKIAZ3MQ4X7R2LKP9WQN";\n'


class ExplodingRule:
    name = "exploding"
    description = "Always fails"
    severity = Severity.LOW

    def check(self, file):
        raise RuntimeError("boom")


def write(root, rel, text):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def build_project(tmp_path):
    root = tmp_path / "project"
    write(root, "src/keys.js", AWS_KEY_LINE)
    write(root, "src/server.js", "const app = express();\napp.use(cors());\n")
    write(root, "src/math.js", "export function add(a, b) { return a + b; }\n")
    write(root, "legacy/old.js", AWS_KEY_LINE)
    write(root, "package.json", '{\n  "dependencies": {\n    "lodash": "4.17.15"\n  }\n}\n')
    return root


def test_load_rules_registers_ten_distinct_rules():
    names = [rule.name for rule in load_rules()]

    assert len(names) == 10
    assert len(set(names)) == 10
    assert names[0] == "exposed-secrets"


def test_directory_scan_summary_matches_issues(tmp_path):
    root = build_project(tmp_path)

    result = Scanner(workers=4).scan(root)

    assert result.files_scanned == 5
    assert result.summary.total == result.issues_found == len(result.issues)
    assert result.summary.critical == 2
    assert {issue.file for issue in result.issues} >= {
        "project/src/keys.js",
        "project/legacy/old.js",
        "project/package.json",
    }


def test_issue_order_follows_discovery_order(tmp_path):
    root = build_project(tmp_path)

    first = Scanner(workers=4).scan(root)
    second = Scanner(workers=1).scan(root)

    assert first.to_dict() == second.to_dict()
    order = ["project/package.json", "project/legacy/old.js", "project/src/keys.js", "project/src/server.js"]
    files = [issue.file for issue in first.issues]
    assert files == sorted(files, key=order.index)


def test_directory_scan_paths_keep_the_root_name(tmp_path):
    write(tmp_path / "__tests__", "upload.js", "const filePath = req.query.path;\nfs.readFile(filePath, cb);\n")
    write(tmp_path / "app", "upload.js", "const filePath = req.query.path;\nfs.readFile(filePath, cb);\n")

    in_tests = Scanner(rules=[DirectoryTraversalRule()]).scan(tmp_path / "__tests__")
    in_app = Scanner(rules=[DirectoryTraversalRule()]).scan(tmp_path / "app")

    assert in_tests.files_scanned == 1
    assert in_tests.issues == []
    assert in_app.issues_found >= 1
    assert {issue.file for issue in in_app.issues} == {"app/upload.js"}


def test_single_file_scan_uses_given_path(tmp_path):
    path = write(tmp_path, "keys.js", AWS_KEY_LINE)

    result = Scanner(rules=[ExposedSecretsRule()]).scan(path)

    assert result.files_scanned == 1
    assert result.issues[0].file == str(path)


def test_single_binary_file_is_skipped(tmp_path):
    path = tmp_path / "blob.js"
    path.write_bytes(b"\x00\x01\x02")

    result = Scanner().scan(path)

    assert result.files_scanned == 0
    assert [(s.path, s.reason) for s in result.skipped] == [(str(path), "binary")]


def test_single_unreadable_file_is_fatal(tmp_path, monkeypatch):
    path = write(tmp_path, "locked.js", "const a = 1;\n")

    def deny(target, display_path=None):
        raise UnreadableFile(str(target), "Permission denied")

    monkeypatch.setattr("vibeguard.scanner.load_file", deny)

    with pytest.raises(FatalSingleFileReadError) as excinfo:
        Scanner().scan(path)
    assert "Permission denied" in str(excinfo.value)


def test_non_utf8_file_is_still_scanned(tmp_path):
    root = tmp_path / "legacy"
    root.mkdir()
    (root / "app.php").write_bytes(b"<?php\n// caf\xe9\n$f = fopen($_GET['f'], 'r');\n")

    result = Scanner(rules=[DirectoryTraversalRule()]).scan(root)

    assert result.files_scanned == 1
    assert result.skipped == []
    assert [(issue.file, issue.line) for issue in result.issues] == [("legacy/app.php", 3)]
    assert "fopen" in result.issues[0].message


def test_directory_scan_records_skipped_files_and_continues(tmp_path):
    root = tmp_path / "project"
    write(root, "src/keys.js", AWS_KEY_LINE)
    (root / "src" / "blob.js").write_bytes(b"\x00\x01\x02")

    result = Scanner(rules=[ExposedSecretsRule()]).scan(root)

    assert result.files_scanned == 1
    assert result.issues_found == 1
    assert [(s.path, s.reason) for s in result.skipped] == [("project/src/blob.js", "binary")]


def test_missing_target_raises(tmp_path):
    with pytest.raises(PathNotFound):
        Scanner().scan(tmp_path / "missing")


def test_cancelled_scan_returns_partial_result(tmp_path):
    root = build_project(tmp_path)
    cancel = threading.Event()
    cancel.set()

    result = Scanner().scan(root, cancel=cancel)

    assert result.files_scanned == 0
    assert result.issues == []


def test_rule_failure_is_recorded_and_other_rules_still_report(tmp_path):
    root = tmp_path / "project"
    write(root, "src/keys.js", AWS_KEY_LINE)

    result = Scanner(rules=[ExplodingRule(), ExposedSecretsRule()]).scan(root)

    assert result.files_scanned == 1
    assert [issue.rule for issue in result.issues] == ["exposed-secrets"]
    assert [(s.path, s.reason) for s in result.skipped] == [("project/src/keys.js", "rule_error")]
    assert "boom" in result.skipped[0].detail


def test_config_disables_rule(tmp_path):
    root = build_project(tmp_path)
    config = VibeGuardConfig(rules={"exposed-secrets": RuleConfig(enabled=False)})

    scanner = Scanner(config=config)
    result = scanner.scan(root)

    assert scanner.get_rule("exposed-secrets") is None
    assert scanner.get_rule("open-cors") is not None
    assert all(issue.rule != "exposed-secrets" for issue in result.issues)


def test_config_overrides_severity_and_excludes_paths(tmp_path):
    root = build_project(tmp_path)
    config = VibeGuardConfig(
        rules={"exposed-secrets": RuleConfig(severity=Severity.LOW, exclude=("legacy/**",))},
    )

    result = Scanner(rules=[ExposedSecretsRule()], config=config).scan(root)

    assert [issue.file for issue in result.issues] == ["project/src/keys.js"]
    assert result.issues[0].severity is Severity.LOW
    assert result.summary.low == 1
    assert result.summary.critical == 0


def test_global_excludes_from_config_and_arguments(tmp_path):
    root = build_project(tmp_path)
    config = VibeGuardConfig(exclude=("legacy/**",))

    result = Scanner(rules=[ExposedSecretsRule()], config=config).scan(root, exclude=["src/keys.js"])

    assert result.issues == []
    assert result.files_scanned == 3


def test_invalid_worker_count():
    with pytest.raises(ConfigurationError):
        Scanner(workers=0)
