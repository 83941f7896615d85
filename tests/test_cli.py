import json

import pytest

from vibeguard import __version__, cli


def make_project(root, vulnerable=True):
    src = root / "project" / "src"
    src.mkdir(parents=True)
    (src / "math.js").write_text("export function add(a, b) { return a + b; }\n", encoding="utf-8")
    if vulnerable:
        (src / "keys.js").write_text('const accessId = "AKIAZ3MQ4X7R2LKP9WQN";\n', encoding="utf-8")
    return root / "project"


def test_cli_emits_json_report(tmp_path, capsys):
    project = make_project(tmp_path)

    exit_code = cli.main(["scan", str(project), "--format", "json"])

    captured = capsys.readouterr()
    data = json.loads(captured.out)
    assert exit_code == 1
    assert set(data) == {"issues", "filesScanned", "issuesFound", "summary", "skipped"}
    assert data["filesScanned"] == 2
    assert data["issuesFound"] == 1
    assert data["summary"] == {"critical": 1, "high": 0, "medium": 0, "low": 0}
    assert data["issues"][0]["severity"] == "critical"
    assert data["issues"][0]["file"] == "project/src/keys.js"


def test_cli_passes_on_clean_project(tmp_path, capsys):
    project = make_project(tmp_path, vulnerable=False)

    exit_code = cli.main(["scan", str(project)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "No security issues found in 1 files" in captured.out
    assert "Status    : PASS" in captured.out


def test_bare_target_behaves_like_scan(tmp_path, capsys):
    project = make_project(tmp_path)

    exit_code = cli.main([str(project), "-v"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "exposed-secrets" in captured.out
    assert "Suggestion: Remove hardcoded secrets" in captured.out


def test_report_written_to_file(tmp_path, capsys):
    project = make_project(tmp_path)
    output_path = tmp_path / "reports" / "scan.json"

    exit_code = cli.main(["scan", str(project), "-f", "json", "--out", str(output_path)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Scan Summary" in captured.out
    assert json.loads(output_path.read_text(encoding="utf-8"))["issuesFound"] == 1


def test_config_file_disables_rule(tmp_path, capsys):
    project = make_project(tmp_path)
    config = tmp_path / "vibeguard.yml"
    config.write_text("rules:\n  exposed-secrets:\n    enabled: false\n", encoding="utf-8")

    exit_code = cli.main(["scan", str(project), "--config", str(config)])

    assert exit_code == 0
    assert "No security issues found" in capsys.readouterr().out


def test_excluded_path_is_not_scanned(tmp_path, capsys):
    project = make_project(tmp_path)

    exit_code = cli.main(["scan", str(project), "--exclude", "src/keys.js", "-f", "json"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["filesScanned"] == 1


def test_missing_target_exits_with_error(tmp_path, capsys):
    exit_code = cli.main(["scan", str(tmp_path / "missing")])

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_rules_command_lists_every_rule(capsys):
    exit_code = cli.main(["rules"])

    out = capsys.readouterr().out
    assert exit_code == 0
    for name in ("exposed-secrets", "directory-traversal", "missing-security-headers"):
        assert name in out


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out
