from vibeguard.rules import FileContent
from vibeguard.rules.insecure_dependencies import (
    InsecureDependenciesRule,
    compare_versions,
    is_in_dev_dependencies,
    is_vulnerable_version,
)
from vibeguard.severity import Severity


def run_rule(lines, path="package.json"):
    return InsecureDependenciesRule().check(FileContent.from_text(path, "\n".join(lines)))


def package_json(version):
    return [
        "{",
        '  "name": "app",',
        '  "dependencies": {',
        f'    "lodash": "{version}"',
        "  }",
        "}",
    ]


def test_flags_vulnerable_lodash():
    issues = run_rule(package_json("4.17.15"))

    assert len(issues) == 1
    assert issues[0].message == "Vulnerable dependency: lodash@4.17.15"
    assert issues[0].severity is Severity.MEDIUM
    assert (issues[0].line, issues[0].column) == (4, 5)
    assert issues[0].suggestion.startswith("Prototype pollution vulnerabilities.")


def test_patched_lodash_is_clean():
    assert run_rule(package_json("4.17.21")) == []


def test_deprecated_package_matches_any_version():
    issues = run_rule(['  "moment": "2.29.4"'])

    assert [issue.message for issue in issues] == ["Vulnerable dependency: moment@2.29.4"]


def test_requirements_pins():
    issues = run_rule(["django==3.2.0", "requests==2.19.0", "flask==2.3.2"], path="requirements.txt")

    assert [issue.message for issue in issues] == [
        "Vulnerable dependency: django@3.2.0",
        "Vulnerable dependency: requests@2.19.0",
    ]


def test_typosquat_and_wildcard_in_pipfile():
    issues = run_rule(["[packages]", 'lodahs = "*"'], path="Pipfile")

    messages = sorted(issue.message for issue in issues)
    assert messages == [
        "Suspicious dependency pattern: Overly permissive version range",
        "Suspicious dependency pattern: Potential typosquatting",
    ]


def test_single_line_dev_dependencies_are_suppressed():
    issues = run_rule(['{ "devDependencies": { "jest": "29.0.0" } }'])

    assert issues == []


def test_non_manifest_files_are_ignored():
    assert run_rule(package_json("4.17.15"), path="src/data.json") == []


def test_compare_versions():
    assert compare_versions("4.17.15", "4.17.21") == -1
    assert compare_versions("1.2", "1.2.0") == 0
    assert compare_versions("v2.0.0-beta", "2.0.0") == 0
    assert compare_versions("10.0.0", "9.9.9") == 1


def test_is_vulnerable_version():
    assert is_vulnerable_version("3.0.0", ("*",))
    assert is_vulnerable_version("4.17.20", ("<4.17.21",))
    assert not is_vulnerable_version("4.17.21", ("<4.17.21",))
    assert is_vulnerable_version("1.0.0", ("1.0.0",))


def test_dev_dependency_section_lookup():
    lines = [
        "{",
        '  "scripts": {',
        '    "start": "node index.js"',
        "  },",
        '  "dependencies": {',
        '    "express": "4.18.0"',
        "  },",
        '  "devDependencies": {',
        '    "jest": "29.0.0"',
        "  }",
        "}",
    ]

    assert is_in_dev_dependencies(lines, 9)
    assert not is_in_dev_dependencies(lines, 6)
    assert not is_in_dev_dependencies(lines, 3)
