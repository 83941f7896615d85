from vibeguard.rules import FileContent
from vibeguard.rules.directory_traversal import DirectoryTraversalRule
from vibeguard.severity import Severity


def run_rule(lines, path="src/upload.ts"):
    return DirectoryTraversalRule().check(FileContent.from_text(path, "\n".join(lines)))


def test_detects_file_operation_on_query_parameter():
    issues = run_rule(
        [
            "const filePath = req.query.path;",
            "fs.readFile(filePath, (err, data) => {",
            "  // Handle file",
            "});",
        ]
    )

    assert len(issues) == 1
    assert issues[0].rule == "directory-traversal"
    assert issues[0].severity is Severity.HIGH
    assert (issues[0].line, issues[0].column) == (2, 1)
    assert issues[0].code == "fs.readFile(filePath, (err, data) => {"


def test_resolved_path_is_not_flagged():
    issues = run_rule(
        [
            "const filePath = req.query.path;",
            "const sanitizedPath = path.resolve(baseDir, filePath);",
            "fs.readFile(sanitizedPath, (err, data) => {",
            "  // Handle file",
            "});",
        ]
    )

    assert issues == []


def test_detects_path_concatenation():
    issues = run_rule(
        [
            "const basePath = '/uploads/';",
            "const filePath = basePath + req.query.filename;",
            "fs.readFile(filePath, (err, data) => {",
            "  // Handle file",
            "});",
        ]
    )

    assert issues
    assert "Path concatenation" in issues[0].message
    assert issues[0].line == 2


def test_detects_template_literal_path():
    issues = run_rule(
        [
            "const basePath = '/uploads/';",
            "const filePath = `${basePath}${req.query.filename}`;",
            "fs.readFile(filePath, (err, data) => {",
            "  // Handle file",
            "});",
        ]
    )

    assert issues
    assert "Template literal path" in issues[0].message


def test_dot_dot_stripping_counts_as_sanitization():
    issues = run_rule(
        [
            "const filePath = req.query.path;",
            "const sanitizedPath = filePath.replace(/\\.\\./g, '').replace(/\\/+/g, '/');",
            "fs.readFile(sanitizedPath, (err, data) => {",
            "  // Handle file",
            "});",
        ]
    )

    assert issues == []


def test_test_files_are_ignored():
    issues = run_rule(
        [
            "// This is a test file with vulnerable code",
            "const filePath = req.query.path;",
            "fs.readFile(filePath, (err, data) => {",
            "});",
        ],
        path="src/__tests__/upload.test.ts",
    )

    assert issues == []


def test_import_statements_are_ignored():
    issues = run_rule(["import { readFile } from 'fs';", "import { resolve } from 'path';"])

    assert issues == []


def test_relative_module_path_is_not_a_traversal():
    issues = run_rule(["import {", "  loadConfig,", "} from '../shared/config';"])

    assert issues == []


def test_hardcoded_sequence_reports_every_occurrence():
    issues = run_rule(['const target = "../../etc/passwd";'], path="src/files.js")

    assert [issue.column for issue in issues] == [17, 20]
    assert all("Hardcoded directory traversal sequence" in issue.message for issue in issues)


def test_hardcoded_sequence_near_assertions_is_ignored():
    issues = run_rule(
        [
            'const target = "../../etc/passwd";',
            "expect(resolveTarget(target)).toBeUndefined();",
        ],
        path="src/files.js",
    )

    assert issues == []


def test_python_open_with_request_value():
    issues = run_rule(['    return open(request.args["name"]).read()'], path="app/views.py")

    assert len(issues) == 1
    assert issues[0].message.endswith("Python file open with user input")


def test_check_is_idempotent():
    content = FileContent.from_text("src/files.js", 'const target = "../../etc/passwd";')
    rule = DirectoryTraversalRule()

    assert rule.check(content) == rule.check(content)
