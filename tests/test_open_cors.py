from vibeguard.rules import FileContent
from vibeguard.rules.open_cors import OpenCorsRule
from vibeguard.severity import Severity


def run_rule(lines, path="src/server.js"):
    return OpenCorsRule().check(FileContent.from_text(path, "\n".join(lines)))


def test_flags_cors_without_origin_restriction():
    issues = run_rule(["const app = express();", "app.use(cors());"])

    assert len(issues) == 1
    assert issues[0].message == "Permissive CORS configuration: CORS middleware used without origin restrictions"
    assert issues[0].severity is Severity.HIGH
    assert issues[0].line == 2


def test_flags_manual_wildcard_header():
    issues = run_rule(["res.header('Access-Control-Allow-Origin', '*');"])

    assert [issue.message for issue in issues] == [
        "Permissive CORS configuration: Manual CORS header set to wildcard"
    ]


def test_development_context_suppresses():
    lines = ["if (process.env.NODE_ENV === 'development') {", "  app.use(cors());", "}"]

    assert run_rule(lines) == []


def test_specific_origin_is_clean():
    assert run_rule(["app.use(cors({ origin: 'https://shop.acme.io' }));"]) == []
