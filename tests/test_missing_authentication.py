from vibeguard.rules import FileContent
from vibeguard.rules.missing_authentication import MissingAuthenticationRule
from vibeguard.severity import Severity


def run_rule(lines, path="src/server.js"):
    return MissingAuthenticationRule().check(FileContent.from_text(path, "\n".join(lines)))


EXPRESS_APP = [
    "const express = require('express');",
    "const app = express();",
    "app.get('/users', (req, res) => {",
    "  res.json(db.listUsers());",
    "});",
]


def test_flags_unguarded_express_route():
    issues = run_rule(EXPRESS_APP)

    assert len(issues) == 1
    assert issues[0].message == "Potentially unprotected Express route: /users"
    assert issues[0].severity is Severity.HIGH
    assert issues[0].line == 3


def test_public_endpoints_are_exempt():
    lines = list(EXPRESS_APP)
    lines[2] = "app.get('/health', (req, res) => {"

    assert run_rule(lines) == []


def test_middleware_argument_suppresses():
    lines = list(EXPRESS_APP)
    lines[2] = "app.get('/users', requireAuth, (req, res) => {"

    assert run_rule(lines) == []


def test_protection_hint_nearby_suppresses():
    lines = ["const jwt = require('jsonwebtoken');"] + EXPRESS_APP

    assert run_rule(lines) == []


def test_laravel_route():
    issues = run_rule(["Route::post('/orders', [OrderController::class, 'store']);"], path="routes/web.php")

    assert [issue.message for issue in issues] == ["Potentially unprotected Laravel route: /orders"]


def test_decorator_routes_spanning_two_lines_are_not_matched():
    lines = ['@app.get("/items")', "def read_items():", "    return items"]

    assert run_rule(lines, path="app/main.py") == []
