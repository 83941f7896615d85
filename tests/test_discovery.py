from vibeguard.utils.code import discover_files, is_supported_file, matches_glob


def build_tree(root):
    files = {
        "src/app.js": "const a = 1;",
        "src/styles.css": "body {}",
        "node_modules/pkg/index.js": "module.exports = {};",
        "dist/bundle.js": "var a;",
        "build/out.js": "var b;",
        "lib/vendor.min.js": "var c;",
        "nested/deep/util.py": "x = 1",
        "image.png": "not really",
        ".env": "A=1",
        "requirements.txt": "flask==2.0.0",
        "Pipfile": "[packages]",
    }
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def relative_paths(root, **kwargs):
    return [rel for _, rel in discover_files(root, **kwargs)]


def test_discovery_applies_default_excludes_and_extensions(tmp_path):
    build_tree(tmp_path)

    assert relative_paths(tmp_path) == [
        ".env",
        "Pipfile",
        "requirements.txt",
        "nested/deep/util.py",
        "src/app.js",
    ]


def test_discovery_returns_absolute_locations(tmp_path):
    build_tree(tmp_path)

    for path, rel in discover_files(tmp_path):
        assert path == tmp_path / rel


def test_user_excludes_prune_directories(tmp_path):
    build_tree(tmp_path)

    assert "src/app.js" not in relative_paths(tmp_path, exclude=["src/**"])


def test_include_narrows_candidates(tmp_path):
    build_tree(tmp_path)

    assert relative_paths(tmp_path, include=["**/*.py"]) == ["nested/deep/util.py"]


def test_file_root_is_returned_unfiltered(tmp_path):
    path = tmp_path / "notes.css"
    path.write_text("x", encoding="utf-8")

    assert discover_files(path) == [(path, str(path))]


def test_matches_glob_leading_double_star_matches_top_level():
    assert matches_glob("dist/app.js", ["**/dist/**"])
    assert matches_glob("a/b/dist/app.js", ["**/dist/**"])
    assert matches_glob("app.min.js", ["**/*.min.js"])
    assert not matches_glob("distribution/app.js", ["**/dist/**"])


def test_supported_files():
    assert is_supported_file("src/App.TSX")
    assert is_supported_file(".env.production")
    assert is_supported_file("Gemfile")
    assert not is_supported_file("logo.png")
    assert not is_supported_file("README.md")
