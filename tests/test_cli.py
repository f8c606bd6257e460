"""Tests for the promptgen command line."""

import json

import pytest

from promptgen.cli import build_parser, main


@pytest.fixture
def package_file(tmp_path):
    document = {
        "package": {"namespace": "demo"},
        "sections": [
            {
                "id": "greeting",
                "is_entry_point": True,
                "content": {
                    "type": "composite",
                    "parts": [
                        {"type": "text", "value": "Hello, "},
                        {"type": "variable", "variable_id": "name"},
                        {"type": "section-ref", "section_id": "missing"},
                    ],
                },
            },
            {
                "id": "pick",
                "is_entry_point": True,
                "content": {
                    "type": "pick-one",
                    "candidates": [{"type": "text", "value": c} for c in "abcdef"],
                },
            },
        ],
    }
    path = tmp_path / "package.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestRenderCommand:
    """Tests for `promptgen render`."""

    def test_render_text(self, package_file, capsys):
        code = main(["render", "--package", str(package_file), "--entry", "greeting", "--vars", '{"name": "Ada"}'])
        captured = capsys.readouterr()
        assert code == 0
        assert captured.out.strip() == "Hello, Ada"
        assert "missing" in captured.err

    def test_vars_from_file(self, package_file, tmp_path, capsys):
        vars_file = tmp_path / "vars.json"
        vars_file.write_text('{"name": "Bo"}', encoding="utf-8")
        main(["render", "--package", str(package_file), "--entry", "greeting", "--vars", f"@{vars_file}"])
        assert capsys.readouterr().out.strip() == "Hello, Bo"

    def test_render_json(self, package_file, capsys):
        code = main(["render", "--package", str(package_file), "--entry", "pick", "--count", "3", "--seed", "4", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["success"] is True
        assert len(data["outputs"]) == 3

    def test_seeded_render_is_stable(self, package_file, capsys):
        args = ["render", "--package", str(package_file), "--entry", "pick", "--seed", "12"]
        main(args)
        first = capsys.readouterr().out
        main(args)
        assert capsys.readouterr().out == first

    def test_missing_entry_point_exits_1(self, package_file, capsys):
        code = main(["render", "--package", str(package_file), "--entry", "nope"])
        assert code == 1
        assert "FATAL_ERROR" in capsys.readouterr().err

    def test_missing_package_exits_1(self, tmp_path, capsys):
        code = main(["render", "--package", str(tmp_path / "none.json"), "--entry", "x"])
        assert code == 1
        assert "Cannot read package file" in capsys.readouterr().err


class TestPreviewSeparatorCommand:
    """Tests for `promptgen preview-separator`."""

    def test_builtin(self, capsys):
        assert main(["preview-separator", "--set", "or-list", "tea", "coffee", "juice"]) == 0
        assert capsys.readouterr().out.strip() == "tea, coffee, or juice"

    def test_rules_file(self, tmp_path, capsys):
        rules = tmp_path / "rules.json"
        rules.write_text(json.dumps({
            "single": {"template": "{item}"},
            "two": {"separator": " / ", "template": "{first}{separator}{second}"},
            "many": {"item_separator": " / ", "last_separator": " / ", "template": "{items}{last_separator}{last}"},
        }), encoding="utf-8")
        main(["preview-separator", "--rules", str(rules), "x", "y"])
        assert capsys.readouterr().out.strip() == "x / y"

    def test_set_or_rules_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["preview-separator", "x"])


class TestValidateCommand:
    """Tests for `promptgen validate`."""

    def test_valid_file(self, tmp_path, capsys):
        path = tmp_path / "content.json"
        path.write_text(json.dumps({"type": "text", "value": "x"}), encoding="utf-8")
        assert main(["validate", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "OK"

    def test_invalid_section_file(self, tmp_path, capsys):
        path = tmp_path / "section.json"
        path.write_text(json.dumps({"id": "s", "content": {"type": "variable"}}), encoding="utf-8")
        assert main(["validate", str(path)]) == 1
        assert "root: [MISSING_FIELD]" in capsys.readouterr().out
