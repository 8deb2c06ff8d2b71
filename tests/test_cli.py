"""Tests for the sqltypetree CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from sqltypetree.cli import main


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def descriptor_file(tmp_path):
    path = tmp_path / "types.ftype"
    path.write_text(
        "-- orders topic\n"
        "ROW<`id` BIGINT NOT NULL, `items` ARRAY<ROW<`sku` STRING>>>\n"
        "\n"
        "MAP<STRING, INT>\n"
    )
    return path


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("parse", "label", "check", "render", "lsp"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestParseCommand:
    def test_dump(self, runner):
        result = runner.invoke(main, ["parse", "ROW<`id` INT NOT NULL 'pk'>"])
        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "ROW"
        assert "id: SCALAR" in result.output
        assert "data_type: 'INT'" in result.output
        assert "nullable: False" in result.output
        assert "comment: 'pk'" in result.output

    def test_json(self, runner):
        result = runner.invoke(main, ["parse", "--json", "ARRAY<INT NOT NULL>"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["kind"] == "ARRAY"
        assert data["members"][0]["isFieldNullable"] is False

    def test_failure(self, runner):
        result = runner.invoke(main, ["--no-color", "parse", "ARRAY<INT"])
        assert result.exit_code == 1
        assert "error[E101]" in result.output
        assert "ARRAY<INT" in result.output

    def test_max_depth_option(self, runner):
        result = runner.invoke(main, ["--no-color", "--max-depth", "1", "parse", "ARRAY<ARRAY<INT>>"])
        assert result.exit_code == 1
        assert "error[E105]" in result.output

    def test_max_depth_option_is_capped(self, runner):
        deep = "ROW<a " * 400 + "INT" + ">" * 400
        result = runner.invoke(main, ["--max-depth", "500", "parse", deep])
        assert result.exit_code == 2
        assert "--max-depth" in result.output
        assert not isinstance(result.exception, RecursionError)

    def test_deep_descriptor_reports_nesting_error(self, runner):
        deep = "ROW<a " * 400 + "INT" + ">" * 400
        result = runner.invoke(main, ["--no-color", "--max-depth", "200", "parse", deep])
        assert result.exit_code == 1
        assert "error[E105]" in result.output

    def test_max_depth_from_config(self, runner, tmp_path):
        (tmp_path / "sqltypetree.toml").write_text("[parser]\nmax_depth = 1\n")
        result = runner.invoke(main, ["--no-color", "parse", "ARRAY<ARRAY<INT>>"])
        assert result.exit_code == 1
        assert "E105" in result.output

    def test_invalid_config(self, runner, tmp_path):
        (tmp_path / "sqltypetree.toml").write_text("[parser]\nmax_depth = 0\n")
        result = runner.invoke(main, ["parse", "INT"])
        assert result.exit_code == 1
        assert "max_depth" in result.output


class TestLabelCommand:
    def test_label(self, runner):
        result = runner.invoke(main, ["label", "ARRAY<VARCHAR(2147483647)> NOT NULL"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["VARCHAR[]", "ARRAY NOT NULL"]

    def test_label_keeps_max_length_from_config(self, runner, tmp_path):
        (tmp_path / "sqltypetree.toml").write_text("[display]\nstrip_max_length = false\n")
        result = runner.invoke(main, ["label", "VARCHAR(2147483647)"])
        assert result.output.splitlines()[0] == "VARCHAR(2147483647)"


class TestCheckCommand:
    def test_all_valid(self, runner, descriptor_file):
        result = runner.invoke(main, ["check", str(descriptor_file)])
        assert result.exit_code == 0
        assert "checked 2 descriptor(s), no errors" in result.output

    def test_reports_every_failure(self, runner, tmp_path):
        path = tmp_path / "broken.ftype"
        path.write_text("INT\nARRAY<INT\n-- MAP<INT>\nROW<`a INT>\n")
        result = runner.invoke(main, ["--no-color", "check", str(path)])
        assert result.exit_code == 1
        assert "error[E101]" in result.output
        assert "error[E102]" in result.output
        assert f"{path}:2:" in result.output
        assert f"{path}:4:" in result.output
        assert "2 of 3 descriptor(s) failed to parse" in result.output

    def test_missing_file(self, runner):
        result = runner.invoke(main, ["check", "nope.ftype"])
        assert result.exit_code != 0


class TestRenderCommand:
    def test_plain(self, runner):
        result = runner.invoke(main, ["--no-color", "render", "row<id int not null, tags array<string>>"])
        assert result.exit_code == 0
        assert result.output.strip() == "ROW<`id` INT NOT NULL, `tags` ARRAY<STRING>>"

    def test_highlighted(self, runner):
        result = runner.invoke(main, ["render", "ARRAY<INT>"])
        assert result.exit_code == 0
        assert "\033[" in result.output
