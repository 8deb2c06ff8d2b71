"""Tests for display labels and canonical rendering."""

from __future__ import annotations

import logging

from sqltypetree import parse
from sqltypetree.formatter import (
    describe,
    format_raw_or_label,
    format_sql_type,
    format_type_for_display,
    render_type,
)


class TestFormatSqlType:
    def test_strips_backticks(self):
        assert format_sql_type("ROW<`a` INT>") == "ROW<a INT>"

    def test_strips_max_length(self):
        assert format_sql_type("VARCHAR(2147483647)") == "VARCHAR"

    def test_keeps_max_length_when_asked(self):
        assert format_sql_type("VARCHAR(2147483647)", strip_max_length=False) == "VARCHAR(2147483647)"

    def test_keeps_other_lengths(self):
        assert format_sql_type("VARCHAR(255)") == "VARCHAR(255)"


class TestDisplayLabels:
    def test_scalar(self):
        assert format_type_for_display(parse("DECIMAL(10, 2)")) == "DECIMAL(10, 2)"

    def test_array_of_scalar(self):
        assert format_type_for_display(parse("ARRAY<VARCHAR(255)>")) == "VARCHAR(255)[]"

    def test_array_of_row(self):
        assert format_type_for_display(parse("ARRAY<ROW<`a` INT>>")) == "ROW[]"

    def test_nested_arrays(self):
        assert format_type_for_display(parse("ARRAY<ARRAY<STRING>>")) == "STRING[][]"

    def test_multiset(self):
        assert format_type_for_display(parse("MULTISET<INT>")) == "INT MULTISET"

    def test_map(self):
        assert format_type_for_display(parse("MAP<STRING, INT>")) == "MAP"

    def test_unbounded_string(self):
        assert format_type_for_display(parse("ARRAY<VARCHAR(2147483647)>")) == "VARCHAR[]"

    def test_describe(self):
        assert describe(parse("INT NOT NULL")) == "INT NOT NULL"
        assert describe(parse("ARRAY<INT> NOT NULL")) == "ARRAY NOT NULL"
        assert describe(parse("STRING")) == "STRING"


class TestRenderType:
    def test_scalar(self):
        assert render_type(parse("int not null")) == "INT NOT NULL"

    def test_row_quotes_names(self):
        text = "ROW<id INT NOT NULL, `na``me` STRING 'it''s'>"
        assert render_type(parse(text)) == "ROW<`id` INT NOT NULL, `na``me` STRING 'it''s'>"

    def test_map(self):
        assert render_type(parse("map<string,int> not null")) == "MAP<STRING, INT> NOT NULL"

    def test_collections(self):
        assert render_type(parse("MULTISET<ARRAY<INT NOT NULL>>")) == "MULTISET<ARRAY<INT NOT NULL>>"

    def test_reparses_to_equal_tree(self):
        tree = parse(
            "ROW<`before` ROW<`id` INT NOT NULL 'pk'>, "
            "`at` TIMESTAMP(3) WITH LOCAL TIME ZONE, `m` MAP<STRING, ARRAY<INT>> NOT NULL>"
        )
        assert parse(render_type(tree)) == tree


class TestRawOrLabel:
    def test_parses(self):
        assert format_raw_or_label("ARRAY<INT>") == "INT[]"

    def test_falls_back_to_raw(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sqltypetree.formatter"):
            assert format_raw_or_label("ARRAY<INT") == "ARRAY<INT"
        assert "could not parse type" in caplog.text

    def test_depth_limit_falls_back(self):
        assert format_raw_or_label("ARRAY<ARRAY<INT>>", max_depth=1) == "ARRAY<ARRAY<INT>>"
