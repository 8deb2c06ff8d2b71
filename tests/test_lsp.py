"""Tests for the descriptor language server helpers."""

from __future__ import annotations

from lsprotocol import types as lsp

from sqltypetree import parse
from sqltypetree.config import ParserConfig, TypeTreeConfig
from sqltypetree.errors import Severity
from sqltypetree.lsp import (
    _SEVERITY_MAP,
    DocumentState,
    _analyze,
    _state,
    did_close,
    document_symbols,
    hover_markdown,
    is_descriptor_line,
    span_to_range,
)
from sqltypetree.source import Span

URI = "file:///project/orders.ftype"

DOCUMENT = (
    "-- orders topic\n"
    "ROW<`id` BIGINT NOT NULL 'pk', `lines` ARRAY<ROW<`sku` STRING>>>\n"
    "\n"
    "MAP<INT>\n"
    "ARRAY<VARCHAR(2147483647)>\n"
)


class TestSpanConversion:
    def test_span_to_range_basic(self):
        r = span_to_range(Span("t.ftype", 1, 1, 1, 5))
        assert r.start.line == 0
        assert r.start.character == 0
        assert r.end.line == 0
        assert r.end.character == 5

    def test_span_to_range_later_line(self):
        r = span_to_range(Span("t.ftype", 4, 8, 4, 8))
        assert r.start.line == 3
        assert r.start.character == 7
        assert r.end.character == 8


class TestSeverityMap:
    def test_error_maps(self):
        assert _SEVERITY_MAP[Severity.ERROR] == lsp.DiagnosticSeverity.Error

    def test_note_maps(self):
        assert _SEVERITY_MAP[Severity.NOTE] == lsp.DiagnosticSeverity.Information


class TestAnalyze:
    def test_descriptor_lines(self):
        assert is_descriptor_line("INT")
        assert not is_descriptor_line("   ")
        assert not is_descriptor_line("  -- note")

    def test_parses_each_line(self):
        ds = _analyze(URI, DOCUMENT)
        assert isinstance(ds, DocumentState)
        assert sorted(ds.trees) == [1, 4]
        assert ds.trees[1].field("id").comment == "pk"
        assert _state[URI] is ds

    def test_diagnostic_position(self):
        ds = _analyze(URI, DOCUMENT)
        assert len(ds.diagnostics) == 1
        diag = ds.diagnostics[0]
        assert diag.code == "E101"
        assert diag.message.startswith("[E101]")
        assert diag.severity == lsp.DiagnosticSeverity.Error
        assert diag.range.start.line == 3
        assert diag.range.start.character == 7

    def test_clean_document(self):
        ds = _analyze(URI, "INT\nSTRING NOT NULL\n")
        assert ds.diagnostics == []
        assert len(ds.trees) == 2

    def test_close_drops_state(self):
        _analyze(URI, "INT\n")
        did_close(lsp.DidCloseTextDocumentParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
        ))
        assert URI not in _state

    def test_depth_limit_from_config(self):
        config = TypeTreeConfig(parser=ParserConfig(max_depth=1))
        ds = _analyze(URI, "ARRAY<ARRAY<INT>>\n", config)
        assert ds.trees == {}
        assert ds.diagnostics[0].code == "E105"


class TestHover:
    def test_row_summary(self):
        text = hover_markdown(parse("ROW<`id` BIGINT NOT NULL 'pk', `tags` ARRAY<STRING>>"))
        assert text.startswith("**row** `ROW`")
        assert "- nullable: yes" in text
        assert "- `id`: `BIGINT NOT NULL` (pk)" in text
        assert "- `tags`: `ARRAY`" in text

    def test_array_summary(self):
        text = hover_markdown(parse("ARRAY<VARCHAR(2147483647) NOT NULL> NOT NULL"))
        assert "`VARCHAR[]`" in text
        assert "- nullable: no" in text
        assert "- element: `VARCHAR NOT NULL`" in text

    def test_scalar_summary(self):
        text = hover_markdown(parse("INT"))
        assert text.splitlines()[0] == "**scalar** `INT`"
        assert "element" not in text


class TestDocumentSymbols:
    def test_symbols(self):
        ds = _analyze(URI, DOCUMENT)
        symbols = document_symbols(ds)
        assert [s.name for s in symbols] == ["ROW", "VARCHAR[]"]
        row = symbols[0]
        assert row.kind == lsp.SymbolKind.Struct
        assert row.range.start.line == 1
        assert [c.name for c in row.children] == ["id", "lines"]
        assert row.children[0].detail == "BIGINT NOT NULL"
        assert row.children[1].kind == lsp.SymbolKind.Array

    def test_array_has_no_children(self):
        ds = _analyze(URI, DOCUMENT)
        array = document_symbols(ds)[1]
        assert array.kind == lsp.SymbolKind.Array
        assert array.children is None

    def test_map_members(self):
        ds = _analyze(URI, "MAP<STRING, INT NOT NULL>\n")
        symbol = document_symbols(ds)[0]
        assert [c.name for c in symbol.children] == ["key", "value"]
        assert symbol.children[1].detail == "INT NOT NULL"
