"""Language server for descriptor files (``*.ftype``).

Each non-blank line that does not start with ``--`` holds one
FULL_DATA_TYPE descriptor. Provides diagnostics, hover and document symbols
via stdio transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from sqltypetree import __version__
from sqltypetree.config import TypeTreeConfig, load_config_or_default
from sqltypetree.errors import Diagnostic, Severity, TypeParseError
from sqltypetree.formatter import describe, format_type_for_display
from sqltypetree.parser import TypeGrammarParser
from sqltypetree.source import Span
from sqltypetree.type_nodes import TypeKind, TypeTree, is_compound_type

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_SYMBOL_KIND_MAP = {
    TypeKind.SCALAR: lsp.SymbolKind.Field,
    TypeKind.ROW: lsp.SymbolKind.Struct,
    TypeKind.MAP: lsp.SymbolKind.Object,
    TypeKind.ARRAY: lsp.SymbolKind.Array,
    TypeKind.MULTISET: lsp.SymbolKind.Array,
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def _line_range(line: int, text: str) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=line, character=0),
        end=lsp.Position(line=line, character=len(text)),
    )


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    """Convert a Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.labels:
        span_range = span_to_range(d.labels[0].span)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="sqltypetree",
        code=d.code,
        message=f"[{d.code}] {d.message}",
    )


def is_descriptor_line(text: str) -> bool:
    stripped = text.strip()
    return bool(stripped) and not stripped.startswith("--")


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    trees: dict[int, TypeTree] = field(default_factory=dict)  # 0-indexed line -> tree
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


server = LanguageServer(
    "sqltypetree-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}
_config = TypeTreeConfig()


def _analyze(uri: str, source: str, config: TypeTreeConfig | None = None) -> DocumentState:
    """Parse every descriptor line, cache results, return state."""
    cfg = config or _config
    ds = DocumentState(source=source)
    for line_no, text in enumerate(source.splitlines()):
        if not is_descriptor_line(text):
            continue
        parser = TypeGrammarParser(
            text, max_depth=cfg.parser.max_depth, name=uri, first_line=line_no + 1,
        )
        try:
            ds.trees[line_no] = parser.parse()
        except TypeParseError as e:
            ds.diagnostics.append(_compile_diag(e.diagnostic))
        except Exception as e:
            logger.exception("internal error analyzing %s line %d", uri, line_no + 1)
            ds.diagnostics.append(lsp.Diagnostic(
                range=_line_range(line_no, text),
                severity=lsp.DiagnosticSeverity.Error, source="sqltypetree",
                message=f"[internal] parser error: {e}",
            ))
    _state[uri] = ds
    return ds


def hover_markdown(node: TypeTree, *, strip_max_length: bool = True) -> str:
    """Markdown summary of a parsed descriptor for hover display."""
    label = format_type_for_display(node, strip_max_length=strip_max_length)
    lines = [
        f"**{node.kind.value.lower()}** `{label}`",
        "",
        f"- nullable: {'yes' if node.is_field_nullable else 'no'}",
    ]
    if is_compound_type(node):
        if node.kind in (TypeKind.ARRAY, TypeKind.MULTISET):
            element = node.members[0]
            lines.append(f"- element: `{describe(element, strip_max_length=strip_max_length)}`")
        else:
            for member in node.members:
                entry = f"- `{member.field_name}`: `{describe(member, strip_max_length=strip_max_length)}`"
                if member.comment:
                    entry += f" ({member.comment})"
                lines.append(entry)
    return "\n".join(lines)


def _tree_symbol(
    node: TypeTree, name: str, rng: lsp.Range, strip_max_length: bool,
) -> lsp.DocumentSymbol:
    children: list[lsp.DocumentSymbol] = []
    if is_compound_type(node) and node.kind in (TypeKind.ROW, TypeKind.MAP):
        for member in node.members:
            children.append(
                _tree_symbol(member, member.field_name or "?", rng, strip_max_length)
            )
    return lsp.DocumentSymbol(
        name=name,
        detail=describe(node, strip_max_length=strip_max_length),
        kind=_SYMBOL_KIND_MAP[node.kind],
        range=rng,
        selection_range=rng,
        children=children or None,
    )


def document_symbols(ds: DocumentState, *, strip_max_length: bool = True) -> list[lsp.DocumentSymbol]:
    lines = ds.source.splitlines()
    symbols = []
    for line_no, node in sorted(ds.trees.items()):
        rng = _line_range(line_no, lines[line_no])
        label = format_type_for_display(node, strip_max_length=strip_max_length)
        symbols.append(_tree_symbol(node, label, rng, strip_max_length))
    return symbols


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take the last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    node = ds.trees.get(params.position.line)
    if node is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=hover_markdown(node, strip_max_length=_config.display.strip_max_length),
    ))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return []
    return document_symbols(ds, strip_max_length=_config.display.strip_max_length)


# ── Entry point ──────────────────────────────────────────────────


def main(config: TypeTreeConfig | None = None) -> None:
    """Start the language server on stdio."""
    global _config
    _config = config or load_config_or_default()
    server.start_io()
