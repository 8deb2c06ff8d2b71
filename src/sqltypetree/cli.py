"""sqltypetree command line interface."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from sqltypetree import __version__
from sqltypetree.config import TypeTreeConfig, load_config_or_default
from sqltypetree.errors import DiagnosticRenderer, TypeParseError
from sqltypetree.formatter import describe, format_type_for_display, render_type
from sqltypetree.highlight import highlight_type
from sqltypetree.parser import MAX_DEPTH_LIMIT, TypeGrammarParser
from sqltypetree.type_nodes import TypeTree, is_compound_type, tree_to_dict


def _parse_or_exit(ctx: click.Context, text: str) -> TypeTree:
    """Parse ``text`` with the group's settings; render the failure and exit 1."""
    config: TypeTreeConfig = ctx.obj
    try:
        return TypeGrammarParser(text, max_depth=config.parser.max_depth).parse()
    except TypeParseError as e:
        renderer = DiagnosticRenderer(color=config.display.color)
        renderer.add_source("<input>", text)
        click.echo(renderer.render(e.diagnostic), err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="sqltypetree")
@click.option("--max-depth", type=click.IntRange(min=1, max=MAX_DEPTH_LIMIT), default=None,
              help="Maximum container nesting depth.")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.option("--verbose", "-v", is_flag=True, help="Log parser activity to stderr.")
@click.pass_context
def main(ctx: click.Context, max_depth: int | None, no_color: bool, verbose: bool) -> None:
    """Parse and inspect FULL_DATA_TYPE descriptors."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = load_config_or_default()
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    if max_depth is not None:
        config.parser.max_depth = max_depth
    if no_color:
        config.display.color = False
    ctx.obj = config


@main.command()
@click.argument("text")
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON.")
@click.pass_context
def parse(ctx: click.Context, text: str, as_json: bool) -> None:
    """Parse a descriptor and print its type tree."""
    tree = _parse_or_exit(ctx, text)
    if as_json:
        click.echo(json.dumps(tree_to_dict(tree), indent=2))
    else:
        _dump_tree(tree, 0)


@main.command()
@click.argument("text")
@click.pass_context
def label(ctx: click.Context, text: str) -> None:
    """Print the display label and description of a descriptor."""
    tree = _parse_or_exit(ctx, text)
    strip = ctx.obj.display.strip_max_length
    click.echo(format_type_for_display(tree, strip_max_length=strip))
    click.echo(describe(tree, strip_max_length=strip))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check(ctx: click.Context, file: str) -> None:
    """Parse every descriptor line of FILE; `--` lines are comments."""
    config: TypeTreeConfig = ctx.obj
    source = Path(file).read_text()
    renderer = DiagnosticRenderer(color=config.display.color)
    renderer.add_source(file, source)

    checked = failed = 0
    for lineno, line in enumerate(source.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        checked += 1
        parser = TypeGrammarParser(
            line, max_depth=config.parser.max_depth, name=file, first_line=lineno,
        )
        try:
            parser.parse()
        except TypeParseError as e:
            failed += 1
            click.echo(renderer.render(e.diagnostic), err=True)

    if failed:
        click.echo(f"{failed} of {checked} descriptor(s) failed to parse", err=True)
        raise SystemExit(1)
    click.echo(f"checked {checked} descriptor(s), no errors")


@main.command()
@click.argument("text")
@click.pass_context
def render(ctx: click.Context, text: str) -> None:
    """Re-render a descriptor in canonical form."""
    tree = _parse_or_exit(ctx, text)
    click.echo(highlight_type(render_type(tree), color=ctx.obj.display.color))


@main.command()
def lsp() -> None:
    """Start the descriptor language server."""
    from sqltypetree.lsp import main as lsp_main

    lsp_main()


def _dump_tree(node: TypeTree, depth: int) -> None:
    """Print a readable tree dump."""
    indent = "  " * depth
    header = f"{indent}{node.kind.value}"
    if node.field_name is not None:
        header = f"{indent}{node.field_name}: {node.kind.value}"
    click.echo(header)
    click.echo(f"{indent}  data_type: {node.data_type!r}")
    click.echo(f"{indent}  nullable: {node.is_field_nullable}")
    if node.comment is not None:
        click.echo(f"{indent}  comment: {node.comment!r}")
    if is_compound_type(node):
        click.echo(f"{indent}  members:")
        for member in node.members:
            _dump_tree(member, depth + 2)
