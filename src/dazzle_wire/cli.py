"""
dazzle-wire CLI.

Commands:
- inspect: Show a component's properties, casts, query bindings and computed values
- query:   Print the query string a component produces for given values
- serve:   Serve a component registry with uvicorn
"""

from __future__ import annotations

import importlib
import json
from typing import Any

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from dazzle_wire import __version__
from dazzle_wire.component import Component
from dazzle_wire.config import WireConfig
from dazzle_wire.errors import WireError
from dazzle_wire.query_string import encode_query
from dazzle_wire.registry import ComponentRegistry

app = typer.Typer(help="Server-driven component state tools", no_args_is_help=True)
console = Console()


def _import_object(target: str) -> Any:
    """Import ``package.module:attribute``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not attr:
        typer.echo(f"Expected 'module:attribute', got '{target}'", err=True)
        raise typer.Exit(code=1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        typer.echo(f"Cannot import {module_name}: {e}", err=True)
        raise typer.Exit(code=1) from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        typer.echo(f"{module_name} has no attribute '{attr}'", err=True)
        raise typer.Exit(code=1) from e


def _load_component(target: str) -> type[Component]:
    obj = _import_object(target)
    if not (isinstance(obj, type) and issubclass(obj, Component)):
        typer.echo(f"{target} is not a Component subclass", err=True)
        raise typer.Exit(code=1)
    return obj


def _parse_assignment(assignment: str) -> tuple[str, Any]:
    """Parse ``name=value``; the value is read as JSON when it parses, else as a string."""
    name, sep, raw = assignment.partition("=")
    if not sep or not name:
        typer.echo(f"Expected name=value, got '{assignment}'", err=True)
        raise typer.Exit(code=1)
    try:
        return name, json.loads(raw)
    except json.JSONDecodeError:
        return name, raw


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dazzle-wire version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    """dazzle-wire command line."""


@app.command("inspect")
def inspect_command(
    target: str = typer.Argument(..., help="Component class as module:Class"),
) -> None:
    """Show the declared state of a component."""
    component_cls = _load_component(target)
    spec = component_cls.spec

    console.print(f"[bold cyan]{spec.name}[/bold cyan] ({component_cls.__qualname__})")

    props = Table(title="Properties", box=box.SIMPLE)
    props.add_column("Name", style="bold")
    props.add_column("Kind")
    props.add_column("Initial")
    props.add_column("Cast")
    props.add_column("Flags")
    for prop in spec.properties:
        flags = [f for f, on in (("locked", prop.locked), ("nullable", prop.nullable)) if on]
        props.add_row(
            prop.name,
            prop.kind.value,
            repr(prop.initial),
            repr(prop.cast) if prop.cast is not None else "",
            ", ".join(flags),
        )
    console.print(props)

    if spec.query_string:
        bindings = Table(title="Query string", box=box.SIMPLE)
        bindings.add_column("Property", style="bold")
        bindings.add_column("URL key")
        bindings.add_column("Except")
        bindings.add_column("History")
        for binding in spec.query_string:
            bindings.add_row(
                binding.field,
                binding.key,
                repr(binding.except_value) if binding.has_except else "",
                "push" if binding.history else "replace",
            )
        console.print(bindings)

    if spec.computed:
        computed_table = Table(title="Computed", box=box.SIMPLE)
        computed_table.add_column("Name", style="bold")
        computed_table.add_column("Cache")
        computed_table.add_column("Description")
        for computed_spec in spec.computed:
            cache = "request"
            if computed_spec.persist:
                cache = f"persistent (ttl={computed_spec.ttl or 'default'})"
            computed_table.add_row(computed_spec.name, cache, computed_spec.description or "")
        console.print(computed_table)


@app.command("query")
def query_command(
    target: str = typer.Argument(..., help="Component class as module:Class"),
    assignments: list[str] = typer.Argument(None, help="Property values as name=value"),
) -> None:
    """Print the query string for the given property values."""
    component_cls = _load_component(target)
    try:
        component = component_cls()
        component.update(dict(_parse_assignment(a) for a in assignments or []))
        encoded = encode_query(component.state.query())
    except WireError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(f"?{encoded}" if encoded else "(empty)")


@app.command("serve")
def serve_command(
    target: str = typer.Argument(..., help="ComponentRegistry as module:attribute"),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
) -> None:
    """Serve the wire endpoints for a component registry."""
    import uvicorn

    from dazzle_wire.runtime.app import create_app
    from dazzle_wire.runtime.logging import setup_logging

    registry = _import_object(target)
    if not isinstance(registry, ComponentRegistry):
        typer.echo(f"{target} is not a ComponentRegistry", err=True)
        raise typer.Exit(code=1)

    config = WireConfig.from_env()
    setup_logging(config.log_dir, config.log_level)
    typer.echo(f"Serving {len(registry)} component(s) at http://{host}:{port}{config.prefix}")
    uvicorn.run(create_app(registry, config), host=host, port=port)


if __name__ == "__main__":
    app()
