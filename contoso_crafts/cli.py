"""CLI entry point for contoso_crafts."""

import argparse
from pathlib import Path

from rich.console import Console
from rich.table import Table

from contoso_crafts.config import load_config, resolve_web_root
from contoso_crafts.data.product_store import ProductStore
from contoso_crafts.pages.handlers import IndexPage
from contoso_crafts.utils.logging_setup import setup_logging_from_config

console = Console()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="contoso_crafts",
        description="Browse and manage the university catalog stored in products.json",
    )
    parser.add_argument("--config", type=Path, help="Path to config YAML file")
    parser.add_argument("--web-root", type=str, help="Site root holding data/ and images/")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- serve command ---
    serve_parser = subparsers.add_parser("serve", help="Run the web app")
    serve_parser.add_argument("--host", type=str, help="Interface to bind")
    serve_parser.add_argument("--port", type=int, help="Port to listen on")
    serve_parser.add_argument("--debug", action="store_true", default=None, help="Enable Flask debug mode")

    # --- list command ---
    list_parser = subparsers.add_parser("list", help="List catalog records")
    list_parser.add_argument("--search", type=str, help="Match title or description")
    list_parser.add_argument("--type", dest="type_filter", type=str, help="University type name (e.g. Public)")

    # --- rate command ---
    rate_parser = subparsers.add_parser("rate", help="Add a rating to a record")
    rate_parser.add_argument("product_id", type=str)
    rate_parser.add_argument("rating", type=int)

    # --- delete command ---
    delete_parser = subparsers.add_parser("delete", help="Delete a record and its image")
    delete_parser.add_argument("product_id", type=str)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    config = load_config(
        config_path=args.config,
        cli_overrides={"web_root": args.web_root},
    )
    setup_logging_from_config(config)

    if args.command == "serve":
        return cmd_serve(args, config)
    elif args.command == "list":
        return cmd_list(args, config)
    elif args.command == "rate":
        return cmd_rate(args, config)
    elif args.command == "delete":
        return cmd_delete(args, config)

    return 0


def cmd_serve(args, config: dict) -> int:
    """Run the Flask development server."""
    from contoso_crafts.web.app import create_app

    host = args.host or config.get("host", "127.0.0.1")
    port = args.port or int(config.get("port", 5000))
    debug = args.debug if args.debug is not None else str(config.get("debug", "false")).lower() == "true"

    app = create_app(config)
    app.run(host=host, port=port, debug=debug)
    return 0


def cmd_list(args, config: dict) -> int:
    """Print the catalog as a table."""
    store = ProductStore(resolve_web_root(config))
    products = IndexPage(store).get(search_term=args.search, type_filter=args.type_filter)

    if not products:
        console.print(f"No products found in {store.json_path}")
        return 0

    table = Table(title=f"Catalog ({len(products)})")
    table.add_column("Id", style="bold cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Location")
    table.add_column("Rating", justify="right")
    for product in products:
        average = product.average_rating
        table.add_row(
            product.id or "",
            product.title or "",
            product.type_of_university.label,
            product.location or "",
            f"{average:.1f} ({len(product.ratings)})" if average is not None else "-",
        )
    console.print(table)
    return 0


def cmd_rate(args, config: dict) -> int:
    """Append a rating to one record."""
    store = ProductStore(resolve_web_root(config))
    if not store.add_rating(args.product_id, args.rating):
        console.print(f"[red]No product with id {args.product_id!r}[/red]")
        return 1
    console.print(f"Rated {args.product_id} with {args.rating}")
    return 0


def cmd_delete(args, config: dict) -> int:
    """Delete one record (and its uploaded image)."""
    store = ProductStore(resolve_web_root(config))
    before = len(store.get_all())
    store.delete(args.product_id)
    if len(store.get_all()) == before:
        console.print(f"[red]No product with id {args.product_id!r}[/red]")
        return 1
    console.print(f"Deleted {args.product_id}")
    return 0
