"""featurescope CLI: browse sparse-autoencoder feature interpretations.

Usage:
    featurescope build-index [--csv <csv_path>] [--features-dir <dir>] [--output-dir <dir>]
    featurescope list [--page N] [--per-page N] [--sort <option>] [--search <text>] [--has-data]
    featurescope show <feature_id>
    featurescope serve [--host <host>] [--port <port>]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from featurescope.core.config import FeatureScopeConfig, get_config
from featurescope.core.types import SortOption


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="featurescope",
        description="featurescope: browse and search SAE feature interpretations",
    )
    parser.add_argument("--version", action="version", version="featurescope 0.1.0")
    parser.add_argument(
        "--data-dir", type=str, default=None, help="Directory holding the feature artifacts"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build-index ---
    build_parser = subparsers.add_parser(
        "build-index", help="Build the feature index from the feature CSV"
    )
    build_parser.add_argument("--csv", type=str, default=None, help="Path to feature CSV")
    build_parser.add_argument(
        "--features-dir", type=str, default=None, help="Directory of feature_<id>.json files"
    )
    build_parser.add_argument(
        "--output-dir", "-o", type=str, default=None, help="Where to write the index artifacts"
    )

    # --- list ---
    list_parser = subparsers.add_parser("list", help="List a page of features")
    list_parser.add_argument("--page", type=int, default=1, help="Page number (1-indexed)")
    list_parser.add_argument("--per-page", type=int, default=None, help="Features per page")
    list_parser.add_argument(
        "--sort",
        type=str,
        default=None,
        choices=[option.value for option in SortOption],
        help="Sort order",
    )
    list_parser.add_argument("--search", "-s", type=str, default=None, help="Interpretation text")
    list_parser.add_argument(
        "--has-data", action="store_true", help="Only features with detail data"
    )

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Show a single feature's detail")
    show_parser.add_argument("feature_id", type=int, help="Feature index")
    show_parser.add_argument("--top", type=int, default=10, help="Rows per detail table")

    # --- serve ---
    serve_parser = subparsers.add_parser("serve", help="Serve the feature API over HTTP")
    serve_parser.add_argument("--host", type=str, default=None, help="Server host")
    serve_parser.add_argument("--port", type=int, default=None, help="Server port")

    return parser


def _resolve_config(args: argparse.Namespace) -> FeatureScopeConfig:
    config = get_config()
    if args.data_dir:
        config = FeatureScopeConfig(
            data_dir=Path(args.data_dir),
            detail_filename=config.detail_filename,
            per_page=config.per_page,
            default_sort=config.default_sort,
            server_host=config.server_host,
            server_port=config.server_port,
            log_level=config.log_level,
        )
    return config


def cmd_build_index(args: argparse.Namespace, config: FeatureScopeConfig) -> int:
    """Build features-index.json and features-with-data.json from the CSV."""
    from featurescope.core.types import IndexBuildError
    from featurescope.data.builder import IndexBuilder

    builder = IndexBuilder(
        csv_path=args.csv,
        features_dir=args.features_dir,
        output_dir=args.output_dir,
        config=config,
    )
    try:
        report = builder.build()
    except IndexBuildError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Processed {report.total} features")
    print(f"Features with JSON data: {report.with_data}")
    print(f"Wrote {report.index_path}")
    print(f"Wrote {report.has_data_path} ({report.with_data} IDs)")
    return 0


def cmd_list(args: argparse.Namespace, config: FeatureScopeConfig) -> int:
    """Print one page of features as a table."""
    from featurescope.core.types import ArtifactParseError
    from featurescope.data.sources import FileSystemSource
    from featurescope.data.store import FeatureIndexStore
    from featurescope.query.engine import QueryEngine

    if args.per_page is not None and args.per_page < 1:
        print("Error: --per-page must be positive", file=sys.stderr)
        return 1

    store = FeatureIndexStore(FileSystemSource(config=config))
    engine = QueryEngine(store, config=config)
    try:
        page = engine.query(
            page=args.page,
            sort=args.sort,
            search=args.search,
            per_page=args.per_page,
            has_data_only=args.has_data,
        )
    except ArtifactParseError as exc:
        print(f"Error: could not read the feature index: {exc}", file=sys.stderr)
        return 1

    console = Console()
    if not page.data:
        console.print("No matching features found.")
        return 0

    table = Table(
        title=f"Features (page {page.current_page} of {page.total_pages}, {page.total} total)",
        expand=True,
    )
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Rank (ctrl)", style="yellow", justify="right")
    table.add_column("Rank (no ctrl)", style="yellow", justify="right")
    table.add_column("Interpretation", style="white")
    table.add_column("Data", justify="center")

    for feature in page.data:
        table.add_row(
            str(feature.feature_index),
            f"{feature.rank_control:g}",
            f"{feature.rank_nocontrol:g}",
            escape(feature.interpretation),
            "[green]yes[/green]" if feature.has_data else "[dim]no[/dim]",
        )

    console.print(table)
    nav = []
    if page.has_prev:
        nav.append(f"--page {page.current_page - 1} for previous")
    if page.has_next:
        nav.append(f"--page {page.current_page + 1} for next")
    if nav:
        console.print("[dim]" + "; ".join(nav) + "[/dim]")
    return 0


def cmd_show(args: argparse.Namespace, config: FeatureScopeConfig) -> int:
    """Print a feature's summary and detail record."""
    from featurescope.core.types import ArtifactParseError
    from featurescope.data.detail import FeatureDetailLoader
    from featurescope.data.sources import FileSystemSource
    from featurescope.data.store import FeatureIndexStore
    from featurescope.display import format_ngram, format_percent, format_token, parse_context

    source = FileSystemSource(config=config)
    try:
        summary = FeatureIndexStore(source).lookup_by_index(args.feature_id)
        detail = FeatureDetailLoader(source).load_detail(args.feature_id)
    except ArtifactParseError as exc:
        print(f"Error: could not read feature {args.feature_id}: {exc}", file=sys.stderr)
        return 1

    if summary is None and detail is None:
        print(f"Error: Feature {args.feature_id} not found", file=sys.stderr)
        return 1

    console = Console()
    console.rule(f"[bold]Feature {args.feature_id}[/bold]")
    if summary is not None:
        console.print(f"[bold]Interpretation:[/bold] {escape(summary.interpretation)}")
        console.print(
            f"Rank (control): {summary.rank_control:g} | "
            f"Rank (no control): {summary.rank_nocontrol:g}"
        )
        if summary.verify_status:
            console.print(f"Verify status: {escape(summary.verify_status)}")
        if summary.paralinguistic:
            console.print(f"Paralinguistic: {escape(summary.paralinguistic)}")

    if detail is None:
        console.print("[dim]No detail data for this feature.[/dim]")
        return 0

    stats = detail.stats
    console.print(
        f"Activation rate: {stats.activation_rate:.4f} | "
        f"mean when active: {stats.mean_when_active:.3f} | "
        f"max: {stats.max_activation:.3f} | std: {stats.std_when_active:.3f}"
    )

    tokens = Table(title="Top tokens")
    tokens.add_column("Token", style="cyan")
    tokens.add_column("Count", justify="right")
    tokens.add_column("Mean act.", justify="right")
    for entry in detail.top_tokens[: args.top]:
        formatted = format_token(entry.token)
        style = "magenta" if formatted.is_special else "cyan"
        tokens.add_row(
            f"[{style}]{escape(formatted.display)}[/{style}]",
            str(entry.count),
            f"{entry.mean_activation:.3f}",
        )
    console.print(tokens)

    activations = Table(title="Top activations")
    activations.add_column("Activation", justify="right", style="yellow")
    activations.add_column("Context")
    for act in detail.top_activations[: args.top]:
        span = parse_context(act.context)
        context = (
            f"{escape(span.before)}[bold red]{escape(span.token)}[/bold red]{escape(span.after)}"
        )
        activations.add_row(f"{act.activation:.3f}", context)
    console.print(activations)

    for size, entries in detail.ngram_analysis.by_size().items():
        if not entries:
            continue
        ngrams = Table(title=f"Top {size}-grams")
        ngrams.add_column("N-gram", style="cyan")
        ngrams.add_column("Count", justify="right")
        ngrams.add_column("Percent", justify="right")
        for entry in entries[: args.top]:
            ngrams.add_row(
                escape(format_ngram(entry.ngram_str)),
                str(entry.count),
                format_percent(entry.percent),
            )
        console.print(ngrams)

    if detail.coactivation:
        coact = Table(title="Co-activated features")
        coact.add_column("Feature", style="cyan", justify="right")
        coact.add_column("Count", justify="right")
        coact.add_column("Percent", justify="right")
        for entry in detail.coactivation[: args.top]:
            coact.add_row(str(entry.feature_index), str(entry.count), format_percent(entry.percent))
        console.print(coact)

    if detail.position_distribution:
        positions = Table(title="Position distribution")
        positions.add_column("Range")
        positions.add_column("Label")
        positions.add_column("Count", justify="right")
        positions.add_column("Percent", justify="right")
        for bin_ in detail.position_distribution:
            positions.add_row(
                escape(bin_.range), escape(bin_.label), str(bin_.count), format_percent(bin_.percent)
            )
        console.print(positions)

    return 0


def cmd_serve(args: argparse.Namespace, config: FeatureScopeConfig) -> int:
    """Serve the feature API."""
    from featurescope.api.serving import start_server
    from featurescope.data.detail import FeatureDetailLoader
    from featurescope.data.sources import FileSystemSource
    from featurescope.data.store import FeatureIndexStore

    source = FileSystemSource(config=config)
    store = FeatureIndexStore(source)
    host = args.host or config.server_host
    port = args.port or config.server_port

    print(f"Starting server on {host}:{port}")
    try:
        start_server(store, FeatureDetailLoader(source), host=host, port=port)
    except ImportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    config = _resolve_config(args)
    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    dispatch = {
        "build-index": cmd_build_index,
        "list": cmd_list,
        "show": cmd_show,
        "serve": cmd_serve,
    }

    if args.command in dispatch:
        return dispatch[args.command](args, config)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
