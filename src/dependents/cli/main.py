from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from dependents.__version__ import __version__
from dependents.config import settings
from dependents.core.errors import DependentsError, ResultFileError, UnauthorizedError
from dependents.core.models import ReportConfig
from dependents.core.selection import parse_excludes
from dependents.services.aggregator import accumulate_results
from dependents.services.dependents_service import DependentsService
from dependents.io.output_writer import read_results_json, write_results_json
from dependents.io.render import build_rows, format_traffic, render_ci, render_json, render_md

from dependents.adapters.couchdb.couchdb_adapter import CouchDBAdapter
from dependents.adapters.http_client import make_client
from dependents.adapters.registry.npm_registry_adapter import NpmRegistryAdapter


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="npm-dependents",
        description="Dependents of an npm package ranked by downloads. "
        "Use 'npm-dependents format <file>' to re-render a saved result file.",
    )
    p.add_argument("pkg", nargs="?", help="Package name, optionally name@version")
    p.add_argument("--number", "-n", type=int, default=None, help="Number of dependents printed to stdout (default: all)")
    p.add_argument("--file", "-f", help="Write results as json to the specified file")
    p.add_argument("--output", "-o", default="ci", choices=["ci", "md", "json"], help="Output format")
    p.add_argument("--exclude", "-e", help="Exclude packages that include the specified string (can be comma separated)")
    p.add_argument("--dev", "-D", action="store_true", help="Use devDependencies")
    p.add_argument("--list", "-l", action="store_true", help="Only prints dependents as list to pipe into other commands")
    p.add_argument("--recursive", "-r", type=int, default=settings.DEFAULT_RECURSIVE_WIDTH, help="Gets x dependents recursively and prints sub tables")
    p.add_argument("--depths", "-d", type=int, default=settings.DEFAULT_DEPTHS, help="Number of recursion steps (0=no recursion)")
    p.add_argument("--accumulate", "-a", action="store_true", help="Accumulate recursive stats into topmost dependent")
    p.add_argument("--quiet", "-q", action="store_true", help="Suppress package info and progress output")
    p.add_argument("--user", "-u", default=settings.COUCHDB_USER, help="CouchDB user")
    p.add_argument("--password", "-p", default=settings.COUCHDB_PASSWORD, help="CouchDB password")
    p.add_argument("--url", "-U", default=settings.COUCHDB_URL, help="CouchDB URL (or DEPENDENTS_COUCHDB_URL)")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def build_format_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="npm-dependents format", description="Re-render a saved result file")
    p.add_argument("file", nargs="?", help="JSON file written with --file")
    p.add_argument("--format", "-f", default="ci", choices=["md", "ci"], help="Output format")
    p.add_argument("--number", "-n", type=int, default=None, help="Number of dependents to display")
    p.add_argument("--exclude", "-e", help="Exclude packages that include the specified string (can be comma separated)")
    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # request lines from httpx are noise below debug
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _make_progress_reporter(cfg: ReportConfig, console: Console, err_console: Console):
    status = None

    def _stop_status() -> None:
        nonlocal status
        if status is not None:
            status.stop()
            status = None

    def progress(event: str, data: dict) -> None:
        nonlocal status
        if event == "skip":
            # unresolvable subtree: always reported, never fatal
            err_console.print(f"[red]Failed to fetch package info for {escape(data['name'])}[/red]")
            return
        if event == "error":
            _stop_status()
            err_console.print(f"[red]{escape(str(data.get('message', 'Unknown error')))}[/red]")
            return
        if cfg.quiet:
            return
        if event == "package":
            pkg = data["package"]
            console.print("[bold cyan]Package Info:[/]")
            console.print(
                f"[green]Name:[/] [yellow]{escape(pkg.name)}[/] ([magenta]{escape(pkg.version)}[/])\n"
                f"[green]Homepage:[/] [blue]{escape(pkg.homepage or 'No homepage found')}[/]\n"
                f"[green]Unpacked Size:[/] [yellow]{format_traffic(pkg.unpacked_size)}[/]",
                highlight=False,
            )
            return
        if event == "fetch":
            _stop_status()
            if data.get("phase") == "dependents":
                msg = "Fetching dependent packages..."
            else:
                msg = f"Fetching download stats for {data.get('count', 0)} packages..."
            status = console.status(msg)
            status.start()
            return
        if event == "fetch_done":
            _stop_status()
            if data.get("phase") == "dependents":
                console.print(f"[bold cyan]Fetched {data.get('count', 0)} dependents.[/]")
            return
        if event == "done":
            _stop_status()
            console.print("\n[bold cyan]Dependents sorted by downloads:[/]")

    return progress


def _print_rows(lines: List[str], console: Optional[Console] = None) -> None:
    # console = rich markup lines, otherwise plain text
    for line in lines:
        if console is not None:
            console.print(line, highlight=False, soft_wrap=True)
        else:
            print(line)


async def _run_report(cfg: ReportConfig, url: str, user: Optional[str], password: Optional[str]) -> int:
    # json goes to stdout, so chatter moves to stderr
    console = Console(stderr=cfg.output == "json")
    err_console = Console(stderr=True)
    progress = _make_progress_reporter(cfg, console, err_console)

    async with make_client() as client:
        svc = DependentsService(
            registry=NpmRegistryAdapter(client),
            dependents=CouchDBAdapter(client, base_url=url, user=user, password=password),
        )
        try:
            if cfg.list_only:
                for edge in await svc.list_dependents(cfg):
                    print(edge.name)
                return 0
            report = await svc.report(cfg, on_progress=progress)
        except DependentsError as exc:
            progress("error", {"message": str(exc)})
            if isinstance(exc, UnauthorizedError):
                progress("error", {"message": exc.hint})
            return 1

    # Outputs
    if cfg.file:
        try:
            path = write_results_json(report.results, cfg.file)
        except OSError as exc:
            err_console.print(f"[red]Failed to write file {escape(cfg.file)}[/red]")
            err_console.print(str(exc), markup=False, highlight=False)
            return 1
        if not cfg.quiet:
            console.print(f"Wrote: {path}", highlight=False)

    nodes = report.results
    if cfg.accumulate:
        nodes = accumulate_results(nodes, report.package.unpacked_size)

    width = cfg.recursive if cfg.recursion_active else None
    if cfg.output == "json":
        print(render_json(nodes, cfg.exclude, cfg.number, width))
        return 0

    rows = build_rows(nodes, cfg.exclude, cfg.number, width, nested=cfg.output == "ci")
    if cfg.output == "md":
        _print_rows(render_md(rows))
    else:
        _print_rows(render_ci(rows), Console())
    return 0


def format_main(argv: Sequence[str]) -> int:
    args = build_format_parser().parse_args(list(argv))
    err_console = Console(stderr=True)

    if not args.file:
        err_console.print("[red]Please provide a filename as the first argument.[/red]")
        return 1

    try:
        nodes = read_results_json(args.file)
    except ResultFileError as exc:
        err_console.print(f"[red]Failed to read file {escape(args.file)}[/red]")
        err_console.print(str(exc), markup=False, highlight=False)
        return 1

    rows = build_rows(nodes, parse_excludes(args.exclude), args.number, nested=args.format == "ci")
    if args.format == "md":
        _print_rows(render_md(rows))
    else:
        _print_rows(render_ci(rows), Console())
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "format":
        return format_main(argv[1:])

    args = build_arg_parser().parse_args(argv)
    _configure_logging(args.verbose)
    err_console = Console(stderr=True)

    if not args.pkg:
        err_console.print("[red]Please provide a package name as the first argument.[/red]")
        return 1
    if not args.url:
        err_console.print("[red]Please provide a CouchDB URL (--url or DEPENDENTS_COUCHDB_URL).[/red]")
        return 1

    cfg = ReportConfig(
        package=args.pkg,
        number=args.number,
        output=args.output,
        exclude=parse_excludes(args.exclude),
        dev=args.dev,
        list_only=args.list,
        depths=max(args.depths, 0),
        recursive=max(args.recursive, 0),
        accumulate=args.accumulate,
        quiet=args.quiet,
        file=args.file,
    )
    return asyncio.run(_run_report(cfg, args.url, args.user, args.password))


if __name__ == "__main__":
    raise SystemExit(main())
