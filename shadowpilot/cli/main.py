"""
Shadowpilot CLI - Command-line interface for snapshots and planned runs.
"""

import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from shadowpilot.core.config import DEFAULT_MAX_SHADOW_DEPTH

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Selenium's own DEBUG output drowns the run log
    logging.getLogger("selenium").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(prog_name="shadowpilot", package_name="shadowpilot")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """Shadowpilot - planner-driven browser automation through shadow DOM."""
    _setup_logging(verbose)


@cli.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), default=None,
              help="Write the snapshot JSON to this file instead of stdout")
@click.option("--headless/--headed", default=True, help="Run browser in headless mode")
@click.option("--max-shadow-depth", default=DEFAULT_MAX_SHADOW_DEPTH, type=int,
              help="Maximum shadow-root nesting to descend into")
def snapshot(url, output, headless, max_shadow_depth):
    """
    Print the snapshot of every actionable element on URL.

    \b
    Example:

        shadowpilot snapshot "https://mattkenefick.github.io/sample-shadow-dom/"
    """
    from shadowpilot import ShadowpilotRunner

    runner = ShadowpilotRunner(url=url, headless=headless, max_shadow_depth=max_shadow_depth)
    try:
        nodes = runner.snapshot()
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    finally:
        runner.close()

    payload = json.dumps([node.to_dict() for node in nodes], indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(payload)
        console.print(f"[green]Snapshot with {len(nodes)} top-level nodes written to {output}[/green]")
    else:
        click.echo(payload)


@cli.command()
@click.argument("url")
@click.option("--plan", "plan_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON action list to execute (static planner)")
@click.option("--instruction", "-i", default="", help="Natural-language instruction for the planner")
@click.option("--planner", "planner_type", default=None, type=click.Choice(["static", "cloud"]),
              help="Planner to use (default: static with --plan, cloud otherwise)")
@click.option("--model", default=None, help="Model name for the cloud planner")
@click.option("--headless/--headed", default=False, help="Run browser in headless mode")
@click.option("--report-dir", default="./shadowpilot_reports", help="Run record output directory")
@click.option("--timeout", default=30, type=int, help="Seconds to wait for page readiness after navigation")
@click.option("--keep-open", default=0.0, type=float, help="Seconds to keep the browser open after the run")
def run(url, plan_path, instruction, planner_type, model, headless, report_dir, timeout, keep_open):
    """
    Open URL, snapshot it, plan, and execute the action list.

    \b
    Examples:

        shadowpilot run "https://mattkenefick.github.io/sample-shadow-dom/" --plan plans/sample_shadow_dom.json

        shadowpilot run "https://example.com/login" -i "login with alice and hunter2" --planner cloud
    """
    planner_type = planner_type or ("static" if plan_path else "cloud")
    if planner_type == "static" and not plan_path:
        raise click.UsageError("--plan is required with the static planner")

    console.print(Panel.fit(
        "[bold blue]Shadowpilot[/bold blue]\n"
        "[dim]Planner-driven browser automation[/dim]",
        border_style="blue"
    ))
    console.print(f"\n[bold]Target:[/bold] {url}")
    console.print(f"[bold]Planner:[/bold] {planner_type}")
    console.print()

    from shadowpilot import ShadowpilotRunner

    runner = ShadowpilotRunner(
        url=url,
        instruction=instruction,
        headless=headless,
        planner_type=planner_type,
        plan_path=plan_path,
        model_name=model,
        report_dir=report_dir,
        timeout=timeout,
        keep_open=keep_open,
    )
    result = runner.run()

    console.print(
        f"[bold]Snapshot:[/bold] {len(result.snapshot_before)} nodes before, "
        f"{len(result.snapshot_after)} after"
    )

    if result.results:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Seq", style="dim", width=5)
        table.add_column("Action", style="green")
        table.add_column("Target", style="yellow", max_width=50)
        table.add_column("ms", justify="right")
        for r in result.results:
            table.add_row(str(r.sequence), r.action, r.target, f"{r.duration_ms:.0f}")
        console.print(table)

    if result.success:
        console.print(f"\n[bold green]Completed {result.steps} steps[/bold green]")
    else:
        console.print(f"\n[bold red]Run failed after {result.steps} steps[/bold red]")
        console.print(f"[red]Error: {result.error}[/red]")

    console.print(f"[dim]Duration: {result.duration_seconds:.2f}s[/dim]")
    if result.report_path:
        console.print(f"[dim]Record: {result.report_path}[/dim]")

    if not result.success:
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    from shadowpilot import __version__
    console.print(f"Shadowpilot v{__version__}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
