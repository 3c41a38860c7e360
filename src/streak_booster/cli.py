import argparse
import dataclasses
import logging
import subprocess
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import daemon, ops
from .config import Config
from .constants import APP_NAME, CONFIG_FILE, LOCAL_CONFIG_NAME
from .network import is_reachable

logger = logging.getLogger(APP_NAME)
console = Console()


def show_status(repo_path: Path) -> None:
    """Displays the last recorded run, recent errors and current connectivity."""
    conf = Config.load(repo_path)
    tracked = repo_path / conf.files.tracked_file
    log_file = repo_path / conf.files.log_file

    content = Text()
    content.append("Repository:  ", style="bold")
    content.append(f"{repo_path}\n")
    content.append("Tracked:     ", style="bold")
    content.append(f"{conf.files.tracked_file}\n")

    last = ops.last_timestamp(tracked)
    content.append("Last Run:    ", style="bold")
    if last:
        content.append(f"{last}\n", style="green")
    else:
        content.append("Never\n", style="yellow")

    with console.status("[bold blue]Probing connectivity...[/bold blue]"):
        online = is_reachable(
            conf.probe.url, conf.probe.connect_timeout, conf.probe.read_timeout
        )
    content.append("Network:     ", style="bold")
    if online:
        content.append(f"Online ({conf.probe.url})", style="green")
    else:
        content.append(f"Offline ({conf.probe.url} unreachable)", style="bold red")

    console.print(Panel(content, title="Streak Status", expand=False))

    errors = ops.recent_errors(log_file)
    if errors:
        error_text = Text("\n".join(errors[-10:]), style="red")
        console.print(
            Panel(
                error_text,
                title=f"Errors in the last 24h ({len(errors)})",
                border_style="red",
                expand=False,
            )
        )
    else:
        console.print("[green]No errors logged in the last 24h.[/green]")


def show_config(repo_path: Path) -> None:
    """Displays the effective configuration for the repository."""
    conf = Config.load(repo_path)

    table = Table(title="Streak Booster Configuration", show_lines=True)
    table.add_column("Section", style="cyan", justify="right")
    table.add_column("Key", style="green")
    table.add_column("Value", style="yellow")

    for section in dataclasses.fields(conf):
        values = getattr(conf, section.name)
        label = section.name
        for item in dataclasses.fields(values):
            table.add_row(label, item.name, repr(getattr(values, item.name)))
            label = ""

    console.print(table)
    console.print(
        f"[dim]Sources: defaults, {CONFIG_FILE}, "
        f"{repo_path / LOCAL_CONFIG_NAME} or pyproject.toml [tool.streak-booster][/dim]"
    )


def tail_log(repo_path: Path) -> None:
    """Follows the run log file in real-time."""
    log_file = repo_path / Config.load(repo_path).files.log_file
    if not log_file.exists():
        console.print(f"[red]No log file found yet at {log_file}.[/red]")
        return

    console.print(f"Tailing [bold cyan]{log_file}[/bold cyan] (Ctrl+C to stop)...")
    try:
        subprocess.run(["tail", "-n", "1000", "-f", str(log_file)])
    except KeyboardInterrupt:
        console.print("\nStopped.", style="dim")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Commit a fresh timestamp and push it, keeping the repo active.",
    )
    parser.add_argument(
        "-C",
        "--repo",
        type=Path,
        default=None,
        help="Repository root (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Commit a timestamp and push (default)")
    subparsers.add_parser("status", help="Show last run, errors and connectivity")
    subparsers.add_parser("log", help="Tail the run log file")
    subparsers.add_parser("config", help="Show the effective configuration")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the Streak Booster CLI."""
    args = build_parser().parse_args(argv)
    repo_path = (args.repo or Path.cwd()).resolve()

    if args.command == "status":
        show_status(repo_path)
        return 0
    elif args.command == "log":
        tail_log(repo_path)
        return 0
    elif args.command == "config":
        show_config(repo_path)
        return 0

    # Default Action
    return daemon.main(repo_path)


if __name__ == "__main__":
    raise SystemExit(main())
