from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from local_code_runner import CodeRunner, RunnerSettings, ScratchDirectory, ToolchainDetector
from local_code_runner.detector import ToolchainDetectionError
from local_code_runner.languages import language_ids

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="lcr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for running snippets with local toolchains.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="lcr",
        description=(
            "local-code-runner CLI\n"
            "Detect installed toolchains and run snippets through your login shell.\n"
            "Temporary sources and binaries are deleted after every run."
        ),
        epilog=(
            "Quick Examples:\n"
            "  lcr languages\n"
            "  lcr run python hello.py\n"
            "  echo 'console.log(1)' | lcr run javascript\n"
            "  lcr --timeout-seconds 10 run go main.go\n"
            "  lcr sweep --max-age-seconds 0"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a TOML settings file with a [runner] table.\n"
            "Example: --config ~/.config/lcr.toml"
        ),
    )
    parser.add_argument(
        "--timeout-seconds",
        type=int,
        help="Wall-clock limit for one run, compile step included (default: 5).",
    )
    parser.add_argument(
        "--scratch-dir",
        help="Directory for temporary sources and binaries.",
    )
    parser.add_argument(
        "--shell",
        help="Login shell used for PATH resolution (default: $SHELL).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log shell selection and the executed command.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    sub.add_parser(
        "languages",
        help="List languages whose toolchains are installed.",
        description=(
            "Probe the login shell for every supported toolchain.\n"
            "Languages whose command does not resolve are omitted."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Run a snippet from a file or stdin.",
        description=(
            "Run a snippet and print stdout, stderr and any error.\n"
            f"Supported languages: {', '.join(language_ids())}"
        ),
        epilog=(
            "Examples:\n"
            "  lcr run python script.py\n"
            "  lcr run java Main.java\n"
            "  lcr run ruby - < snippet.rb"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("language")
    run_cmd.add_argument(
        "source",
        nargs="?",
        default="-",
        help="Source file to run; '-' or omitted reads stdin.",
    )

    sweep_cmd = sub.add_parser(
        "sweep",
        help="Remove leftover artifacts from the scratch directory.",
        description=(
            "Delete scratch entries older than the age threshold.\n"
            "Removes the scratch directory itself once it is empty."
        ),
        formatter_class=_HELP_FORMATTER,
    )
    sweep_cmd.add_argument(
        "--max-age-seconds",
        type=int,
        help="Only remove entries at least this old (default from settings: 3600).",
    )

    return parser


def build_settings(args: argparse.Namespace) -> RunnerSettings:
    """Create RunnerSettings from the config file and global CLI flags.

    Example:
        ```python
        settings = build_settings(build_parser().parse_args(["languages"]))
        ```
    """
    settings = RunnerSettings.from_file(args.config) if args.config else RunnerSettings()
    overrides: dict[str, Any] = {}
    if args.timeout_seconds is not None:
        overrides["timeout_seconds"] = args.timeout_seconds
    if args.scratch_dir:
        overrides["scratch_dir"] = str(Path(args.scratch_dir).expanduser())
    if args.shell:
        overrides["shell"] = args.shell
    return replace(settings, **overrides)


def _configure_logging(verbose: bool) -> None:
    """Route library logs through Rich on stderr.

    Example:
        ```python
        _configure_logging(verbose=True)
        ```
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _read_source(source: str) -> str:
    """Read snippet text from a UTF-8 file, or from stdin when `source` is `-`.

    Example:
        ```python
        text = _read_source("hello.py")
        ```
    """
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_languages(rows: list[Any]) -> None:
    """Render detected languages in a rich table.

    Example:
        ```python
        _print_languages([DetectedLanguage("python", "Python", "/usr/bin/python3")])
        ```
    """
    table = Table(title="Detected Languages")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Executable")
    for row in rows:
        table.add_row(row.id, row.display_name, row.executable_path)
    _CONSOLE.print(table)


def _print_result(result: Any) -> None:
    """Render the command, captured streams, and error of one run.

    Example:
        ```python
        _print_result(runner.execute("python", "print(1)"))
        ```
    """
    if result.executed_command:
        _CONSOLE.print(Text(f"$ {result.executed_command}", style="dim"))
    if result.stdout:
        _CONSOLE.print(Panel(Text(result.stdout.rstrip("\n")), title="stdout", border_style="green"))
    if result.stderr:
        _CONSOLE.print(Panel(Text(result.stderr.rstrip("\n")), title="stderr", border_style="yellow"))
    if result.error is not None:
        kind = result.error_kind.value if result.error_kind is not None else "error"
        _CONSOLE.print(Panel(Text(result.error), title=f"Error ({kind})", border_style="red"))
    else:
        _CONSOLE.print(Text(f"Finished in {result.duration_ms} ms", style="bold green"))


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `lcr` CLI command handler.

    Example:
        ```python
        code = main(["run", "python", "hello.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.verbose)
    try:
        settings = build_settings(args)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "languages":
        try:
            rows = ToolchainDetector(settings).detect()
        except ToolchainDetectionError as exc:
            _CONSOLE.print(Panel.fit(str(exc), style="bold red"))
            return 1
        if not rows:
            _CONSOLE.print(Panel.fit("No languages available.", style="bold yellow"))
            return 1
        _print_languages(rows)
        return 0
    if args.command == "run":
        try:
            source_text = _read_source(args.source)
        except (OSError, UnicodeDecodeError) as exc:
            _CONSOLE.print(Panel.fit(f"Could not read {args.source}: {exc}", style="bold red"))
            return 1
        result = CodeRunner(settings).execute(args.language, source_text)
        _print_result(result)
        return 0 if result.ok else 1
    if args.command == "sweep":
        max_age = (
            args.max_age_seconds
            if args.max_age_seconds is not None
            else settings.sweep_max_age_seconds
        )
        summary = ScratchDirectory(settings.scratch_dir).sweep(max_age_seconds=max_age)
        _CONSOLE.print(Panel.fit(Pretty(summary), title="Sweep Summary", border_style="green"))
        return 0

    parser.error("Unhandled command")
    return 2
