# ==============================================================================
# uxinsights CLI
# ==============================================================================
"""
Command-line interface for the study result-aggregation engine.

Usage:
    uxinsights --help
    uxinsights report -e events.csv -s sessions.csv -b block-1
    uxinsights flow -e events.csv -b block-1
    uxinsights heatmap -e events.csv --screen S1 --width 390 --height 844 -o s1.png
    uxinsights config show
"""

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os
from typing import Annotated

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="uxinsights",
    help="UX study result aggregation CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Report commands are imported from uxinsights.cli.report
from uxinsights.cli.report import report_flow, report_show

app.command("report")(report_show)
app.command("flow")(report_flow)

# Heatmap command is imported from uxinsights.cli.heatmap
from uxinsights.cli.heatmap import heatmap_render

app.command("heatmap")(heatmap_render)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from uxinsights.cli.config import config_show

config_app.command("show")(config_show)


# ==============================================================================
# Version
# ==============================================================================

from uxinsights.utils.versions import get_uxinsights_version


def _version_callback(value: bool) -> None:
    if value:
        print(f"uxinsights {get_uxinsights_version()}")
        raise typer.Exit()


@app.callback()
def root(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """UX study result aggregation CLI"""


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
