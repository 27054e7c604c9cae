# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the uxinsights CLI.
"""

import json
from typing import Annotated

import typer

from uxinsights.cli.shared import C
from uxinsights.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display the current aggregation settings."""
    settings = get_settings()

    if json_output:
        print(json.dumps(settings.model_dump(), indent=2))
        return

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Classifier{C.RESET}")
    print(f"  Inactivity: {C.WHITE}{settings.classifier.inactivity_timeout_ms:,} ms{C.RESET}")
    print()

    print(f"{C.CYAN}Heatmap{C.RESET}")
    print(f"  Radius:     {C.WHITE}{settings.heatmap.radius} px{C.RESET}")
    print(f"  Blur:       {C.WHITE}{settings.heatmap.blur}{C.RESET}")
    print(f"  Scale:      {C.WHITE}{settings.heatmap.scale}x{C.RESET}")
    print(f"  Grid:       {C.WHITE}{settings.heatmap.bucket_size} px{C.RESET}")
    print()

    print(f"{C.CYAN}Flow graph{C.RESET}")
    print(f"  Width:      {C.WHITE}{settings.flow.min_width} - {settings.flow.max_width}{C.RESET}")
    print()

    print(f"{C.CYAN}Logging{C.RESET}")
    print(f"  Level:      {C.WHITE}{settings.log_level}{C.RESET}")
    print()
