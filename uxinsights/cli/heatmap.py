# ==============================================================================
# Heatmap Command
# ==============================================================================
"""
Heatmap rendering command for the uxinsights CLI.

Collects the clicks recorded on one screen and writes a transparent PNG
overlay sized for the screen's screenshot.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from uxinsights.cli.shared import C, I, fail, load_inputs, setup_logging
from uxinsights.core.heatmap import HeatmapRasterizer, render_screen_heatmap, save_png
from uxinsights.core.spatial import bucket_points, click_overlay, collect_clicks
from uxinsights.utils.config import get_settings


def heatmap_render(
    events_file: Annotated[
        Path, typer.Option("--events", "-e", help="Event rows (.csv, .jsonl or .ndjson)")
    ],
    screen_id: Annotated[str, typer.Option("--screen", help="Screen id to render")],
    width: Annotated[int, typer.Option("--width", help="Screen width in pixels")],
    height: Annotated[int, typer.Option("--height", help="Screen height in pixels")],
    out: Annotated[Path, typer.Option("--out", "-o", help="PNG file to write")],
    scale: Annotated[
        Optional[float], typer.Option("--scale", help="Raster scale (default from settings)")
    ] = None,
    first_only: Annotated[
        bool, typer.Option("--first-only", help="Only each session's first click")
    ] = False,
    markers: Annotated[
        Optional[Path], typer.Option("--markers", help="Also write click markers as JSON")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Render a click heatmap for one screen as a PNG overlay.

    Examples:
        uxinsights heatmap -e events.csv --screen S1 --width 390 --height 844 -o s1.png
        uxinsights heatmap -e events.csv --screen S1 --width 390 --height 844 \\
            --first-only --scale 2 -o s1@2x.png
    """
    setup_logging(verbose)
    settings = get_settings().heatmap

    if width <= 0 or height <= 0:
        fail(f"Invalid screen size {width}x{height}")

    events, _ = load_inputs(events_file, None)
    points = collect_clicks(
        events, screen_id, only_first_per_session=first_only, screen_size=(width, height)
    )
    if not points:
        print(f"\n  {C.BRIGHT_YELLOW}No clicks recorded on screen '{screen_id}'{C.RESET}\n")

    grouped = bucket_points(points, settings.bucket_size)
    buffer = render_screen_heatmap(
        grouped,
        width,
        height,
        scale=scale or settings.scale,
        rasterizer=HeatmapRasterizer(settings.radius, settings.blur),
    )
    save_png(buffer, out)

    if markers is not None:
        overlay = click_overlay(grouped)
        markers.write_text(json.dumps([m.model_dump() for m in overlay], indent=2))

    fallbacks = sum(1 for p in points if p.is_fallback)
    print(
        f"\n  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} {len(points)} clicks "
        f"({fallbacks} without coordinates) {I.ARROW} {out}\n"
    )
