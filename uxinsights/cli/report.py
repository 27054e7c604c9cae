# ==============================================================================
# Report Commands
# ==============================================================================
"""
Block report commands for the uxinsights CLI.

Runs a full aggregation pass over exported event/session rows and prints the
outcome summary, navigation transitions and screen dwell times, or the flow
graph as JSON.
"""

import json
import time
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from uxinsights.cli.shared import (
    BOX_WIDTH,
    C,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    load_inputs,
    sessions_from_events,
    setup_logging,
)
from uxinsights.core.path_aggregator import transition_key
from uxinsights.core.report import BlockReport, build_block_report

EventsOption = Annotated[
    Path, typer.Option("--events", "-e", help="Event rows (.csv, .jsonl or .ndjson)")
]
SessionsOption = Annotated[
    Optional[Path],
    typer.Option("--sessions", "-s", help="Session rows; derived from events when omitted"),
]
BlockOption = Annotated[str, typer.Option("--block", "-b", help="Block id to report on")]
NowOption = Annotated[
    Optional[int],
    typer.Option("--now", help="Evaluation time in Unix ms (defaults to the current time)"),
]


def _run(
    events_file: Path, sessions_file: Path | None, block_id: str, now: int | None
) -> BlockReport:
    events, sessions = load_inputs(events_file, sessions_file)
    if sessions is None:
        sessions = sessions_from_events(events, block_id)
    if now is None:
        now = int(time.time() * 1000)
    return build_block_report(block_id, sessions, events, now)


# ==============================================================================
# Commands
# ==============================================================================


def report_show(
    events_file: EventsOption,
    block_id: BlockOption,
    sessions_file: SessionsOption = None,
    now: NowOption = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output the full report as JSON")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Show the aggregated results of one prototype block.

    Classifies every session, counts outcomes, aggregates navigation paths
    and dwell times.

    Examples:
        uxinsights report -e events.csv -s sessions.csv -b block-1
        uxinsights report -e events.jsonl -b block-1 --json
    """
    setup_logging(verbose, quiet=json_output)
    report = _run(events_file, sessions_file, block_id, now)

    if json_output:
        print(json.dumps(report.model_dump(mode="json"), indent=2))
        return

    summary = report.summary
    counts = summary.outcome_counts
    W = BOX_WIDTH

    print()
    print(_box_header(f"BLOCK {block_id}", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Sessions':<26}{summary.sessions:>12,}", W))
    print(_box_line(f"  {'  -> Completed':<26}{C.BRIGHT_GREEN}{counts['completed']:>12,}{C.RESET}", W))
    print(_box_line(f"  {'  -> Aborted':<26}{C.BRIGHT_YELLOW}{counts['aborted']:>12,}{C.RESET}", W))
    print(_box_line(f"  {'  -> Closed':<26}{C.BRIGHT_RED}{counts['closed']:>12,}{C.RESET}", W))
    print(_box_line(f"  {'  -> In progress':<26}{counts['in_progress']:>12,}", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Completion Rate':<26}{summary.completion_rate * 100:>11.1f}%", W))
    print(_box_line(f"  {'Mean Time (s)':<26}{summary.mean_seconds:>12.1f}", W))
    print(_box_line(f"  {'Median Time (s)':<26}{summary.median_seconds:>12.1f}", W))
    print(_empty_line(W))

    print(_section_header("Navigation", W))
    start = report.paths.common_start_screen or "-"
    print(_box_line(f"  {'Start Screen':<26}{start:>12}", W))
    transitions = sorted(report.paths.transitions.items(), key=lambda kv: kv[1], reverse=True)
    for (a, b), count in transitions[:10]:
        print(_box_line(f"  {transition_key(a, b):<40}{count:>10,}", W))
    print(_empty_line(W))
    print(_box_bottom(W))

    if report.screen_times:
        console = Console()
        table = Table(title="Screen Dwell Time", show_header=True, header_style="bold")
        table.add_column("Screen")
        table.add_column("Visits", justify="right")
        table.add_column("Total (s)", justify="right")
        table.add_column("Mean (s)", justify="right")
        for st in report.screen_times:
            table.add_row(
                st.screen_id,
                f"{st.visit_count:,}",
                f"{st.total_ms / 1000:.1f}",
                f"{st.mean_ms / 1000:.1f}",
            )
        print()
        console.print(table)
    print()


def report_flow(
    events_file: EventsOption,
    block_id: BlockOption,
    sessions_file: SessionsOption = None,
    now: NowOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Print the block's flow graph (nodes and edges) as JSON.

    Examples:
        uxinsights flow -e events.csv -s sessions.csv -b block-1 > flow.json
    """
    setup_logging(verbose, quiet=True)
    report = _run(events_file, sessions_file, block_id, now)
    print(json.dumps(report.flow.model_dump(mode="json"), indent=2))
