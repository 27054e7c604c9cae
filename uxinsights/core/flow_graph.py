# ==============================================================================
# Flow Graph - Pure Domain Logic
# ==============================================================================
"""
Per-respondent flow graph built from aggregated navigation paths.

Each session gets its own lane of nodes; only the common start screen is a
shared node. Edge widths scale with the global transition count of the
screen pair, and edges carry the session's status for coloring. The graph is
a plain data structure consumed by an external diagram renderer.
"""

import logging
from collections.abc import Mapping

from pydantic import BaseModel, Field

from uxinsights.core.models import SessionOutcome, SessionStatus

logger = logging.getLogger(__name__)

START_NODE_PREFIX = "start"
END_SCREEN = "__end__"

STATUS_COLORS = {
    SessionStatus.COMPLETED: "#4caf50",
    SessionStatus.ABORTED: "#ff9800",
    SessionStatus.CLOSED: "#f44336",
    SessionStatus.IN_PROGRESS: "#9e9e9e",
}


class FlowNode(BaseModel):
    """A screen visit node. ``session_id`` is None for the shared start node."""

    id: str
    screen_id: str
    session_id: str | None = None
    ordinal: int = 0
    is_start: bool = False
    is_terminal: bool = False


class FlowEdge(BaseModel):
    """A move between two consecutive nodes of one session's path."""

    id: str
    source: str
    target: str
    session_id: str
    status: SessionStatus
    color: str
    count: int
    width: float
    opacity: float


class FlowGraphData(BaseModel):
    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[FlowEdge] = Field(default_factory=list)


def node_id(session_id: str, screen_id: str, ordinal: int) -> str:
    return f"{session_id}:{screen_id}:{ordinal}"


def edge_width(count: int, max_count: int, min_width: float, max_width: float) -> float:
    """``max(min_width, count / max_count * max_width)``; a zero max counts as 1."""
    return max(min_width, (count / (max_count or 1)) * max_width)


def edge_opacity(count: int, max_count: int) -> float:
    if max_count <= 0:
        return 0.5
    return min(0.8, 0.3 + (count / max_count) * 0.5)


class FlowGraph:
    """
    Builds the flow graph.

    Args:
        min_width: Narrowest edge stroke
        max_width: Stroke of the most traversed transition
    """

    def __init__(self, min_width: float = 1.0, max_width: float = 12.0):
        self.min_width = min_width
        self.max_width = max_width

    def build(
        self,
        paths_by_session: Mapping[str, list[str]],
        transitions: Mapping[tuple[str, str], int],
        common_start_screen: str | None,
        outcomes_by_session: Mapping[str, SessionOutcome],
    ) -> FlowGraphData:
        """
        Build nodes and edges.

        Args:
            paths_by_session: Deduplicated path per session (use
                              ``PathAggregate.graph_paths`` to include
                              sessions that ended before the first screen)
            transitions: Global (from, to) -> count table
            common_start_screen: Screen shared by all lanes, or None
            outcomes_by_session: Classified outcome per session

        Returns:
            FlowGraphData with nodes and edges
        """
        max_count = max(transitions.values(), default=0)
        nodes: dict[str, FlowNode] = {}
        edges: list[FlowEdge] = []

        start_id = None
        if common_start_screen is not None:
            start_id = f"{START_NODE_PREFIX}:{common_start_screen}"

        for session_id, path in paths_by_session.items():
            if not path:
                continue
            outcome = outcomes_by_session.get(session_id)
            status = outcome.status if outcome else SessionStatus.IN_PROGRESS

            lane: list[str] = []
            for ordinal, screen_id in enumerate(path):
                if ordinal == 0 and screen_id == common_start_screen:
                    nodes.setdefault(
                        start_id,
                        FlowNode(id=start_id, screen_id=screen_id, is_start=True),
                    )
                    lane.append(start_id)
                    continue
                nid = node_id(session_id, screen_id, ordinal)
                nodes[nid] = FlowNode(
                    id=nid, screen_id=screen_id, session_id=session_id, ordinal=ordinal
                )
                lane.append(nid)

            if len(lane) == 1:
                # Single-node sessions still get an edge to their own end node
                end_id = node_id(session_id, END_SCREEN, 1)
                nodes[end_id] = FlowNode(
                    id=end_id,
                    screen_id=END_SCREEN,
                    session_id=session_id,
                    ordinal=1,
                    is_terminal=True,
                )
                edges.append(self._edge(session_id, lane[0], end_id, 0, status, max_count))
                continue

            for index, (source, target) in enumerate(zip(lane, lane[1:])):
                count = transitions.get((path[index], path[index + 1]), 0)
                edges.append(self._edge(session_id, source, target, count, status, max_count))

        logger.debug("Built flow graph with %d nodes and %d edges", len(nodes), len(edges))
        return FlowGraphData(nodes=list(nodes.values()), edges=edges)

    def _edge(
        self,
        session_id: str,
        source: str,
        target: str,
        count: int,
        status: SessionStatus,
        max_count: int,
    ) -> FlowEdge:
        return FlowEdge(
            id=f"{session_id}|{source}->{target}",
            source=source,
            target=target,
            session_id=session_id,
            status=status,
            color=STATUS_COLORS[status],
            count=count,
            width=edge_width(count, max_count, self.min_width, self.max_width),
            opacity=edge_opacity(count, max_count),
        )
