"""
Rendering collaborator contract.

The core hands the renderer plain dicts built from a GraphSnapshot plus the
per-node interaction states, and receives raw chart/canvas events back. This
module owns both directions of that translation and the styling constants;
it holds no graph state of its own.

Two payload shapes are produced:
- build_flow_payload: a React-Flow style {nodes, edges, defaultEdgeOptions}
  dict for canvas front-ends.
- build_echart_options: an ECharts 'graph' series used by the bundled
  NiceGUI page (app.py). NetworkX is used to hold the structure while the
  option is assembled, as a MultiDiGraph so duplicate edges are kept.
"""

from typing import Any, Dict, List, Mapping, Optional

import networkx as nx

from flowpad.interaction import VIEWING, InteractionState
from flowpad.models import GraphSnapshot

EDGE_COLOR = "#333"
EDGE_WIDTH = 2

# Default edge appearance: smoothstep routing, 2px stroke, closed arrow head
EDGE_OPTIONS: Dict[str, Any] = {
    "type": "smoothstep",
    "style": {"strokeWidth": EDGE_WIDTH, "stroke": EDGE_COLOR},
    "markerEnd": {"type": "arrowclosed", "color": EDGE_COLOR},
}

NODE_TYPES = ("customNode",)

NODE_STYLE = {
    "padding": 10,
    "border": "1px solid #ddd",
    "borderRadius": 5,
    "background": "white",
}

TEXT_PLACEHOLDER = "Enter additional text..."

# Event keys we request from ECharts click/contextmenu events
REQUESTED_EVENT_KEYS = ['componentType', 'dataType', 'name', 'value', 'event']


def _state_for(states: Mapping[str, InteractionState], node_id: str) -> InteractionState:
    return states.get(node_id, VIEWING) if states else VIEWING


def build_flow_payload(
    snapshot: GraphSnapshot,
    states: Optional[Mapping[str, InteractionState]] = None,
) -> Dict[str, Any]:
    """
    Build the canvas payload for a snapshot.

    Node data carries only values (label, text, interaction flags). Gestures
    come back through the controller, not through callbacks in the data.
    """
    nodes = []
    for node in snapshot.nodes:
        st = _state_for(states, node.id)
        nodes.append({
            "id": node.id,
            "type": node.type,
            "position": node.position.to_dict(),
            "selected": node.selected,
            "data": {
                "label": node.label,
                "text": node.text,
                "isEditingLabel": st.is_editing_label,
                "isMenuOpen": st.is_menu_open,
                "menuAnchor": list(st.menu_anchor) if st.menu_anchor else None,
                "draftLabel": st.draft_label,
            },
        })

    edges = []
    for edge in snapshot.edges:
        entry = {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "selected": edge.selected,
        }
        if edge.source_handle is not None:
            entry["sourceHandle"] = edge.source_handle
        if edge.target_handle is not None:
            entry["targetHandle"] = edge.target_handle
        edges.append(entry)

    return {
        "nodes": nodes,
        "edges": edges,
        "nodeTypes": list(NODE_TYPES),
        "defaultEdgeOptions": EDGE_OPTIONS,
        "fitView": True,
    }


def to_networkx(snapshot: GraphSnapshot) -> nx.MultiDiGraph:
    """Structure-only NetworkX view of a snapshot (one graph edge per Edge)."""
    G = nx.MultiDiGraph()
    for node in snapshot.nodes:
        G.add_node(node.id, label=node.label, text=node.text, x=node.position.x, y=node.position.y)
    for edge in snapshot.edges:
        # Store guarantees both endpoints exist
        G.add_edge(edge.source, edge.target, key=edge.id)
    return G


def build_echart_options(
    snapshot: GraphSnapshot,
    states: Optional[Mapping[str, InteractionState]] = None,
) -> Dict[str, Any]:
    """
    Build ECharts options for the NiceGUI page.

    Nodes are placed at their stored positions (layout 'none'). Parallel
    edges between the same pair get increasing curvature so each stays
    visible.
    """
    G = to_networkx(snapshot)

    data: List[Dict[str, Any]] = []
    for node_id, attrs in G.nodes(data=True):
        st = _state_for(states, node_id)
        border = "#4a90e2" if st.is_editing_label else "#ddd"
        data.append({
            "id": node_id,
            "name": node_id,
            "x": attrs["x"],
            "y": attrs["y"],
            "symbol": "roundRect",
            "symbolSize": [110, 44],
            "itemStyle": {"color": "white", "borderColor": border, "borderWidth": 2 if st.is_editing_label else 1},
            "label": {"show": True, "formatter": attrs["label"], "color": "#222"},
            "tooltip": {"formatter": attrs["text"] or TEXT_PLACEHOLDER},
        })

    links: List[Dict[str, Any]] = []
    seen_pairs: Dict[tuple, int] = {}
    for src, tgt, key in G.edges(keys=True):
        index = seen_pairs.get((src, tgt), 0)
        seen_pairs[(src, tgt)] = index + 1
        links.append({
            "id": key,
            "source": src,
            "target": tgt,
            "lineStyle": {"color": EDGE_COLOR, "width": EDGE_WIDTH, "curveness": 0.15 * index},
        })

    return {
        "tooltip": {"show": True},
        "series": [{
            "type": "graph",
            "layout": "none",
            "roam": True,
            "draggable": False,
            "edgeSymbol": ["none", "arrow"],
            "edgeSymbolSize": [0, 10],
            "data": data,
            "links": links,
            "emphasis": {"focus": "adjacency"},
        }],
    }


def normalize_event_payload(raw: Any) -> Dict[str, Any]:
    """
    Bring a chart event payload into dict form.

    NiceGUI may deliver the requested keys as a dict, as a list in
    REQUESTED_EVENT_KEYS order, or as a bare node name.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (list, tuple)):
        return {k: v for k, v in zip(REQUESTED_EVENT_KEYS, raw)}
    if isinstance(raw, str):
        return {"name": raw}
    return {}


def resolve_node_id(payload: Dict[str, Any], snapshot: GraphSnapshot) -> Optional[str]:
    """Return the node id a chart event refers to, or None for edges/background."""
    if payload.get("componentType") not in (None, "series"):
        return None
    if payload.get("dataType") == "edge":
        return None
    name = payload.get("name")
    if name and snapshot.get_node(name) is not None:
        return name
    return None


def event_screen_point(payload: Dict[str, Any]) -> tuple:
    """Best-effort pointer position of a chart event, (0, 0) when unknown."""
    event = payload.get("event") or {}
    if isinstance(event, dict):
        inner = event.get("event") if isinstance(event.get("event"), dict) else event
        x = inner.get("clientX", inner.get("offsetX", 0))
        y = inner.get("clientY", inner.get("offsetY", 0))
        return (x or 0, y or 0)
    return (0, 0)
