from flowpad.interaction import InteractionState, Mode
from flowpad.models import Edge, GraphSnapshot, Node, Position
from flowpad.render import (
    EDGE_OPTIONS,
    build_echart_options,
    build_flow_payload,
    event_screen_point,
    normalize_event_payload,
    resolve_node_id,
    to_networkx,
)


def sample_snapshot():
    nodes = (
        Node("a", "Alpha", "notes", Position(1, 2)),
        Node("b", "Beta", "", Position(3, 4)),
    )
    edges = (
        Edge("e1", "a", "b", "bottom", "top"),
        Edge("e2", "a", "b"),
    )
    return GraphSnapshot(nodes, edges)


def test_default_edge_options():
    assert EDGE_OPTIONS["type"] == "smoothstep"
    assert EDGE_OPTIONS["style"]["strokeWidth"] == 2
    assert EDGE_OPTIONS["markerEnd"]["type"] == "arrowclosed"


def test_flow_payload_shapes_nodes_and_edges():
    states = {"a": InteractionState(mode=Mode.EDITING, draft_label="Alp")}
    payload = build_flow_payload(sample_snapshot(), states)

    assert payload["defaultEdgeOptions"] is EDGE_OPTIONS
    node_a, node_b = payload["nodes"]
    assert node_a["position"] == {"x": 1, "y": 2}
    assert node_a["type"] == "customNode"
    assert node_a["data"]["isEditingLabel"] is True
    assert node_a["data"]["draftLabel"] == "Alp"
    assert node_b["data"]["isEditingLabel"] is False
    assert node_b["data"]["menuAnchor"] is None

    e1, e2 = payload["edges"]
    assert e1["sourceHandle"] == "bottom" and e1["targetHandle"] == "top"
    assert "sourceHandle" not in e2


def test_flow_payload_has_no_callables():
    payload = build_flow_payload(sample_snapshot())
    for node in payload["nodes"]:
        assert not any(callable(v) for v in node["data"].values())


def test_networkx_view_keeps_parallel_edges():
    G = to_networkx(sample_snapshot())
    assert G.number_of_nodes() == 2
    assert G.number_of_edges("a", "b") == 2


def test_echart_options_offsets_parallel_edges():
    options = build_echart_options(sample_snapshot())
    series = options["series"][0]

    assert series["layout"] == "none"
    assert [d["id"] for d in series["data"]] == ["a", "b"]
    assert series["data"][0]["label"]["formatter"] == "Alpha"
    curves = [link["lineStyle"]["curveness"] for link in series["links"]]
    assert curves == [0, 0.15]
    assert all(link["lineStyle"]["width"] == 2 for link in series["links"])


def test_echart_options_highlight_editing_node():
    states = {"b": InteractionState(mode=Mode.EDITING)}
    series = build_echart_options(sample_snapshot(), states)["series"][0]
    colors = {d["id"]: d["itemStyle"]["borderColor"] for d in series["data"]}
    assert colors["b"] != colors["a"]


def test_normalize_event_payload_variants():
    assert normalize_event_payload({"name": "a"}) == {"name": "a"}
    assert normalize_event_payload(["series", "node", "a"]) == {
        "componentType": "series",
        "dataType": "node",
        "name": "a",
    }
    assert normalize_event_payload("a") == {"name": "a"}
    assert normalize_event_payload(None) == {}


def test_resolve_node_id():
    snapshot = sample_snapshot()
    assert resolve_node_id({"componentType": "series", "dataType": "node", "name": "a"}, snapshot) == "a"
    assert resolve_node_id({"componentType": "series", "dataType": "edge", "name": "a"}, snapshot) is None
    assert resolve_node_id({"componentType": "tooltip", "name": "a"}, snapshot) is None
    assert resolve_node_id({"name": "ghost"}, snapshot) is None


def test_event_screen_point():
    assert event_screen_point({"event": {"clientX": 5, "clientY": 6}}) == (5, 6)
    assert event_screen_point({"event": {"event": {"offsetX": 1, "offsetY": 2}}}) == (1, 2)
    assert event_screen_point({}) == (0, 0)
