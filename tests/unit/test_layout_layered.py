"""Unit tests for layered placement and relationship resolution."""

from __future__ import annotations

from canvas_agent.layout import LayoutEngine, Point
from canvas_agent.layout.graph import group_labels, order_by_group, topological_layers
from canvas_agent.parsing import ToolCall

ORIGIN = Point(0.0, 0.0)


def card(name: str) -> ToolCall:
    return ToolCall(operation="card", parameters={"name": name})


def conn(source: str, target: str, label: str = "") -> ToolCall:
    return ToolCall(operation="connection", parameters={"from": source, "to": target, "label": label})


def group(label: str, *items: str, key: str = "items") -> ToolCall:
    return ToolCall(operation="group", parameters={"label": label, key: list(items)})


def test_chain_with_shortcut_gives_one_layer_per_card(engine: LayoutEngine) -> None:
    cards = [card("A"), card("B"), card("C")]
    connections = [conn("A", "B"), conn("B", "C"), conn("A", "C")]

    result = engine.layout(cards, [], [], connections, [], focus=ORIGIN)

    assert result.mode == "layered"
    assert [(n.name, n.layer_index) for n in result.nodes] == [("A", 0), ("B", 1), ("C", 2)]
    assert [n.position.y for n in result.nodes] == [-100.0, 80.0, 260.0]
    assert all(n.position.x == -140.0 for n in result.nodes)


def test_cycle_puts_both_cards_in_the_first_layer(engine: LayoutEngine) -> None:
    cards = [card("A"), card("B")]

    result = engine.layout(cards, [], [], [conn("A", "B"), conn("B", "A")], [], focus=ORIGIN)

    assert [n.layer_index for n in result.nodes] == [0, 0]
    assert [n.position.x for n in result.nodes] == [-288.0, 8.0]
    assert len(result.connections) == 2


def test_cycle_after_acyclic_prefix_lands_in_one_final_layer() -> None:
    layers = topological_layers(["A", "B", "D"], [("A", "B"), ("B", "A")])

    assert layers == [[2], [0, 1]]


def test_every_edge_points_to_a_later_layer() -> None:
    names = ["a", "b", "c", "d", "e", "f"]
    edges = [("a", "c"), ("b", "c"), ("c", "d"), ("a", "e"), ("e", "d"), ("f", "a")]

    layers = topological_layers(names, edges)
    layer_of = {names[i]: n for n, layer in enumerate(layers) for i in layer}

    assert sorted(layer_of) == sorted(names)
    for source, target in edges:
        assert layer_of[source] < layer_of[target]


def test_edges_to_unknown_names_are_ignored() -> None:
    assert topological_layers(["A", "B"], [("A", "Ghost"), ("Ghost", "B")]) == [[0, 1]]


def test_groups_alone_switch_to_layered_mode_and_order_members(engine: LayoutEngine) -> None:
    cards = [card("X"), card("Y"), card("Z")]
    groups = [group("b", "X"), group("a", "Z")]

    result = engine.layout(cards, [], [], [], groups, focus=ORIGIN)

    assert result.mode == "layered"
    by_x = sorted(result.nodes, key=lambda n: n.position.x)
    # Ungrouped first, then by group label.
    assert [n.name for n in by_x] == ["Y", "Z", "X"]


def test_order_by_group_is_stable_within_a_label() -> None:
    names = ["p", "q", "r", "s"]
    labels = group_labels([group("g", "s", "q")])

    assert order_by_group([0, 1, 2, 3], names, labels) == [0, 2, 1, 3]


def test_group_bounds_contain_members_with_padding(engine: LayoutEngine) -> None:
    cards = [card("A"), card("B"), card("C")]
    groups = [group("Pair", "A", "B", "Ghost")]

    result = engine.layout(cards, [], [], [conn("A", "C")], groups, focus=ORIGIN)

    resolved = result.groups[0]
    assert resolved.label == "Pair"
    assert resolved.members == ("A", "B")
    for name in resolved.members:
        bounds = result.node(name).bounds
        assert resolved.bounds.min_x <= bounds.min_x - 20.0
        assert resolved.bounds.min_y <= bounds.min_y - 20.0
        assert resolved.bounds.max_x >= bounds.max_x + 20.0
        assert resolved.bounds.max_y >= bounds.max_y + 20.0


def test_members_alias_and_empty_groups(engine: LayoutEngine) -> None:
    groups = [group("Alias", "A", key="members"), group("Nobody", "Ghost")]

    result = engine.layout([card("A")], [], [], [], groups, focus=ORIGIN)

    assert [g.label for g in result.groups] == ["Alias"]


def test_last_group_wins_for_a_repeated_member(engine: LayoutEngine) -> None:
    groups = [group("first", "A"), group("second", "A")]

    result = engine.layout([card("A")], [], [], [], groups, focus=ORIGIN)

    assert result.group_of("A").label == "second"
    assert group_labels(groups) == {"A": "second"}


def test_connections_resolve_to_node_centers(engine: LayoutEngine) -> None:
    result = engine.layout([card("A"), card("B")], [], [], [conn("A", "B", "leads to")], [], focus=ORIGIN)

    resolved = result.connections[0]
    assert resolved.label == "leads to"
    assert resolved.start == result.node("A").bounds.center
    assert resolved.end == result.node("B").bounds.center


def test_unresolved_connections_are_skipped(engine: LayoutEngine) -> None:
    connections = [conn("A", "Ghost"), ToolCall(operation="connection", parameters={"from": "A"})]

    result = engine.layout([card("A")], [], [], connections, [], focus=ORIGIN)

    assert result.connections == ()
    assert result.node("A").layer_index == 0


def test_connection_may_target_a_table(engine: LayoutEngine) -> None:
    tables = [ToolCall(operation="table", parameters={"title": "Budget", "headers": ["a"], "rows": []})]

    result = engine.layout([card("A")], tables, [], [conn("A", "Budget")], [], focus=ORIGIN)

    assert [(c.source, c.target) for c in result.connections] == [("A", "Budget")]


def test_duplicate_names_bind_to_the_last_node(engine: LayoutEngine) -> None:
    first = ToolCall(operation="card", parameters={"name": "A", "n": 1})
    second = ToolCall(operation="card", parameters={"name": "A", "n": 2})

    result = engine.layout([first, second, card("B")], [], [], [conn("A", "B")], [], focus=ORIGIN)

    assert result.node("A").parameters["n"] == 2
    assert result.connections[0].start == result.node("A").bounds.center
