"""Relationship graph helpers for layered placement."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from canvas_agent.parsing.models import ToolCall


def connection_endpoints(connections: Iterable[ToolCall]) -> list[tuple[str, str]]:
    """``(from, to)`` name pairs of every connection with string endpoints."""

    edges = []
    for conn in connections:
        source, target = conn.param("from"), conn.param("to")
        if isinstance(source, str) and isinstance(target, str):
            edges.append((source, target))
    return edges


def group_items(group: ToolCall) -> list[str]:
    items = group.param("items")
    if items is None:
        items = group.param("members")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, str)]


def group_label(group: ToolCall) -> str:
    label = group.param("label")
    return label if isinstance(label, str) else ""


def group_labels(groups: Iterable[ToolCall]) -> dict[str, str]:
    """Map each member name to its group's label. A later group overrides an earlier one."""

    labels: dict[str, str] = {}
    for group in groups:
        label = group_label(group)
        for name in group_items(group):
            labels[name] = label
    return labels


def topological_layers(names: Sequence[str], edges: Iterable[tuple[str, str]]) -> list[list[int]]:
    """Kahn layering over node indices.

    Each layer holds every node whose dependencies are all in earlier layers,
    in original order. When only cycles remain, every remaining node goes
    into one final layer. Names bind to the last node carrying them; edges
    whose endpoints name no node are ignored.
    """

    index = {name: i for i, name in enumerate(names)}
    adjacency: list[list[int]] = [[] for _ in names]
    in_degree = [0] * len(names)
    for source, target in edges:
        s, t = index.get(source), index.get(target)
        if s is None or t is None:
            continue
        adjacency[s].append(t)
        in_degree[t] += 1

    layers: list[list[int]] = []
    remaining = list(range(len(names)))
    while remaining:
        layer = [i for i in remaining if in_degree[i] == 0]
        if not layer:
            layers.append(remaining)
            break

        layers.append(layer)
        placed = set(layer)
        remaining = [i for i in remaining if i not in placed]
        for i in layer:
            for j in adjacency[i]:
                in_degree[j] -= 1
    return layers


def order_by_group(layer: Sequence[int], names: Sequence[str], labels: dict[str, str]) -> list[int]:
    """Stable sort: ungrouped nodes first, then by group label."""

    def key(i: int) -> tuple[int, str]:
        name = names[i]
        return (1, labels[name]) if name in labels else (0, "")

    return sorted(layer, key=key)
