"""Deterministic placement of one batch of operations on the canvas."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from canvas_agent.core.config import LayoutConfig
from canvas_agent.layout.graph import (
    connection_endpoints,
    group_items,
    group_label,
    group_labels,
    order_by_group,
    topological_layers,
)
from canvas_agent.layout.models import (
    BoundingBox,
    LayoutNode,
    LayoutResult,
    PlacedQuestion,
    Point,
    ResolvedConnection,
    ResolvedGroup,
)
from canvas_agent.parsing.models import ToolCall

logger = logging.getLogger(__name__)

UNTITLED_CARD = "Untitled"
UNTITLED_TABLE = "Table"


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def card_name(card: ToolCall) -> str:
    return _text(card.param("name"), UNTITLED_CARD)


def has_image(card: ToolCall) -> bool:
    return bool(card.param("imageUrl") or card.param("image_url"))


class LayoutEngine:
    """Place cards, tables and slides, then resolve connections and groups.

    Cards use a plain grid unless the batch declares relationships
    (connections or groups), in which case they are stacked in topological
    layers. Tables and slides are always appended below whatever was placed
    before them.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def layout(
        self,
        cards: Sequence[ToolCall],
        tables: Sequence[ToolCall],
        slides: Sequence[ToolCall],
        connections: Sequence[ToolCall],
        groups: Sequence[ToolCall],
        *,
        focus: Point,
        questions: Sequence[ToolCall] = (),
    ) -> LayoutResult:
        layered = bool(connections or groups)
        if layered:
            card_nodes = self._layered(cards, connections, groups, focus)
        else:
            card_nodes = self._grid(cards, focus)

        card_bounds = BoundingBox.enclosing(n.bounds for n in card_nodes)
        next_layer = max((n.layer_index for n in card_nodes), default=-1) + 1
        stacked = self._stack(tables, slides, focus, card_bounds, next_layer)

        nodes = tuple(card_nodes + stacked)
        bounds = BoundingBox.enclosing(n.bounds for n in nodes)
        by_name = {node.name: node for node in nodes}

        result = LayoutResult(
            nodes=nodes,
            bounds=bounds,
            connections=tuple(self._resolve_connections(connections, by_name)),
            groups=tuple(self._resolve_groups(groups, by_name)),
            question=self._place_question(questions, bounds, focus),
            mode="layered" if layered else "grid",
        )
        logger.debug(
            "Layout computed",
            extra={
                "mode": result.mode,
                "nodes": len(result.nodes),
                "connections": len(result.connections),
                "groups": len(result.groups),
            },
        )
        return result

    def focus_region(self, result: LayoutResult) -> BoundingBox | None:
        """Region the viewport should frame after materialization."""

        if result.bounds is None:
            return None
        return result.bounds.expand(self.config.focus_padding)

    def summary_node(self, summary: str, *, focus: Point, label: str = "") -> LayoutNode:
        """Node for the plain-text fallback when a reply held no operations."""

        cfg = self.config
        return LayoutNode(
            name=label or "Summary",
            kind="summary",
            width=cfg.summary_width,
            height=cfg.summary_height,
            position=Point(focus.x - cfg.summary_width / 2, focus.y - cfg.summary_height / 2),
            parameters={"summary": summary, "request": label},
        )

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def _card_height(self, card: ToolCall) -> float:
        return self.config.card_image_height if has_image(card) else self.config.card_height

    def _row_start_x(self, count: int, focus: Point) -> float:
        cfg = self.config
        row_width = count * (cfg.card_width + cfg.gap) - cfg.gap
        return focus.x - row_width / 2

    def grid_shape(self, count: int) -> tuple[int, int]:
        """``(columns, rows)`` of the grid for ``count`` cards."""

        if count <= 0:
            return (0, 0)
        columns = min(count, self.config.max_columns)
        return (columns, math.ceil(count / columns))

    def _grid(self, cards: Sequence[ToolCall], focus: Point) -> list[LayoutNode]:
        cfg = self.config
        columns, rows = self.grid_shape(len(cards))
        if not columns:
            return []

        start_x = self._row_start_x(columns, focus)
        y = focus.y + cfg.anchor_offset_y
        nodes: list[LayoutNode] = []
        for row in range(rows):
            row_cards = cards[row * columns : (row + 1) * columns]
            row_height = max(self._card_height(card) for card in row_cards)
            for col, card in enumerate(row_cards):
                nodes.append(
                    LayoutNode(
                        name=card_name(card),
                        kind="card",
                        width=cfg.card_width,
                        height=self._card_height(card),
                        position=Point(start_x + col * (cfg.card_width + cfg.gap), y),
                        layer_index=row,
                        parameters=card.parameters,
                    )
                )
            y += row_height + cfg.gap
        return nodes

    def _layered(
        self,
        cards: Sequence[ToolCall],
        connections: Sequence[ToolCall],
        groups: Sequence[ToolCall],
        focus: Point,
    ) -> list[LayoutNode]:
        cfg = self.config
        names = [card_name(card) for card in cards]
        layers = topological_layers(names, connection_endpoints(connections))
        labels = group_labels(groups)

        y = focus.y + cfg.anchor_offset_y
        nodes: list[LayoutNode] = []
        for layer_index, layer in enumerate(layers):
            ordered = order_by_group(layer, names, labels)
            start_x = self._row_start_x(len(ordered), focus)
            for position, i in enumerate(ordered):
                card = cards[i]
                nodes.append(
                    LayoutNode(
                        name=names[i],
                        kind="card",
                        width=cfg.card_width,
                        height=self._card_height(card),
                        position=Point(start_x + position * (cfg.card_width + cfg.gap), y),
                        layer_index=layer_index,
                        parameters=card.parameters,
                    )
                )
            y += max(self._card_height(cards[i]) for i in ordered) + cfg.layer_gap
        return nodes

    # ------------------------------------------------------------------
    # Tables and slides
    # ------------------------------------------------------------------

    def table_size(self, table: ToolCall) -> tuple[float, float]:
        """Estimated ``(width, height)`` of a table from its data alone."""

        cfg = self.config
        headers = _as_list(table.param("headers"))
        rows = _as_list(table.param("rows"))
        sheets = [s for s in _as_list(table.param("sheets")) if isinstance(s, dict)]

        if sheets:
            column_count = max(len(_as_list(s.get("headers"))) for s in sheets)
            row_count = max(len(_as_list(s.get("rows"))) for s in sheets)
            has_headers = any(_as_list(s.get("headers")) for s in sheets)
        else:
            column_count = len(headers)
            row_count = len(rows)
            has_headers = bool(headers)

        width = max(1, column_count) * cfg.table_column_width + cfg.table_side_padding
        width = max(cfg.table_min_width, min(cfg.table_max_width, width))

        height = cfg.table_title_height
        if has_headers:
            height += cfg.table_row_height
        height += row_count * cfg.table_row_height
        if len(sheets) > 1:
            height += cfg.table_tab_bar_height
        height += cfg.table_bottom_padding
        return (width, height)

    def _stack(
        self,
        tables: Sequence[ToolCall],
        slides: Sequence[ToolCall],
        focus: Point,
        above: BoundingBox | None,
        first_layer: int,
    ) -> list[LayoutNode]:
        cfg = self.config
        bottom = above.max_y if above is not None else None
        nodes: list[LayoutNode] = []

        def place(name: str, kind: str, width: float, height: float, gap: float, params: Any) -> None:
            nonlocal bottom
            y = bottom + gap if bottom is not None else focus.y + cfg.anchor_offset_y
            nodes.append(
                LayoutNode(
                    name=name,
                    kind=kind,
                    width=width,
                    height=height,
                    position=Point(focus.x - width / 2, y),
                    layer_index=first_layer + len(nodes),
                    parameters=params,
                )
            )
            bottom = y + height

        for table in tables:
            width, height = self.table_size(table)
            name = _text(table.param("title"), UNTITLED_TABLE)
            place(name, "table", width, height, cfg.table_gap, table.parameters)

        for number, slide in enumerate(slides, start=1):
            name = _text(slide.param("title"), f"Slide {number}")
            place(name, "slide", cfg.slide_width, cfg.slide_height, cfg.slide_gap, slide.parameters)

        return nodes

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def _resolve_connections(
        self, connections: Sequence[ToolCall], by_name: dict[str, LayoutNode]
    ) -> list[ResolvedConnection]:
        resolved = []
        for conn in connections:
            source_name, target_name = conn.param("from"), conn.param("to")
            source = by_name.get(source_name) if isinstance(source_name, str) else None
            target = by_name.get(target_name) if isinstance(target_name, str) else None
            if source is None or target is None:
                logger.debug(
                    "Skipping connection with unresolved endpoint",
                    extra={"from": source_name, "to": target_name},
                )
                continue
            resolved.append(
                ResolvedConnection(
                    source=source.name,
                    target=target.name,
                    label=_text(conn.param("label"), ""),
                    start=source.bounds.center,
                    end=target.bounds.center,
                )
            )
        return resolved

    def _resolve_groups(
        self, groups: Sequence[ToolCall], by_name: dict[str, LayoutNode]
    ) -> list[ResolvedGroup]:
        resolved = []
        for group in groups:
            members: list[str] = []
            for name in group_items(group):
                if name in by_name and name not in members:
                    members.append(name)
            if not members:
                logger.debug("Skipping group with no resolvable members", extra={"label": group_label(group)})
                continue

            bounds = BoundingBox.enclosing(by_name[name].bounds for name in members)
            if bounds is None:
                continue
            resolved.append(
                ResolvedGroup(
                    label=group_label(group),
                    members=tuple(members),
                    bounds=bounds.expand(self.config.group_padding),
                )
            )
        return resolved

    def _place_question(
        self, questions: Sequence[ToolCall], bounds: BoundingBox | None, focus: Point
    ) -> PlacedQuestion | None:
        cfg = self.config
        for call in questions:
            question = call.param("question")
            if not isinstance(question, str) or not question:
                continue
            options = tuple(o for o in _as_list(call.param("options")) if isinstance(o, str))
            if bounds is not None:
                position = Point(bounds.center.x - cfg.question_width / 2, bounds.max_y + cfg.question_gap)
            else:
                position = Point(focus.x - cfg.question_width / 2, focus.y)
            return PlacedQuestion(question=question, options=options, position=position)
        return None
