"""
Query engine: turns a data source plus a widget config into render-ready rows.

Every function here is pure and total over well-typed input. The order of
operations is fixed: filter -> aggregate (pie) -> sort (table) -> paginate (table).
"""

import functools
import logging
import math
import re
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel, Field
from pyuca import Collator

from board.models import DataSource, Row, SortDirection, SortState, Widget, WidgetType
from board.palette import ColorSource, series_colors, slice_colors
from board.widgets import typed_config

logger = logging.getLogger(__name__)

Resolver = Callable[[Optional[str]], Optional[DataSource]]

_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

EMPTY_CELL = "-"


class EmptyReason(str, Enum):
    NO_DATA_SOURCE = "no_data_source"  # unset or dangling reference
    NO_MATCHING_DATA = "no_matching_data"  # bound, but nothing to render


class Page(NamedTuple):
    rows: List[Row]
    total_pages: int


class WidgetData(BaseModel):
    """Shape handed to the rendering collaborator."""
    widget_type: WidgetType
    rows: List[Row] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    series: List[str] = Field(default_factory=list, description="Data keys drawn as lines/bars/slices")
    colors: List[str] = Field(default_factory=list)
    total_rows: int = 0
    total_pages: int = 0
    content: Optional[str] = None
    empty_reason: Optional[EmptyReason] = None


# ── Value helpers ────────────────────────────────────


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not (
        isinstance(value, float) and math.isnan(value)
    )


def to_number(value: Any) -> float | int:
    """Leading-number parse; anything non-numeric counts as 0."""
    if is_number(value):
        return value
    if isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if match:
            return float(match.group(0))
    return 0


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_cell(value: Any) -> str:
    """Table cell text; missing values render as a dash."""
    return _text(value) or EMPTY_CELL


def _strict_equals(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def _comparable(a: Any, b: Any) -> bool:
    return (is_number(a) and is_number(b)) or (isinstance(a, str) and isinstance(b, str))


# ── Filter ───────────────────────────────────────────


def _is_vacuous(expected: Any) -> bool:
    return expected is None or (isinstance(expected, str) and expected == "")


def _is_range(expected: Any) -> bool:
    return isinstance(expected, dict) and ("min" in expected or "max" in expected)


def _in_range(value: Any, low: Any, high: Any) -> bool:
    if low is not None and not (_comparable(value, low) and value >= low):
        return False
    if high is not None and not (_comparable(value, high) and value <= high):
        return False
    return True


def _matches(row: Row, column: str, expected: Any) -> bool:
    if _is_vacuous(expected):
        return True

    value = row.get(column)
    if _is_range(expected):
        return _in_range(value, expected.get("min"), expected.get("max"))
    if isinstance(expected, (list, tuple)):
        return any(_strict_equals(value, item) for item in expected)
    return _strict_equals(value, expected)


def filter_rows(rows: Iterable[Row], spec: Optional[Dict[str, Any]]) -> List[Row]:
    """
    Keep the rows matching every entry of the filter spec, in their original order.

    Entry values: scalar (equality), {min, max} (inclusive range, either bound
    optional), list (membership). None and "" match everything.
    """
    if not spec:
        return list(rows)
    return [row for row in rows if all(_matches(row, col, expected) for col, expected in spec.items())]


# ── Columns ──────────────────────────────────────────


def select_columns(source_columns: Sequence[str], requested: Optional[Sequence[str]] = None) -> List[str]:
    """Requested columns in data source order; all columns when none are requested."""
    if not requested:
        return list(source_columns)
    wanted = set(requested)
    return [col for col in source_columns if col in wanted]


# ── Aggregation ──────────────────────────────────────


def _category_key(value: Any) -> str:
    if value is None:
        return "null"
    return _text(value)


def aggregate_categorical(
    rows: Iterable[Row],
    category: str,
    value: str,
    aggregated: bool = False,
) -> List[Dict[str, Any]]:
    """
    Reduce rows to `{name, value}` pairs.

    When `aggregated` is set every row already is one pair. Otherwise rows are
    grouped by category and the value column is summed, groups kept in
    first-seen order.
    """
    if aggregated:
        return [{"name": row.get(category), "value": row.get(value)} for row in rows]

    totals: Dict[str, float | int] = {}
    for row in rows:
        key = _category_key(row.get(category))
        totals[key] = totals.get(key, 0) + to_number(row.get(value))
    return [{"name": name, "value": total} for name, total in totals.items()]


# ── Sort ─────────────────────────────────────────────


@functools.lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _collation_key(value: Any) -> tuple:
    # NUL is ignorable for collation
    return _collator().sort_key(_text(value).lower().replace("\x00", ""))


def _compare(a: Any, b: Any) -> int:
    if is_number(a) and is_number(b):
        return (a > b) - (a < b)
    sa = _collation_key(a)
    sb = _collation_key(b)
    return (sa > sb) - (sa < sb)


def sort_rows(rows: Iterable[Row], state: Optional[SortState]) -> List[Row]:
    """Stable sort by the selected column; no-op without a column and direction."""
    rows = list(rows)
    if state is None or not state.column or state.direction is None:
        return rows

    column = state.column
    key = functools.cmp_to_key(lambda r1, r2: _compare(r1.get(column), r2.get(column)))
    return sorted(rows, key=key, reverse=state.direction == SortDirection.DESC)


def toggle_sort(state: SortState, column: str) -> SortState:
    """Header click: null -> asc -> desc -> null; another column starts at asc."""
    if state.column != column or state.direction is None:
        return SortState(column=column, direction=SortDirection.ASC)
    if state.direction == SortDirection.ASC:
        return SortState(column=column, direction=SortDirection.DESC)
    return SortState()


# ── Pagination ───────────────────────────────────────


def total_pages(total: int, page_size: int) -> int:
    """ceil(total / page_size); zero rows give zero pages."""
    return math.ceil(total / max(1, page_size))


def paginate(rows: Sequence[Row], page: int, page_size: int) -> Page:
    """Slice `[page * size, page * size + size)`; the caller clamps `page`."""
    page_size = max(1, page_size)
    start = max(0, page) * page_size
    return Page(rows=list(rows[start:start + page_size]), total_pages=total_pages(len(rows), page_size))


# ── Widget pipeline ──────────────────────────────────


def build_widget_data(
    widget: Widget,
    resolve: Resolver,
    sort_state: Optional[SortState] = None,
    page: int = 0,
    page_size: Optional[int] = None,
    color_source: Optional[ColorSource] = None,
    single_series_color: str = "#8884d8",
) -> WidgetData:
    """
    Run the full pipeline for one widget.

    Unset and dangling data source references both give an empty result with
    `EmptyReason.NO_DATA_SOURCE`. Incomplete column bindings give an empty
    result with `EmptyReason.NO_MATCHING_DATA`.
    """
    cfg = typed_config(widget)

    if widget.type == WidgetType.TEXT:
        return WidgetData(widget_type=widget.type, content=cfg.content)

    source = resolve(widget.data_source)
    if source is None:
        return WidgetData(widget_type=widget.type, empty_reason=EmptyReason.NO_DATA_SOURCE)

    rows = filter_rows(source.data, cfg.filters)

    if widget.type == WidgetType.LINE:
        result = _line_data(cfg, rows, source, color_source, single_series_color)
    elif widget.type == WidgetType.BAR:
        result = _bar_data(cfg, rows, source, color_source, single_series_color)
    elif widget.type == WidgetType.PIE:
        result = _pie_data(cfg, rows)
    else:
        result = _table_data(cfg, rows, source, sort_state, page, page_size)

    if result.total_rows == 0:
        result.empty_reason = EmptyReason.NO_MATCHING_DATA
    return result


def _chart_colors(cfg, count: int, color_source, single_series_color) -> List[str]:
    if count == 1:
        return series_colors(1, cfg.colors, lambda _i: single_series_color)
    return series_colors(count, cfg.colors, color_source)


def _line_data(cfg, rows, source, color_source, single_series_color) -> WidgetData:
    if not cfg.x or not cfg.y:
        return WidgetData(widget_type=WidgetType.LINE, columns=list(source.columns))

    series = list(cfg.values) if cfg.values else [cfg.y]
    return WidgetData(
        widget_type=WidgetType.LINE,
        rows=rows,
        columns=list(source.columns),
        series=series,
        colors=_chart_colors(cfg, len(series), color_source, single_series_color),
        total_rows=len(rows),
    )


def _bar_data(cfg, rows, source, color_source, single_series_color) -> WidgetData:
    if not cfg.category:
        return WidgetData(widget_type=WidgetType.BAR, columns=list(source.columns))

    if isinstance(cfg.values, list):
        series = list(cfg.values)
    else:
        series = [col for col in [cfg.values or cfg.y] if col]
    return WidgetData(
        widget_type=WidgetType.BAR,
        rows=rows,
        columns=list(source.columns),
        series=series,
        colors=_chart_colors(cfg, len(series), color_source, single_series_color),
        total_rows=len(rows),
    )


def _pie_data(cfg, rows) -> WidgetData:
    if not cfg.category or not cfg.value:
        return WidgetData(widget_type=WidgetType.PIE)

    slices = aggregate_categorical(rows, cfg.category, cfg.value, cfg.aggregated)
    return WidgetData(
        widget_type=WidgetType.PIE,
        rows=slices,
        columns=["name", "value"],
        series=["value"],
        colors=slice_colors(len(slices), cfg.colors),
        total_rows=len(slices),
    )


def _table_data(cfg, rows, source, sort_state, page, page_size) -> WidgetData:
    columns = select_columns(source.columns, cfg.columns)
    rows = sort_rows(rows, sort_state)
    total = len(rows)

    if page_size:
        paged = paginate(rows, page, page_size)
        rows, pages = paged.rows, paged.total_pages
    else:
        pages = 1 if total else 0

    return WidgetData(
        widget_type=WidgetType.TABLE,
        rows=rows,
        columns=columns,
        total_rows=total,
        total_pages=pages,
    )
