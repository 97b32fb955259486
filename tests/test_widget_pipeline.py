from board.models import SortDirection, SortState
from board.query import EmptyReason, build_widget_data


def test_pie_scenario(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(widget_type="pie", data_source="ds-sales", config={"category": "region", "value": "sales"})

    data = build_widget_data(widget, registry.resolve)

    assert data.rows == [{"name": "east", "value": 100}, {"name": "west", "value": 50}]
    assert data.empty_reason is None


def test_unset_and_dangling_references_are_equivalent(registry, sales_source, make_widget):
    registry.add(sales_source)
    config = {"category": "region", "value": "sales"}
    unset = make_widget(widget_type="pie", data_source=None, config=config)
    dangling = make_widget(widget_type="pie", data_source="ds-sales", config=config)
    registry.remove("ds-sales")

    a = build_widget_data(unset, registry.resolve)
    b = build_widget_data(dangling, registry.resolve)

    assert a.rows == b.rows == []
    assert a.empty_reason == b.empty_reason == EmptyReason.NO_DATA_SOURCE


def test_removing_source_leaves_widget_reference(registry, dashboard, sales_source, make_widget):
    registry.add(sales_source)
    dashboard.add_widget(make_widget(data_source="ds-sales"))

    registry.remove("ds-sales")

    assert dashboard.get_widget("w1").data_source == "ds-sales"
    assert build_widget_data(dashboard.get_widget("w1"), registry.resolve).empty_reason == EmptyReason.NO_DATA_SOURCE


def test_filtered_to_nothing_is_reported_separately(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(data_source="ds-sales", config={"filters": {"region": "north"}})

    data = build_widget_data(widget, registry.resolve)

    assert data.rows == []
    assert data.columns == ["date", "region", "sales"]
    assert data.empty_reason == EmptyReason.NO_MATCHING_DATA


def test_line_needs_both_axes(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(widget_type="line", data_source="ds-sales", config={"x": "date"})

    data = build_widget_data(widget, registry.resolve)

    assert data.rows == []
    assert data.empty_reason == EmptyReason.NO_MATCHING_DATA


def test_line_single_series_uses_default_color(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(widget_type="line", data_source="ds-sales", config={"x": "date", "y": "sales"})

    data = build_widget_data(widget, registry.resolve)

    assert data.series == ["sales"]
    assert data.colors == ["#8884d8"]
    assert len(data.rows) == 2


def test_bar_series_colors_use_injected_fallback(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(
        widget_type="bar",
        data_source="ds-sales",
        config={"category": "region", "values": ["sales", "date", "region"], "colors": ["#111111"]},
    )

    data = build_widget_data(widget, registry.resolve, color_source=lambda i: f"fallback-{i}")

    assert data.series == ["sales", "date", "region"]
    assert data.colors == ["#111111", "fallback-1", "fallback-2"]


def test_bar_single_value_column(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(widget_type="bar", data_source="ds-sales", config={"category": "region", "values": "sales"})

    data = build_widget_data(widget, registry.resolve)

    assert data.series == ["sales"]
    assert data.colors == ["#8884d8"]


def test_bar_filters_before_render(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(
        widget_type="bar",
        data_source="ds-sales",
        config={"category": "region", "values": ["sales"], "filters": {"sales": {"min": 60}}},
    )

    assert build_widget_data(widget, registry.resolve).rows == [sales_source.data[0]]


def test_pie_colors_wrap(registry, make_widget):
    from board.models import DataSource

    registry.add(DataSource(
        id="ds",
        name="t",
        columns=["c", "v"],
        data=[{"c": "a", "v": 1}, {"c": "b", "v": 1}, {"c": "c", "v": 1}],
    ))
    widget = make_widget(
        widget_type="pie", data_source="ds", config={"category": "c", "value": "v", "colors": ["#1", "#2"]}
    )

    assert build_widget_data(widget, registry.resolve).colors == ["#1", "#2", "#1"]


def test_table_selects_sorts_and_paginates(registry, make_widget):
    from board.models import DataSource

    registry.add(DataSource(
        id="ds",
        name="t",
        columns=["name", "score", "note"],
        data=[{"name": f"n{i}", "score": i % 3, "note": "x"} for i in range(7)],
    ))
    widget = make_widget(data_source="ds", config={"columns": ["score", "name"]})
    state = SortState(column="score", direction=SortDirection.ASC)

    data = build_widget_data(widget, registry.resolve, sort_state=state, page=1, page_size=3)

    assert data.columns == ["name", "score"]
    assert data.total_rows == 7
    assert data.total_pages == 3
    assert [r["name"] for r in data.rows] == ["n1", "n4", "n2"]


def test_malformed_config_degrades_to_empty(registry, sales_source, make_widget):
    registry.add(sales_source)
    widget = make_widget(widget_type="pie", data_source="ds-sales", config={"category": ["bad"], "value": 3})

    data = build_widget_data(widget, registry.resolve)

    assert data.rows == []
    assert data.empty_reason == EmptyReason.NO_MATCHING_DATA


def test_text_widget_needs_no_data_source(registry, make_widget):
    widget = make_widget(widget_type="text", config={"content": "<b>Hello</b>"})

    data = build_widget_data(widget, registry.resolve)

    assert data.content == "<b>Hello</b>"
    assert data.empty_reason is None
