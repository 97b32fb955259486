import json
from datetime import datetime, timezone

import pytest

from board.errors import InvalidFormat
from board.export import (
    apply_import,
    dumps_export,
    export_dashboard,
    export_filename,
    import_dashboard,
    load_dashboard,
    save_export,
)
from board.models import DataSource


def test_round_trip_reproduces_entities(sales_source, make_widget):
    widgets = [
        make_widget("w1", widget_type="pie", data_source="ds-sales",
                    config={"category": "region", "value": "sales", "filters": {"sales": {"min": 1}}}, x=1, y=2),
        make_widget("w2", widget_type="text", config={"content": "hi"}),
    ]

    doc = import_dashboard(dumps_export(export_dashboard("Sales", widgets, [sales_source])))

    assert doc.widgets == widgets
    assert doc.data_sources == [sales_source]
    assert doc.version == "1.0.0"


def test_export_document_shape(sales_source, make_widget):
    now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    doc = export_dashboard("Sales", [make_widget("w1", data_source="ds-sales")], [sales_source], now=now)

    payload = json.loads(dumps_export(doc))

    assert set(payload) == {"name", "widgets", "dataSources", "version", "createdAt"}
    assert payload["createdAt"] == "2024-03-01T12:00:00+00:00"
    assert payload["widgets"][0]["dataSource"] == "ds-sales"


@pytest.mark.parametrize("missing", ["widgets", "dataSources", "version"])
def test_import_rejects_missing_keys(missing):
    payload = {"name": "x", "widgets": [], "dataSources": [], "version": "1.0.0", "createdAt": ""}
    del payload[missing]
    with pytest.raises(InvalidFormat):
        import_dashboard(json.dumps(payload))


def test_import_rejects_broken_json_and_bad_entities():
    with pytest.raises(InvalidFormat):
        import_dashboard("{not json")
    with pytest.raises(InvalidFormat):
        import_dashboard("[]")
    with pytest.raises(InvalidFormat):
        import_dashboard({"widgets": [{"id": "w"}], "dataSources": [], "version": "1.0.0"})


def test_import_accepts_empty_collections():
    doc = import_dashboard({"widgets": [], "dataSources": [], "version": "1.0.0"})
    assert doc.widgets == [] and doc.data_sources == []


def test_export_filename():
    assert export_filename("My  Sales Board") == "my-sales-board-dashboard.json"


def test_save_and_load(tmp_path, sales_source):
    doc = export_dashboard("Q1 Report", [], [sales_source])

    path = save_export(doc, tmp_path)

    assert path.name == "q1-report-dashboard.json"
    assert load_dashboard(path).data_sources == [sales_source]


def test_apply_import_replaces_store_contents(dashboard, registry, make_widget):
    registry.add(DataSource(id="old", name="old"))
    dashboard.add_widget(make_widget("old-widget"))
    doc = export_dashboard("New", [make_widget("new-widget")], [DataSource(id="new", name="new")])

    apply_import(doc, dashboard, registry)

    assert [w.id for w in dashboard.widgets] == ["new-widget"]
    assert [s.id for s in registry.list()] == ["new"]
