import pytest

from board.dashboard_store import DashboardStore
from board.data_registry import DataSourceRegistry
from board.models import DataSource, Widget, WidgetLayout
from board.persistence import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def registry(storage):
    return DataSourceRegistry(storage)


@pytest.fixture
def dashboard(storage):
    return DashboardStore(storage)


@pytest.fixture
def sales_source():
    return DataSource(
        id="ds-sales",
        name="sales.csv",
        columns=["date", "region", "sales"],
        data=[
            {"date": "2024-01", "region": "east", "sales": 100},
            {"date": "2024-01", "region": "west", "sales": 50},
        ],
    )


@pytest.fixture
def make_widget():
    def _make(widget_id="w1", widget_type="table", data_source=None, config=None, **layout):
        return Widget(
            id=widget_id,
            type=widget_type,
            title=f"{widget_type} widget",
            data_source=data_source,
            config=config or {},
            layout=WidgetLayout(**layout),
        )

    return _make
