"""
Data models for data sources, widgets and the dashboard export document.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Row = Dict[str, Any]


class WidgetType(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    TABLE = "table"
    TEXT = "text"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ── Data sources ─────────────────────────────────────


class DataSource(BaseModel):
    """A named tabular dataset available for binding to widgets."""
    id: str
    name: str
    columns: List[str] = Field(default_factory=list, description="Ordered header row")
    data: List[Row] = Field(default_factory=list, description="Rows keyed by column name")
    preview: Optional[List[Row]] = Field(default=None, description="Cached prefix of data")


def compute_preview(data: List[Row], limit: int = 5) -> List[Row]:
    """Rebuild the preview prefix from the authoritative rows."""
    return [dict(row) for row in data[:limit]]


# ── Widgets ──────────────────────────────────────────


class WidgetLayout(BaseModel):
    """Grid cell position and span of a widget."""
    x: int = Field(default=0, description="X position in grid columns")
    y: int = Field(default=0, description="Y position in grid rows")
    w: int = Field(default=6, description="Width in grid columns")
    h: int = Field(default=5, description="Height in grid rows")


class Widget(BaseModel):
    """A declarative visual unit on the dashboard grid."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: WidgetType
    title: str = ""
    data_source: Optional[str] = Field(
        default=None, alias="dataSource", description="Weak reference to a DataSource id"
    )
    config: Dict[str, Any] = Field(default_factory=dict, description="Type specific settings")
    layout: WidgetLayout = Field(default_factory=WidgetLayout)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Typed widget config ──────────────────────────────
# Read-only views over Widget.config. Unknown keys are ignored here but stay
# in Widget.config untouched.


class CommonConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    filters: Optional[Dict[str, Any]] = None
    x_axis_label: Optional[str] = Field(default=None, alias="xAxisLabel")
    y_axis_label: Optional[str] = Field(default=None, alias="yAxisLabel")
    show_legend: bool = Field(default=True, alias="showLegend")
    value_label: Optional[str] = Field(default=None, alias="valueLabel")
    colors: Optional[List[str]] = None


class LineConfig(CommonConfig):
    x: Optional[str] = None
    y: Optional[str] = None
    values: Optional[List[str]] = None


class BarConfig(CommonConfig):
    category: Optional[str] = None
    values: Optional[Union[List[str], str]] = None
    y: Optional[str] = None


class PieConfig(CommonConfig):
    category: Optional[str] = None
    value: Optional[str] = None
    aggregated: bool = False


class TableConfig(CommonConfig):
    columns: Optional[List[str]] = None


class TextConfig(CommonConfig):
    content: Optional[str] = None


WidgetConfig = Union[LineConfig, BarConfig, PieConfig, TableConfig, TextConfig]

CONFIG_TYPES: Dict[WidgetType, type] = {
    WidgetType.LINE: LineConfig,
    WidgetType.BAR: BarConfig,
    WidgetType.PIE: PieConfig,
    WidgetType.TABLE: TableConfig,
    WidgetType.TEXT: TextConfig,
}


# ── Table state ──────────────────────────────────────


class SortState(BaseModel):
    """Column sort selection of a table widget. Not persisted."""
    column: Optional[str] = None
    direction: Optional[SortDirection] = None


# ── Export document ──────────────────────────────────


class DashboardExport(BaseModel):
    """Interchange document holding a whole dashboard."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    widgets: List[Widget]
    data_sources: List[DataSource] = Field(alias="dataSources")
    version: str
    created_at: str = Field(alias="createdAt", description="ISO-8601 timestamp")
