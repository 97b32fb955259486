"""
Widget model helpers: creation defaults, typed config views and the
settings-panel save path.
"""

import logging
import secrets
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from board.config_loader import DEFAULT_PALETTE
from board.models import CONFIG_TYPES, Widget, WidgetConfig, WidgetLayout, WidgetType

logger = logging.getLogger(__name__)

# Keys the settings panel owns; everything else in config is left alone.
SETTINGS_KEYS = (
    "x", "y", "category", "value", "values", "xAxisLabel", "yAxisLabel",
    "showLegend", "colors", "columns",
)

_UNSET = object()


def generate_widget_id() -> str:
    return secrets.token_urlsafe(16)


def default_title(widget_type: WidgetType) -> str:
    return f"{widget_type.value.capitalize()} Widget"


def new_widget(
    widget_type: WidgetType | str,
    position: Optional[Tuple[int, int]] = None,
    size: Optional[Tuple[int, int]] = None,
    id_factory: Callable[[], str] = generate_widget_id,
    title: Optional[str] = None,
    data_source: Optional[str] = None,
) -> Widget:
    """Create a widget with empty config at a grid position."""
    widget_type = WidgetType(widget_type)
    x, y = position or (0, 0)
    w, h = size or (6, 5)
    return Widget(
        id=id_factory(),
        type=widget_type,
        title=title or default_title(widget_type),
        data_source=data_source,
        config={},
        layout=WidgetLayout(x=x, y=y, w=w, h=h),
    )


def typed_config(widget: Widget) -> WidgetConfig:
    """
    Typed view of the widget's config for its type.
    Config that fails validation degrades to an empty variant.
    """
    config_type = CONFIG_TYPES[widget.type]
    try:
        return config_type.model_validate(widget.config)
    except ValidationError as e:
        logger.warning(f"[{widget.id}] invalid {widget.type.value} config, ignoring: {e.error_count()} errors")
        return config_type()


# ── Settings ─────────────────────────────────────────


def default_settings() -> Dict[str, Any]:
    return {
        "x": "",
        "y": "",
        "category": "",
        "value": "",
        "values": [],
        "xAxisLabel": "",
        "yAxisLabel": "",
        "showLegend": True,
        "colors": list(DEFAULT_PALETTE),
        "columns": [],
    }


def settings_for(widget: Widget) -> Dict[str, Any]:
    """Settings form values for a widget, defaults filled in."""
    settings = default_settings()
    for key in SETTINGS_KEYS:
        current = widget.config.get(key)
        if key == "showLegend":
            settings[key] = current is not False
        elif current:
            settings[key] = current
    return settings


def reset_settings_for_source() -> Dict[str, Any]:
    """Binding a different data source drops every column binding."""
    return default_settings()


def merge_config(widget: Widget, settings: Dict[str, Any]) -> Dict[str, Any]:
    """New keys overwrite, keys not in `settings` persist."""
    return {**widget.config, **settings}


def apply_settings(
    store,
    widget_id: str,
    settings: Optional[Dict[str, Any]] = None,
    title: Optional[str] = None,
    data_source: Any = _UNSET,
) -> Optional[Widget]:
    """
    Save the settings panel into the dashboard store.
    Config is merged here, the store only does a top-level merge.
    """
    widget = store.get_widget(widget_id)
    if widget is None:
        return None

    partial: Dict[str, Any] = {}
    if title is not None:
        partial["title"] = title
    if data_source is not _UNSET:
        partial["dataSource"] = data_source or None
    if settings is not None:
        partial["config"] = merge_config(widget, settings)

    if not partial:
        return widget
    return store.update_widget(widget_id, partial)
