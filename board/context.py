"""
Board context: wires config, storage and the two stores together and exposes
the dashboard-level operations (render data, export/import, clear).
"""

import logging
from pathlib import Path
from typing import Optional

from board.config_loader import AppConfig, find_root, load_config
from board.dashboard_store import DashboardStore
from board.data_registry import DataSourceRegistry
from board.export import apply_import, export_dashboard, import_dashboard
from board.ingestion import FileInput, TableParser
from board.ingestion import import_file as ingest_file
from board.models import DashboardExport, DataSource, SortState, Widget, WidgetType
from board.pagination import ResponsivePaginationController, SizeObserver
from board.palette import ColorSource, cycle_color
from board.persistence import StateStorage, create_storage
from board.query import WidgetData, build_widget_data
from board.widgets import new_widget

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class BoardContext:
    """Process-wide dashboard state with an injected storage backend."""

    def __init__(self, config: AppConfig, storage: StateStorage):
        self.config = config
        self.storage = storage
        self.registry = DataSourceRegistry(storage, config.data_sources_namespace)
        self.dashboard = DashboardStore(storage, config.dashboard_namespace)

    # ── Data ─────────────────────────────────────────────

    def import_file(self, file: FileInput, name: Optional[str] = None, parser: Optional[TableParser] = None) -> DataSource:
        return ingest_file(self.registry, file, name=name, parser=parser, preview_rows=self.config.preview_rows)

    def widget_data(
        self,
        widget_id: str,
        sort_state: Optional[SortState] = None,
        page: int = 0,
        page_size: Optional[int] = None,
        color_source: Optional[ColorSource] = None,
    ) -> Optional[WidgetData]:
        """Render-ready data for a widget; None if the widget does not exist."""
        widget = self.dashboard.get_widget(widget_id)
        if widget is None:
            return None
        palette = self.config.palette
        return build_widget_data(
            widget,
            self.registry.resolve,
            sort_state=sort_state,
            page=page,
            page_size=page_size,
            color_source=color_source or (lambda i: cycle_color(i, palette)),
            single_series_color=self.config.single_series_color,
        )

    def pagination_controller(
        self, observer: Optional[SizeObserver] = None, initial_height: Optional[float] = None
    ) -> ResponsivePaginationController:
        return ResponsivePaginationController(observer, self.config.pagination, initial_height)

    def add_widget(
        self,
        widget_type: WidgetType | str,
        position: Optional[tuple[int, int]] = None,
        title: Optional[str] = None,
        data_source: Optional[str] = None,
    ) -> Widget:
        size = self.config.default_widget_size
        widget = new_widget(widget_type, position, (size.w, size.h), title=title, data_source=data_source)
        return self.dashboard.add_widget(widget)

    # ── Export / import ──────────────────────────────────

    def export(self, name: str) -> DashboardExport:
        return export_dashboard(
            name, self.dashboard.widgets, self.registry.list(), version=self.config.export_version
        )

    def import_document(self, raw) -> DashboardExport:
        """Validate first; stores are only touched once the whole document is valid."""
        doc = raw if isinstance(raw, DashboardExport) else import_dashboard(raw)
        apply_import(doc, self.dashboard, self.registry)
        return doc

    def clear_all(self):
        self.dashboard.clear()
        self.registry.clear()
        logger.info("All dashboard data cleared")

    def close(self):
        self.storage.close()


def create_context(
    config: Optional[AppConfig] = None,
    storage: Optional[StateStorage] = None,
    root: Optional[Path] = None,
    configure_logging: bool = False,
) -> BoardContext:
    """Load config (if not given), open storage and hydrate both stores."""
    config = config or load_config()
    if configure_logging:
        setup_logging(config.log_level)
    storage = storage or create_storage(config, root or find_root())
    context = BoardContext(config, storage)
    logger.info(
        f"Board ready: {len(context.dashboard.widgets)} widgets, {len(context.registry.list())} data sources"
    )
    return context
