"""
Dashboard store: owns the widget collection and the active widget selection.
Every mutation is synchronous and written through to storage.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from board.models import Widget, WidgetLayout
from board.persistence import PersistentStore, StateStorage

logger = logging.getLogger(__name__)

_LAYOUT_FIELDS = ("x", "y", "w", "h")


class DashboardStore(PersistentStore):
    """Ordered, persisted collection of Widgets."""

    def __init__(self, storage: StateStorage, namespace: str = "dashboard-storage"):
        self._widgets: List[Widget] = []
        self.active_widget: Optional[str] = None
        super().__init__(storage, namespace)

    # ── Persistence ──────────────────────────────────────

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "widgets": [w.dump() for w in self._widgets],
            "activeWidget": self.active_widget,
        }

    def _restore(self, state: Dict[str, Any]):
        self._widgets = [Widget.model_validate(item) for item in state.get("widgets", [])]
        self.active_widget = state.get("activeWidget")
        logger.info(f"Restored {len(self._widgets)} widgets")

    # ── Queries ──────────────────────────────────────────

    @property
    def widgets(self) -> List[Widget]:
        return list(self._widgets)

    def get_widget(self, widget_id: str) -> Optional[Widget]:
        for w in self._widgets:
            if w.id == widget_id:
                return w
        return None

    def _index_of(self, widget_id: str) -> Optional[int]:
        for i, w in enumerate(self._widgets):
            if w.id == widget_id:
                return i
        return None

    # ── Mutations ────────────────────────────────────────

    def add_widget(self, widget: Widget) -> Widget:
        """Append a widget. Id uniqueness is the caller's responsibility."""
        self._widgets.append(widget)
        logger.debug(f"[{widget.id}] widget added ({widget.type.value})")
        self._persist()
        return widget

    def update_widget(self, widget_id: str, partial: Dict[str, Any]) -> Optional[Widget]:
        """
        Shallow-merge top-level fields into the widget.
        A `config` in `partial` replaces the stored one; merge it beforehand
        (see board.widgets.merge_config) to keep unspecified keys.
        """
        idx = self._index_of(widget_id)
        if idx is None:
            return None

        current = self._widgets[idx]
        merged = {**current.model_dump(by_alias=True), **_normalize_keys(partial), "id": current.id}
        self._widgets[idx] = Widget.model_validate(merged)
        logger.debug(f"[{widget_id}] widget updated: {sorted(partial)}")
        self._persist()
        return self._widgets[idx]

    def remove_widget(self, widget_id: str) -> bool:
        original_len = len(self._widgets)
        self._widgets = [w for w in self._widgets if w.id != widget_id]
        if len(self._widgets) == original_len:
            return False

        if self.active_widget == widget_id:
            self.active_widget = None
        logger.debug(f"[{widget_id}] widget removed")
        self._persist()
        return True

    def update_widget_layout(self, widget_id: str, layout: Dict[str, Any]) -> Optional[Widget]:
        """Merge into `layout` only; config, title and data source stay as they are."""
        idx = self._index_of(widget_id)
        if idx is None:
            return None

        current = self._widgets[idx]
        fields = {k: v for k, v in layout.items() if k in _LAYOUT_FIELDS}
        new_layout = WidgetLayout.model_validate({**current.layout.model_dump(), **fields})
        self._widgets[idx] = current.model_copy(update={"layout": new_layout})
        self._persist()
        return self._widgets[idx]

    def apply_layout_batch(self, items: Iterable[Dict[str, Any]]) -> List[str]:
        """
        Apply a grid layout change, one item per widget (`i` or `id` plus x/y/w/h).
        Each item is applied on its own; returns the ids that did not match a widget.
        """
        missed = []
        for item in items:
            widget_id = item.get("i", item.get("id"))
            try:
                updated = widget_id is not None and self.update_widget_layout(widget_id, item)
            except ValidationError as e:
                logger.warning(f"Invalid layout for widget {widget_id}: {e.error_count()} errors")
                missed.append(widget_id)
                continue
            if not updated:
                logger.warning(f"Layout update for unknown widget: {widget_id}")
                missed.append(widget_id)
        return missed

    def set_active_widget(self, widget_id: Optional[str]):
        self.active_widget = widget_id
        self._persist()

    def replace_all(self, widgets: List[Widget]):
        self._widgets = list(widgets)
        self.active_widget = None
        self._persist()

    def clear(self):
        self._widgets = []
        self.active_widget = None
        self.storage.clear(self.namespace)


def _normalize_keys(partial: Dict[str, Any]) -> Dict[str, Any]:
    """Accept `data_source` as well as the serialized `dataSource` key."""
    if "data_source" in partial:
        partial = dict(partial)
        partial["dataSource"] = partial.pop("data_source")
    return partial
