"""
DataSource registry: owns every imported tabular dataset.
Lookups on unknown ids return None, updates on unknown ids are no-ops.
"""

import logging
from typing import Any, Dict, List, Optional

from board.models import DataSource
from board.persistence import PersistentStore, StateStorage

logger = logging.getLogger(__name__)


class DataSourceRegistry(PersistentStore):
    """Ordered, persisted collection of DataSources plus the active selection."""

    def __init__(self, storage: StateStorage, namespace: str = "data-sources-storage"):
        self._sources: List[DataSource] = []
        self.active_data_source: Optional[str] = None
        super().__init__(storage, namespace)

    # ── Persistence ──────────────────────────────────────

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "dataSources": [s.model_dump(mode="json") for s in self._sources],
            "activeDataSource": self.active_data_source,
        }

    def _restore(self, state: Dict[str, Any]):
        self._sources = [DataSource.model_validate(item) for item in state.get("dataSources", [])]
        self.active_data_source = state.get("activeDataSource")
        logger.info(f"Restored {len(self._sources)} data sources")

    # ── Operations ───────────────────────────────────────

    def add(self, source: DataSource) -> DataSource:
        self._sources.append(source)
        logger.debug(f"[{source.id}] data source added: {source.name}")
        self._persist()
        return source

    def update(self, source_id: str, partial: Dict[str, Any]) -> Optional[DataSource]:
        """Shallow-merge `partial` into the matching source. The id never changes."""
        for i, s in enumerate(self._sources):
            if s.id == source_id:
                merged = {**s.model_dump(), **partial, "id": s.id}
                self._sources[i] = DataSource.model_validate(merged)
                self._persist()
                return self._sources[i]
        return None

    def remove(self, source_id: str) -> bool:
        """Delete a source. Widgets still referencing it are left untouched."""
        original_len = len(self._sources)
        self._sources = [s for s in self._sources if s.id != source_id]
        if len(self._sources) == original_len:
            return False

        if self.active_data_source == source_id:
            self.active_data_source = None
        logger.debug(f"[{source_id}] data source removed")
        self._persist()
        return True

    def get_by_id(self, source_id: str) -> Optional[DataSource]:
        for s in self._sources:
            if s.id == source_id:
                return s
        return None

    def resolve(self, source_id: Optional[str]) -> Optional[DataSource]:
        """Resolve a weak widget reference; unset and dangling both give None."""
        if not source_id:
            return None
        return self.get_by_id(source_id)

    def list(self) -> List[DataSource]:
        return list(self._sources)

    def set_active(self, source_id: Optional[str]):
        self.active_data_source = source_id
        self._persist()

    def replace_all(self, sources: List[DataSource]):
        self._sources = list(sources)
        self.active_data_source = None
        self._persist()

    def clear(self):
        self._sources = []
        self.active_data_source = None
        self.storage.clear(self.namespace)
