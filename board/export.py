"""
Dashboard export document: one UTF-8 JSON file holding widgets and data sources.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from board.errors import InvalidFormat
from board.models import DashboardExport, DataSource, Widget

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"
_REQUIRED_KEYS = ("widgets", "dataSources", "version")


def _present(value: Any) -> bool:
    # An empty list still counts as present.
    return isinstance(value, list) or bool(value)


def export_dashboard(
    name: str,
    widgets: List[Widget],
    data_sources: List[DataSource],
    version: str = EXPORT_VERSION,
    now: Optional[datetime] = None,
) -> DashboardExport:
    now = now or datetime.now(timezone.utc)
    return DashboardExport(
        name=name,
        widgets=list(widgets),
        data_sources=list(data_sources),
        version=version,
        created_at=now.isoformat(),
    )


def dumps_export(doc: DashboardExport) -> str:
    return json.dumps(doc.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)


def export_filename(name: str) -> str:
    """'Sales Q1' -> 'sales-q1-dashboard.json'"""
    slug = re.sub(r"\s+", "-", name.lower())
    return f"{slug}-dashboard.json"


def save_export(doc: DashboardExport, directory: Union[str, Path]) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(doc.name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps_export(doc))
    logger.info(f"Dashboard exported: {path}")
    return path


def import_dashboard(raw: Union[str, bytes, Dict[str, Any]]) -> DashboardExport:
    """
    Parse and validate an export document.
    Raises InvalidFormat when the JSON is broken, `widgets`, `dataSources` or
    `version` is missing, or an entity does not validate.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidFormat(f"Invalid dashboard file format: {e}") from e

    if not isinstance(raw, dict):
        raise InvalidFormat("Invalid dashboard file format: expected a JSON object")

    missing = [key for key in _REQUIRED_KEYS if not _present(raw.get(key))]
    if missing:
        raise InvalidFormat(f"Invalid dashboard file format: missing {', '.join(missing)}")

    doc = dict(raw)
    doc.setdefault("name", "")
    doc.setdefault("createdAt", "")
    try:
        return DashboardExport.model_validate(doc)
    except ValidationError as e:
        raise InvalidFormat(f"Invalid dashboard file format: {e.error_count()} validation errors") from e


def load_dashboard(path: Union[str, Path]) -> DashboardExport:
    with open(path, "r", encoding="utf-8") as f:
        return import_dashboard(f.read())


def apply_import(doc: DashboardExport, dashboard, registry):
    """Replace both stores' contents with a validated document."""
    registry.replace_all(doc.data_sources)
    dashboard.replace_all(doc.widgets)
    logger.info(f"Imported dashboard '{doc.name}': {len(doc.widgets)} widgets, {len(doc.data_sources)} data sources")
