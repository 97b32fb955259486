"""
Config loader: parses the YAML settings file into Pydantic models.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884D8", "#82CA9D"]


def find_root() -> Path:
    """Root directory holding config/ and data/."""
    return Path(os.getenv("WIDGET_BOARD_ROOT", "."))


# ── Enums ────────────────────────────────────────────


class StorageType(str, Enum):
    TINYDB = "tinydb"
    JSON = "json"
    MEMORY = "memory"


# ── Sections ─────────────────────────────────────────


class PaginationConfig(BaseModel):
    row_height: int = 36
    header_height: int = 40
    pagination_bar_height: int = 48
    initial_rows_per_page: int = 10


class WidgetSizeConfig(BaseModel):
    w: int = 6
    h: int = 5


class AppConfig(BaseModel):
    data_dir: Path = Field(default=Path("data"), description="Relative to the root directory")
    storage: StorageType = StorageType.TINYDB
    dashboard_namespace: str = "dashboard-storage"
    data_sources_namespace: str = "data-sources-storage"

    preview_rows: int = 5
    export_version: str = "1.0.0"

    palette: List[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))
    single_series_color: str = "#8884d8"

    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    default_widget_size: WidgetSizeConfig = Field(default_factory=WidgetSizeConfig)

    log_level: str = "INFO"

    def resolve_data_dir(self, root: Optional[Path] = None) -> Path:
        if self.data_dir.is_absolute():
            return self.data_dir
        return (root or find_root()) / self.data_dir


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """
    Load config/board.yaml from the root directory.
    A missing file yields the defaults.
    """
    if path is None:
        path = find_root() / "config" / "board.yaml"
    path = Path(path)

    if not path.exists():
        logger.info(f"Config file not found, using defaults: {path}")
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig.model_validate(raw)
    logger.info(f"Loaded config: {path}")
    return config
