"""
Ingestion: parse a tabular file into rows/columns and register it as a data source.

Any parser implementing TableParser can be plugged in; CsvParser is the
default, built on pandas.
"""

import logging
import uuid
from pathlib import Path
from typing import IO, Any, Callable, List, Optional, Protocol, Union

import pandas as pd
from pydantic import BaseModel, Field

from board.errors import ParseError
from board.models import DataSource, Row, compute_preview

logger = logging.getLogger(__name__)

FileInput = Union[str, Path, IO]

_TRUE_VALUES = ["true", "True", "TRUE"]
_FALSE_VALUES = ["false", "False", "FALSE"]


class ParsedTable(BaseModel):
    rows: List[Row] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list, description="Header row, in file order")


class TableParser(Protocol):
    def parse(self, file: FileInput) -> ParsedTable: ...


def _file_name(file: FileInput) -> str:
    if isinstance(file, (str, Path)):
        return Path(file).name
    return Path(getattr(file, "name", "") or "data.csv").name


def _cell(value: Any) -> Any:
    """Convert a pandas cell to a plain JSON value; NA and NaN become None."""
    if value is None or value is pd.NA:
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and pd.isna(value):
        return None
    return value


class CsvParser:
    """
    CSV with a header row. Header names are trimmed, blank lines skipped,
    numeric cells become numbers and true/false become booleans. Only empty
    cells are missing values; integer columns with gaps stay integers.
    """

    def __init__(self, **read_options: Any):
        self.read_options = read_options

    def parse(self, file: FileInput) -> ParsedTable:
        try:
            df = pd.read_csv(
                file,
                skip_blank_lines=True,
                true_values=_TRUE_VALUES,
                false_values=_FALSE_VALUES,
                keep_default_na=False,
                na_values=[""],
                dtype_backend="numpy_nullable",
                **self.read_options,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
            raise ParseError(f"Failed to parse {_file_name(file)}: {e}", _file_name(file)) from e

        columns = [str(c).strip() for c in df.columns]
        rows = [
            {col: _cell(v) for col, v in zip(columns, record)}
            for record in df.itertuples(index=False, name=None)
        ]
        logger.debug(f"Parsed {len(rows)} rows x {len(columns)} columns")
        return ParsedTable(rows=rows, columns=columns)


def create_data_source(
    file: FileInput,
    name: Optional[str] = None,
    parser: Optional[TableParser] = None,
    preview_rows: int = 5,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> DataSource:
    """Parse a file into a new, unregistered DataSource."""
    parser = parser or CsvParser()
    table = parser.parse(file)
    return DataSource(
        id=id_factory(),
        name=name or _file_name(file),
        columns=table.columns,
        data=table.rows,
        preview=compute_preview(table.rows, preview_rows),
    )


def import_file(
    registry,
    file: FileInput,
    name: Optional[str] = None,
    parser: Optional[TableParser] = None,
    preview_rows: int = 5,
) -> DataSource:
    """
    Parse, register and activate a data source.
    On ParseError the registry is left unchanged and the error propagates.
    """
    try:
        source = create_data_source(file, name=name, parser=parser, preview_rows=preview_rows)
    except ParseError as e:
        logger.error(f"Import failed: {e}")
        raise

    registry.add(source)
    registry.set_active(source.id)
    logger.info(f"[{source.id}] imported '{source.name}' ({len(source.data)} rows)")
    return source
