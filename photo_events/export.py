"""
Parquet export of detected events.

Each event becomes one row.  Photo identifiers are stored as a list of
strings and the device tally as a list of ``{model, count}`` structs so the
file has a stable schema regardless of how the photo source types its ids.

We use PyArrow's Parquet support to write and read these files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from .models import Event

EVENT_SCHEMA = pa.schema([
    ("name", pa.string()),
    ("event_type", pa.string()),
    ("start_time", pa.string()),
    ("end_time", pa.string()),
    ("photo_count", pa.int64()),
    ("photo_ids", pa.list_(pa.string())),
    ("duration", pa.int64()),
    ("photo_density", pa.float64()),
    ("devices", pa.list_(pa.struct([("model", pa.string()), ("count", pa.int64())]))),
    ("suggested_color", pa.string()),
    ("confidence", pa.float64()),
])

COLUMNS = [f.name for f in EVENT_SCHEMA]


def events_to_frame(events: Iterable[Event]) -> pd.DataFrame:
    """Return a DataFrame with one row per event, ids as strings, ISO timestamps."""
    rows = []
    for event in events:
        record = event.to_record()
        record["photo_ids"] = [str(pid) for pid in record["photo_ids"]]
        rows.append(record)
    return pd.DataFrame(rows, columns=COLUMNS)


def write_events_parquet(path: Path, events: Iterable[Event]) -> int:
    """Write events to a Parquet file, replacing it if present.

    Returns the number of rows written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = events_to_frame(events)
    table = pa.Table.from_pandas(df, schema=EVENT_SCHEMA, preserve_index=False)
    pq.write_table(table, path)
    return table.num_rows


def read_events_parquet(path: Path) -> pd.DataFrame:
    """Read an events Parquet file into a DataFrame (empty if the file is missing)."""
    path = Path(path)
    if not path.exists():
        return pd.DataFrame(columns=COLUMNS)
    return pq.read_table(path).to_pandas()
