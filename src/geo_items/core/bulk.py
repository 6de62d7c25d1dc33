"""
Bulk Import / Export Module
------------------------------------------------------------------------------------
Loads many items at once from a CSV file and writes query results back out.

Functions:
    load_items: Creates one item per `name,address` row of a CSV file and
                returns the rows annotated with `id`, `status` and `error`.
    export_items: Appends items to a CSV file, writing the header only when
                  the file is new.

A failing row does not stop the load; its error is recorded in the report.
"""

import os
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from ..exceptions import GeoItemsError
from ..utils.logger import logger
from .query import Item
from .writer import IndexWriter

REQUIRED_COLUMNS = ("name", "address")

# ----------------------------------------------------------------------------------------------------------

def load_items(csv_path: Union[str, Path], writer: IndexWriter) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {', '.join(missing)}")

    ids, statuses, errors = [], [], []
    for row in df.itertuples(index=False):
        try:
            item_id = writer.create_item(row.name, row.address)
        except GeoItemsError as e:
            ids.append(None)
            statuses.append(e.status_code)
            errors.append(str(e))
            continue
        ids.append(item_id)
        statuses.append(201)
        errors.append(None)

    report = df.assign(id=ids, status=statuses, error=errors)
    created = int((report["status"] == 201).sum())

    logger.info("Loaded items from CSV", extra={
        "operation": "load_items",
        "source": str(csv_path),
        "rows": len(report),
        "created": created,
        "failed": len(report) - created
    })
    return report

# ----------------------------------------------------------------------------------------------------------

def export_items(items: Iterable[Item], csv_path: Union[str, Path]) -> int:
    rows = [
        {
            "id": item.id,
            "name": item.name,
            "address": item.address,
            "lat": item.point.lat,
            "lng": item.point.lng,
            "distance_m": round(item.distance_m, 3),
        }
        for item in items
    ]
    if not rows:
        return 0  # nothing to write

    df = pd.DataFrame(rows)

    mode = 'a' if os.path.exists(csv_path) else 'w'
    header = (mode == 'w')
    df.to_csv(csv_path, mode=mode, header=header, index=False)

    logger.info(f"Exported {len(df)} items to CSV", extra={
        "operation": "export_items",
        "target": str(csv_path),
        "exported_count": len(df)
    })
    return len(df)

# ----------------------------------------------------------------------------------------------------------
