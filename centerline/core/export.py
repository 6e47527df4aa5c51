# centerline/core/export.py
"""Printable checklist of the point catalog as a table / CSV."""
import os
import logging
import tempfile
from typing import Iterable, Optional

import pandas as pd

from centerline.core.catalog import filter_points
from centerline.core.models import Point, PointStatus, Zone
from centerline.core.qr import QrLinkBuilder

logger = logging.getLogger(__name__)

CHECKLIST_COLUMNS = [
    'number', 'id', 'name', 'zone', 'criticality', 'status',
    'target_value', 'tolerance', 'measure_method', 'last_checked', 'signature',
]


def checklist_frame(points: Iterable[Point], text: str = '', zone: Optional[Zone] = None,
                    status: Optional[PointStatus] = None,
                    qr_builder: Optional[QrLinkBuilder] = None) -> pd.DataFrame:
    """
    One row per point, sorted by number, narrowed by the same filters as the
    listing. The `signature` column is left empty for the operator to sign on
    paper; a `deep_link` column is added when a QR builder is given.
    """
    selected = sorted(filter_points(points, text, zone, status), key=lambda p: p.number)
    rows = []
    for p in selected:
        rows.append({
            'number': p.number,
            'id': p.id,
            'name': p.name,
            'zone': p.zone.value,
            'criticality': p.criticality.value,
            'status': p.status.value,
            'target_value': p.target_value,
            'tolerance': p.tolerance,
            'measure_method': p.measure_method,
            'last_checked': p.last_checked.isoformat() if p.last_checked else '',
            'signature': '',
        })
    df = pd.DataFrame(rows, columns=CHECKLIST_COLUMNS)
    if qr_builder is not None:
        df['deep_link'] = [qr_builder.deep_link(pid) for pid in df['id']]
    return df


def checklist_csv(df: pd.DataFrame) -> str:
    return df.to_csv(index=False)


def write_checklist_csv(df: pd.DataFrame, csv_path: str) -> None:
    """Writes the checklist atomically (temporary file in the target directory, then rename)."""
    target_dir = os.path.dirname(os.path.abspath(csv_path))
    temp_file_path = None
    try:
        os.makedirs(target_dir, exist_ok=True)
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', newline='', delete=False,
                                         dir=target_dir, prefix=".checklist_tmp_", suffix=".csv") as tf:
            temp_file_path = tf.name
            df.to_csv(tf, index=False)
        os.replace(temp_file_path, csv_path)
        temp_file_path = None
        logger.info(f"Wrote checklist with {len(df)} rows to {csv_path}")
    finally:
        if temp_file_path and os.path.exists(temp_file_path):
            try:
                os.remove(temp_file_path)
            except OSError as rm_err:
                logger.error(f"Could not remove temporary file {temp_file_path}: {rm_err}")
