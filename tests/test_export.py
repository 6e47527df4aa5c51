import os
from datetime import datetime, timezone

import pandas as pd

from centerline.core.export import (
    CHECKLIST_COLUMNS,
    checklist_csv,
    checklist_frame,
    write_checklist_csv,
)
from centerline.core.models import PointStatus, Zone
from centerline.core.qr import QrLinkBuilder


def test_frame_is_sorted_by_number_with_blank_signature(point_factory):
    checked = datetime(2024, 5, 1, 6, 30, tzinfo=timezone.utc)
    points = [point_factory("B", 5), point_factory("A", 2, last_checked=checked)]

    df = checklist_frame(points)

    assert list(df.columns) == CHECKLIST_COLUMNS
    assert list(df["id"]) == ["A", "B"]
    assert (df["signature"] == "").all()
    assert df.loc[0, "last_checked"] == "2024-05-01T06:30:00+00:00"
    assert df.loc[1, "last_checked"] == ""


def test_frame_applies_listing_filters(sample_points):
    df = checklist_frame(sample_points, zone=Zone.FORMING)
    assert set(df["zone"]) == {"Forming"}
    assert checklist_frame(sample_points, status=PointStatus.TAGGED_RED).empty


def test_empty_frame_keeps_columns():
    df = checklist_frame([], qr_builder=QrLinkBuilder("https://line3.plant.example"))
    assert df.empty
    assert "signature" in df.columns
    assert "deep_link" in df.columns


def test_frame_adds_deep_links(point_factory):
    df = checklist_frame([point_factory("P-07", 7)], qr_builder=QrLinkBuilder("https://line3.plant.example"))
    assert df.loc[0, "deep_link"] == "https://line3.plant.example/?p=P-07"


def test_csv_header(point_factory):
    text = checklist_csv(checklist_frame([point_factory()]))
    assert text.splitlines()[0] == ",".join(CHECKLIST_COLUMNS)


def test_write_is_atomic(tmp_path, sample_points):
    target = tmp_path / "out" / "checklist.csv"
    write_checklist_csv(checklist_frame(sample_points), str(target))

    written = pd.read_csv(target, keep_default_na=False)
    assert len(written) == len(sample_points)
    assert [n for n in os.listdir(target.parent) if n.startswith(".checklist_tmp_")] == []
