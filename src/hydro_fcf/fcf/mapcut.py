"""Decoder for the binary mapcut file.

The mapcut file is a sequence of fixed-size registers written by the
optimizer. Only the leading records and the stage record are decoded:

- record 0: iterations, cuts, submarkets, reservoirs, scenarios (int32 x 5),
  then the last cut index of each scenario node
- record 1: cut record size, start day, month, year (int32 x 4)
- record 2: reservoir codes, in the order used by cut coefficients
- record `stage_record_index`: stage header (int32 x 5), first node of each
  stage, load levels of each stage

Content anomalies never raise; the decoder keeps whatever prefix could be
read and logs a warning.
"""

from __future__ import annotations

import logging
import os
import struct
from datetime import date
from pathlib import Path
from typing import BinaryIO, Optional

from ..config import MapcutLayout
from .types import MapcutMetadata, StageStructure

log = logging.getLogger(__name__)

INT_BYTES = 4
HEADER_INTS = 5
MIN_HEADER_BYTES = HEADER_INTS * INT_BYTES


def _read_ints(
    f: BinaryIO,
    path: Path,
    file_size: int,
    offset: int,
    count: int,
    byte_order: str,
    what: str,
) -> tuple[int, ...]:
    """Read `count` int32 at `offset`, keeping the whole-int prefix if short."""
    if count <= 0:
        return ()
    expected = count * INT_BYTES
    f.seek(offset)
    buf = f.read(min(expected, max(file_size - offset, 0)))
    if len(buf) < expected:
        log.warning(
            "%s: truncated %s at offset %d (expected %d bytes, got %d)",
            path, what, offset, expected, len(buf),
        )
        count = len(buf) // INT_BYTES
        buf = buf[: count * INT_BYTES]
    return struct.unpack(f"{byte_order}{count}i", buf)


def _non_negative(value: int, path: Path, what: str) -> int:
    if value < 0:
        log.warning("%s: negative %s (%d) treated as 0", path, what, value)
        return 0
    return value


def _start_date(day: int, month: int, year: int, path: Path) -> Optional[date]:
    if day == 0 and month == 0 and year == 0:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        log.warning("%s: invalid case start date %d/%d/%d", path, day, month, year)
        return None


def _read_stage(
    f: BinaryIO, path: Path, file_size: int, layout: MapcutLayout
) -> Optional[StageStructure]:
    offset = layout.stage_record_index * layout.register_size
    if file_size <= offset:
        log.debug("%s: no stage record at offset %d (file size %d)", path, offset, file_size)
        return None
    header = _read_ints(f, path, file_size, offset, HEADER_INTS, layout.byte_order, "stage header")
    if len(header) < HEADER_INTS:
        return None
    # header[0] is not used by the decoder
    _, n_stages, n_weeks, n_tv_res, max_tv_lag = header
    n_stages = _non_negative(n_stages, path, "stage count")
    pos = offset + HEADER_INTS * INT_BYTES
    first_nodes = _read_ints(f, path, file_size, pos, n_stages, layout.byte_order, "first node per stage")
    pos += n_stages * INT_BYTES
    levels = _read_ints(f, path, file_size, pos, n_stages, layout.byte_order, "load levels per stage")
    if len(first_nodes) < n_stages or len(levels) < n_stages:
        log.warning("%s: stage record incomplete, skipped", path)
        return None
    return StageStructure(
        stage_count=n_stages,
        week_count=n_weeks,
        travel_time_reservoir_count=n_tv_res,
        max_travel_time_lag=max_tv_lag,
        first_node_per_stage=tuple(first_nodes),
        load_levels_per_stage=tuple(levels),
    )


def decode_mapcut(path: str | Path, layout: MapcutLayout | None = None) -> MapcutMetadata:
    """Decode a mapcut file into `MapcutMetadata`.

    A file smaller than the 20-byte header yields an empty metadata object
    and a warning. Missing later records leave their fields at defaults.
    """
    layout = layout or MapcutLayout()
    layout.validate()
    p = Path(path)
    bo = layout.byte_order
    reg = layout.register_size

    with p.open("rb") as f:
        file_size = os.fstat(f.fileno()).st_size
        if file_size < MIN_HEADER_BYTES:
            log.warning(
                "%s: mapcut file too small at offset 0 (expected at least %d bytes, got %d)",
                p, MIN_HEADER_BYTES, file_size,
            )
            return MapcutMetadata()

        n_iter, n_cuts, n_sbm, n_res, n_scen = _read_ints(f, p, file_size, 0, HEADER_INTS, bo, "general header")
        n_res = _non_negative(n_res, p, "reservoir count")
        n_scen = _non_negative(n_scen, p, "scenario count")
        max_scen = (reg - MIN_HEADER_BYTES) // INT_BYTES
        if n_scen > max_scen:
            log.warning(
                "%s: scenario count %d overruns record 0 at offset %d (expected at most %d bytes, got %d)",
                p, n_scen, MIN_HEADER_BYTES, max_scen * INT_BYTES, n_scen * INT_BYTES,
            )
            n_scen = max_scen
        last_cuts = _read_ints(f, p, file_size, MIN_HEADER_BYTES, n_scen, bo, "last cut index per scenario")

        record_size = 0
        start: Optional[date] = None
        case = _read_ints(f, p, file_size, reg, 4, bo, "case record") if file_size > reg else ()
        if len(case) == 4:
            record_size = case[0]
            start = _start_date(case[1], case[2], case[3], p)
        elif file_size <= reg:
            log.warning(
                "%s: case record missing at offset %d (file size %d)", p, reg, file_size
            )

        reservoirs: tuple[int, ...] = ()
        if file_size > 2 * reg:
            reservoirs = _read_ints(f, p, file_size, 2 * reg, n_res, bo, "reservoir codes")
        elif n_res > 0:
            log.warning(
                "%s: reservoir record missing at offset %d (expected %d bytes, file size %d)",
                p, 2 * reg, n_res * INT_BYTES, file_size,
            )

        stage = _read_stage(f, p, file_size, layout)

    meta = MapcutMetadata(
        iteration_count=n_iter,
        cut_count=n_cuts,
        submarket_count=n_sbm,
        reservoir_count=n_res,
        scenario_count=n_scen,
        last_cut_indices=tuple(last_cuts),
        cut_record_size=record_size,
        start_date=start,
        reservoir_ids=tuple(reservoirs),
        stage=stage,
    )
    log.debug(
        "%s: %d iterations, %d cuts, %d reservoirs, %d scenarios, record size %d",
        p, n_iter, n_cuts, len(meta.reservoir_ids), n_scen, record_size,
    )
    return meta


__all__ = ["decode_mapcut", "MIN_HEADER_BYTES"]
