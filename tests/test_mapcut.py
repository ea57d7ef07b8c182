from __future__ import annotations

from datetime import date

import pytest

from conftest import REGISTER_SIZE, build_mapcut_bytes
from hydro_fcf.config import ConfigurationError, MapcutLayout
from hydro_fcf.fcf.mapcut import decode_mapcut
from hydro_fcf.fcf.types import MapcutMetadata, StageStructure


def test_decode_full_file(mapcut_file, mapcut_layout):
    meta = decode_mapcut(mapcut_file, mapcut_layout)
    assert meta.iteration_count == 12
    assert meta.cut_count == 5
    assert meta.submarket_count == 4
    assert meta.reservoir_count == 3
    assert meta.scenario_count == 2
    assert meta.last_cut_indices == (4, 5)
    assert meta.last_cut_index == 5
    assert meta.cut_record_size == 64
    assert meta.start_date == date(2024, 8, 3)
    assert meta.reservoir_ids == (6, 1, 17)
    assert meta.stage == StageStructure(
        stage_count=3,
        week_count=2,
        travel_time_reservoir_count=1,
        max_travel_time_lag=4,
        first_node_per_stage=(1, 2, 4),
        load_levels_per_stage=(3, 3, 1),
    )


def test_file_smaller_than_header(tmp_path, caplog):
    p = tmp_path / "tiny.rv0"
    p.write_bytes(b"\x01\x00\x00\x00" * 3)
    meta = decode_mapcut(p)
    assert meta == MapcutMetadata()
    assert meta.last_cut_index == 0
    assert "too small" in caplog.text
    assert "got 12" in caplog.text


def test_missing_stage_record_is_skipped(tmp_path, mapcut_layout):
    p = tmp_path / "nostage.rv0"
    p.write_bytes(build_mapcut_bytes())
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.stage is None
    assert meta.reservoir_ids == (6, 1, 17)


def test_truncated_stage_record_is_skipped(tmp_path, mapcut_layout, caplog):
    data = build_mapcut_bytes(stage=(0, 3, 2, 1, 4), first_nodes=(1, 2, 4), levels=(3, 3, 1))
    p = tmp_path / "cut_stage.rv0"
    # keep the stage header and two of the first-node values only
    stage_offset = mapcut_layout.stage_record_index * REGISTER_SIZE
    p.write_bytes(data[: stage_offset + 20 + 8])
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.stage is None
    assert meta.reservoir_ids == (6, 1, 17)
    assert "first node per stage" in caplog.text


def test_truncated_reservoir_record_keeps_prefix(tmp_path, mapcut_layout, caplog):
    data = build_mapcut_bytes(header=(1, 1, 1, 4, 1), last_cuts=(1,), reservoirs=(10, 20, 30, 40))
    p = tmp_path / "short_res.rv0"
    p.write_bytes(data[: 2 * REGISTER_SIZE + 9])
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.reservoir_count == 4
    assert meta.reservoir_ids == (10, 20)
    assert f"offset {2 * REGISTER_SIZE}" in caplog.text
    assert "expected 16 bytes, got 9" in caplog.text


def test_header_only_file(tmp_path, mapcut_layout, caplog):
    p = tmp_path / "header.rv0"
    p.write_bytes(build_mapcut_bytes()[:28])
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.iteration_count == 12
    assert meta.last_cut_indices == (4, 5)
    assert meta.cut_record_size == 0
    assert meta.start_date is None
    assert meta.reservoir_ids == ()
    assert "case record missing" in caplog.text


def test_invalid_start_date(tmp_path, mapcut_layout, caplog):
    p = tmp_path / "baddate.rv0"
    p.write_bytes(build_mapcut_bytes(case=(64, 31, 2, 2024)))
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.start_date is None
    assert meta.cut_record_size == 64
    assert "invalid case start date" in caplog.text


def test_negative_counts_are_clamped(tmp_path, mapcut_layout, caplog):
    p = tmp_path / "neg.rv0"
    p.write_bytes(build_mapcut_bytes(header=(1, 1, 1, -3, -2), last_cuts=()))
    meta = decode_mapcut(p, mapcut_layout)
    assert meta.reservoir_count == 0
    assert meta.scenario_count == 0
    assert meta.reservoir_ids == ()
    assert "negative" in caplog.text


def test_layout_is_validated():
    with pytest.raises(ConfigurationError):
        decode_mapcut("irrelevant.rv0", MapcutLayout(register_size=8))
    with pytest.raises(ConfigurationError):
        decode_mapcut("irrelevant.rv0", MapcutLayout(stage_record_index=2))


def test_default_layout_register_size(tmp_path):
    # the producer's 48020-byte registers
    p = tmp_path / "mapcut.rv2"
    p.write_bytes(build_mapcut_bytes(register_size=48020, stage_record_index=19))
    meta = decode_mapcut(p)
    assert meta.reservoir_ids == (6, 1, 17)
    assert meta.cut_record_size == 64
    assert meta.stage is None


def test_scenario_count_capped_to_record_zero(tmp_path, mapcut_layout, caplog):
    p = tmp_path / "scen.rv0"
    p.write_bytes(build_mapcut_bytes(header=(12, 5, 4, 3, 500), last_cuts=(4, 5)))
    meta = decode_mapcut(p, mapcut_layout)
    max_scen = (REGISTER_SIZE - 20) // 4
    assert meta.scenario_count == max_scen
    assert len(meta.last_cut_indices) == max_scen
    assert meta.last_cut_indices[:2] == (4, 5)
    assert meta.last_cut_index == 5
    # record 1 and 2 are still read from their own offsets
    assert meta.cut_record_size == 64
    assert meta.reservoir_ids == (6, 1, 17)
    assert "overruns record 0" in caplog.text
