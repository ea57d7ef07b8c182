from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Sequence

import pytest

from hydro_fcf.config import MapcutLayout

# Small layouts keep synthetic files readable
CUT_RECORD_SIZE = 64  # header + RHS + 5 coefficients
REGISTER_SIZE = 128
STAGE_RECORD_INDEX = 5


def pack_cut(
    previous: int,
    rhs: float,
    coeffs: Sequence[float] = (),
    *,
    iteration: int = 1,
    forward: int = 1,
    deactivated: int = 0,
    record_size: int = CUT_RECORD_SIZE,
) -> bytes:
    n = (record_size - 16) // 8
    values = [float(rhs)] + [float(c) for c in coeffs]
    values = (values + [0.0] * n)[:n]
    buf = struct.pack("<4i", previous, iteration, forward, deactivated)
    buf += struct.pack(f"<{n}d", *values)
    return buf + b"\x00" * (record_size - len(buf))


def write_linear_chain(path: Path, rhs_values: Sequence[float], record_size: int = CUT_RECORD_SIZE) -> Path:
    """Record i points to i-1; record 1 terminates the chain."""
    data = b"".join(
        pack_cut(i, rhs, (float(i), 0.0, -float(i)), iteration=i + 1, forward=i % 3, record_size=record_size)
        for i, rhs in enumerate(rhs_values)
    )
    path.write_bytes(data)
    return path


def _register(ints: Sequence[int], register_size: int) -> bytes:
    buf = struct.pack(f"<{len(ints)}i", *ints)
    assert len(buf) <= register_size
    return buf + b"\x00" * (register_size - len(buf))


def build_mapcut_bytes(
    *,
    header: Sequence[int] = (12, 5, 4, 3, 2),
    last_cuts: Sequence[int] = (4, 5),
    case: Sequence[int] = (CUT_RECORD_SIZE, 3, 8, 2024),
    reservoirs: Sequence[int] = (6, 1, 17),
    stage: Sequence[int] | None = None,
    first_nodes: Sequence[int] = (),
    levels: Sequence[int] = (),
    register_size: int = REGISTER_SIZE,
    stage_record_index: int = STAGE_RECORD_INDEX,
) -> bytes:
    regs = [
        _register(list(header) + list(last_cuts), register_size),
        _register(case, register_size),
        _register(reservoirs, register_size),
    ]
    if stage is not None:
        while len(regs) < stage_record_index:
            regs.append(b"\x00" * register_size)
        regs.append(_register(list(stage) + list(first_nodes) + list(levels), register_size))
    return b"".join(regs)


@pytest.fixture
def mapcut_layout() -> MapcutLayout:
    return MapcutLayout(register_size=REGISTER_SIZE, stage_record_index=STAGE_RECORD_INDEX)


@pytest.fixture
def mapcut_file(tmp_path: Path) -> Path:
    p = tmp_path / "mapcut.rv2"
    p.write_bytes(
        build_mapcut_bytes(
            stage=(0, 3, 2, 1, 4),
            first_nodes=(1, 2, 4),
            levels=(3, 3, 1),
        )
    )
    return p


@pytest.fixture
def cut_file(tmp_path: Path) -> Path:
    """Five cuts written in an interleaved order: newest is record 5."""
    p = tmp_path / "cortdeco.rv2"
    # chain: 5 -> 2 -> 4 -> 1 -> 3 -> 0, so chronological order is 3,1,4,2,5
    records = {
        1: pack_cut(3, 20.0, (-1.0, 0.0, 2.0, 9.0, 9.5), iteration=2),
        2: pack_cut(4, 40.0, (-3.0, 1.0, 0.0, 7.0, 7.5), iteration=4, deactivated=5),
        3: pack_cut(0, 10.0, (0.0, 0.0, 1.0, 8.0, 8.5), iteration=1),
        4: pack_cut(1, 30.0, (-2.0, 0.5, 0.0, 6.0, 6.5), iteration=3),
        5: pack_cut(2, 50.0, (-4.0, 0.0, 0.0, 5.0, 5.5), iteration=5),
    }
    p.write_bytes(b"".join(records[i] for i in sorted(records)))
    return p


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
