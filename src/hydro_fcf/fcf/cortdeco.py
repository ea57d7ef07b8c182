"""Decoder for the binary cut file (cortdeco).

Each record of `record_size` bytes holds:

    int32 previous_index           0 terminates the chain
    int32 construction_iteration
    int32 forward_pass_index
    int32 deactivation_iteration   0 = active
    float64 x coefficient_count    RHS first, then coefficients

Cuts are chained newest to oldest through `previous_index` (1-based record
numbers). The decoder walks the chain from the newest cut and returns the
cuts in chronological order.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from ..config import CUT_HEADER_BYTES, COEFFICIENT_BYTES, CutChainConfig
from .types import RawCut

log = logging.getLogger(__name__)


class ChainState(str, Enum):
    READING = "READING"
    TERMINATED = "TERMINATED"
    TRUNCATED = "TRUNCATED"


def _read_record(
    f: BinaryIO, path: Path, file_size: int, offset: int, cfg: CutChainConfig
) -> Optional[tuple[int, RawCut]]:
    """Read one record; returns (previous_index, cut) or None if it is partial."""
    n = cfg.coefficient_count
    expected = CUT_HEADER_BYTES + n * COEFFICIENT_BYTES
    f.seek(offset)
    buf = f.read(min(expected, max(file_size - offset, 0)))
    if len(buf) < expected:
        log.warning(
            "%s: partial cut record at offset %d (expected %d bytes, got %d)",
            path, offset, expected, len(buf),
        )
        return None
    prev, it_built, fwd, it_off = struct.unpack_from(f"{cfg.byte_order}4i", buf, 0)
    values = struct.unpack_from(f"{cfg.byte_order}{n}d", buf, CUT_HEADER_BYTES)
    cut = RawCut(
        # placeholder, chronological index is assigned after the walk
        index=0,
        construction_iteration=it_built,
        forward_pass_index=fwd,
        deactivation_iteration=it_off,
        rhs=values[0],
        coefficients=tuple(values[1:]),
    )
    return prev, cut


def _reindex(cuts: list[RawCut]) -> list[RawCut]:
    """Reverse newest-first cuts and number them 1..N."""
    return [replace(c, index=i) for i, c in enumerate(reversed(cuts), start=1)]


def decode_cut_chain(path: str | Path, config: CutChainConfig | None = None) -> list[RawCut]:
    """Follow the cut linked list backwards from `config.last_cut_index`.

    Traversal stops on a null pointer, after `config.max_cuts` reads, on an
    out-of-range pointer or on a partial record. All but the null pointer
    log a warning. Whatever was read is returned, oldest cut first.

    Raises ConfigurationError, before opening the file, for an unusable
    record size or bound.
    """
    cfg = config or CutChainConfig()
    cfg.validate()
    p = Path(path)
    rs = cfg.record_size
    padding = rs - CUT_HEADER_BYTES - cfg.coefficient_count * COEFFICIENT_BYTES
    if padding:
        log.debug("%s: record size %d leaves %d padding byte(s) per record", p, rs, padding)

    cuts: list[RawCut] = []
    state = ChainState.READING
    with p.open("rb") as f:
        file_size = os.fstat(f.fileno()).st_size
        n_records = file_size // rs
        if n_records == 0:
            log.warning(
                "%s: empty or truncated cut file at offset 0 (expected at least %d bytes, got %d)",
                p, rs, file_size,
            )
        current = cfg.last_cut_index
        while state is ChainState.READING:
            if current == 0:
                state = ChainState.TERMINATED
                break
            if len(cuts) >= cfg.max_cuts:
                log.warning(
                    "%s: stopped after max_cuts=%d reads, next pointer %d not followed",
                    p, cfg.max_cuts, current,
                )
                state = ChainState.TERMINATED
                break
            offset = (current - 1) * rs
            if current < 0 or offset >= file_size:
                log.warning(
                    "%s: cut index %d out of range at offset %d (record needs %d bytes, file size %d)",
                    p, current, offset, offset + rs, file_size,
                )
                state = ChainState.TRUNCATED
                break
            rec = _read_record(f, p, file_size, offset, cfg)
            if rec is None:
                state = ChainState.TRUNCATED
                break
            prev, cut = rec
            cuts.append(cut)
            current = prev

    log.debug("%s: %d cut(s) read, chain %s", p, len(cuts), state.value.lower())
    return _reindex(cuts)


__all__ = ["decode_cut_chain", "ChainState"]
