from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..config import CUT_HEADER_BYTES, COEFFICIENT_BYTES
from .types import BendersCut, CutSet, RawCut, ReservoirId

log = logging.getLogger(__name__)


def _split(cut: RawCut, reservoir_ids: Sequence[ReservoirId]) -> BendersCut:
    n_res = len(reservoir_ids)
    coeffs = cut.coefficients
    if len(coeffs) < n_res:
        log.warning(
            "cut %d: %d coefficient(s) for %d reservoir(s), mapping prefix only",
            cut.index, len(coeffs), n_res,
        )
    mapped: dict[ReservoirId, float] = {}
    for res_id, value in zip(reservoir_ids, coeffs):
        if value != 0.0:
            mapped[res_id] = value
    return BendersCut(
        index=cut.index,
        construction_iteration=cut.construction_iteration,
        forward_pass_index=cut.forward_pass_index,
        deactivation_iteration=cut.deactivation_iteration,
        rhs=cut.rhs,
        coefficients=mapped,
        # travel-time and thermal terms, kept opaque
        residual=tuple(coeffs[n_res:]),
    )


def build_cut_set(
    raw_cuts: Iterable[RawCut],
    reservoir_ids: Sequence[ReservoirId],
    *,
    record_size: int | None = None,
    stage_count: int = 0,
) -> CutSet:
    """Map raw coefficient vectors onto reservoir ids.

    The first len(reservoir_ids) coefficients of each cut become its sparse
    reservoir map (exact zeros omitted), the rest its residual vector.
    """
    raw = list(raw_cuts)
    ids = tuple(int(r) for r in reservoir_ids)
    if raw:
        widths = {len(c.coefficients) for c in raw}
        if len(widths) > 1:
            log.warning("cut set mixes coefficient counts %s", sorted(widths))
        if record_size is None:
            record_size = CUT_HEADER_BYTES + COEFFICIENT_BYTES * (1 + len(raw[0].coefficients))
    cuts = tuple(_split(c, ids) for c in raw)
    return CutSet(
        cuts=cuts,
        reservoir_ids=ids,
        record_size=record_size or 0,
        stage_count=stage_count,
    )


__all__ = ["build_cut_set"]
