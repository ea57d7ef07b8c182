"""Evaluation of the Future Cost Function.

The FCF is the maximum over cuts k of

    rhs_k + sum_i pi_ik * V_i

where pi_ik is the coefficient of reservoir i in cut k and V_i its stored
volume. The cut attaining the maximum is the binding cut and its
coefficients are the marginal water values at that point.

All functions are pure over their arguments.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Optional

from ..config import CUT_HEADER_BYTES, COEFFICIENT_BYTES
from .types import NO_BINDING_CUT, BendersCut, CutSet, ReservoirId, VolumeVector


def binding_cut(cut_set: CutSet, volumes: VolumeVector) -> Optional[BendersCut]:
    """Cut attaining the FCF maximum; the earliest one wins ties."""
    best: Optional[BendersCut] = None
    best_cost = -math.inf
    for cut in cut_set.cuts:
        cost = cut.value_at(volumes)
        # strict comparison keeps the first occurrence on ties
        if cost > best_cost:
            best_cost = cost
            best = cut
    return best


def evaluate(cut_set: CutSet, volumes: VolumeVector) -> tuple[float, int]:
    """Return (future cost, chronological index of the binding cut).

    An empty cut set gives (0.0, NO_BINDING_CUT). A non-empty set in which
    no cut evaluates above -inf (every value NaN or -inf) gives
    (-inf, NO_BINDING_CUT).
    """
    cut = binding_cut(cut_set, volumes)
    if cut is None:
        cost = 0.0 if cut_set.is_empty else -math.inf
        return cost, NO_BINDING_CUT
    return cut.value_at(volumes), cut.index


def water_value(cut_set: CutSet, volumes: VolumeVector, reservoir_id: ReservoirId) -> float:
    cut = binding_cut(cut_set, volumes)
    if cut is None:
        return 0.0
    return cut.coefficients.get(reservoir_id, 0.0)


def water_values(cut_set: CutSet, volumes: VolumeVector) -> dict[ReservoirId, float]:
    """All reservoir coefficients of the binding cut (sparse, zeros omitted)."""
    cut = binding_cut(cut_set, volumes)
    if cut is None:
        return {}
    return dict(cut.coefficients)


def active_cuts(cut_set: CutSet) -> CutSet:
    """Cuts never deactivated by the optimizer, chronological indices kept."""
    return replace(cut_set, cuts=tuple(c for c in cut_set.cuts if c.is_active))


def mean_water_value(cut_set: CutSet, reservoir_id: ReservoirId) -> float:
    """Average coefficient of a reservoir over every cut, active or not.

    Independent of storage; a cheap summary when no operating point is known.
    Raises KeyError if the reservoir is not part of the cut set.
    """
    if reservoir_id not in cut_set.reservoir_ids:
        raise KeyError(f"reservoir {reservoir_id} not in cut set (available: {list(cut_set.reservoir_ids)})")
    if not cut_set.cuts:
        return 0.0
    total = sum(c.coefficients.get(reservoir_id, 0.0) for c in cut_set.cuts)
    return total / len(cut_set.cuts)


def cut_statistics(cut_set: CutSet) -> dict[str, Any]:
    cuts = cut_set.cuts
    if not cuts:
        return {"total_cuts": 0, "active_cuts": 0, "inactive_cuts": 0}
    n_active = sum(1 for c in cuts if c.is_active)
    rhs = [c.rhs for c in cuts]
    return {
        "total_cuts": len(cuts),
        "active_cuts": n_active,
        "inactive_cuts": len(cuts) - n_active,
        "avg_rhs": sum(rhs) / len(rhs),
        "min_rhs": min(rhs),
        "max_rhs": max(rhs),
        # values following the RHS in each record
        "num_coefficients": max((cut_set.record_size - CUT_HEADER_BYTES) // COEFFICIENT_BYTES - 1, 0),
    }


__all__ = [
    "NO_BINDING_CUT",
    "binding_cut",
    "evaluate",
    "water_value",
    "water_values",
    "active_cuts",
    "mean_water_value",
    "cut_statistics",
]
