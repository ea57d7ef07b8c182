from __future__ import annotations

from typing import Mapping, Optional, Tuple

import pyomo.environ as pyo

from .fcf.types import CutSet, ReservoirId


def build_fcf_model(
    cut_set: CutSet,
    volume_bounds: Optional[Mapping[ReservoirId, Tuple[float, float]]] = None,
) -> pyo.ConcreteModel:
    """Future cost block: min alpha s.t. alpha >= rhs_k + sum(pi_k[r] * v[r]).

    Nothing is solved here; the model is meant to be embedded in, or
    extended by, a downstream dispatch model.
    """
    m = pyo.ConcreteModel()
    bounds = dict(volume_bounds or {})
    m.R = pyo.Set(initialize=list(cut_set.reservoir_ids), ordered=True)

    def _bounds(m, r):
        return bounds.get(r, (0.0, None))

    m.v = pyo.Var(m.R, bounds=_bounds)
    m.alpha = pyo.Var(within=pyo.Reals)
    m.fcf_cuts = pyo.ConstraintList()
    m.obj = pyo.Objective(expr=m.alpha, sense=pyo.minimize)
    add_fcf_cuts(m, cut_set)
    return m


def add_fcf_cuts(m: pyo.ConcreteModel, cut_set: CutSet) -> int:
    """Append one constraint per cut: alpha - sum(pi[r] * v[r]) >= rhs.

    Coefficients of reservoirs outside `m.R` are dropped. Returns the number
    of constraints added.
    """
    known = set(m.R)
    for cut in cut_set.cuts:
        slope = sum(float(c) * m.v[r] for r, c in cut.coefficients.items() if r in known)
        m.fcf_cuts.add(m.alpha - slope >= float(cut.rhs))
    return len(cut_set.cuts)


__all__ = ["build_fcf_model", "add_fcf_cuts"]
