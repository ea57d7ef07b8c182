from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

ReservoirId = int
# Externally supplied storage, reservoir id -> volume (hm3)
VolumeVector = Mapping[ReservoirId, float]

# Returned by `evaluate` when there is no cut to bind
NO_BINDING_CUT: int = 0


@dataclass(frozen=True, slots=True)
class RawCut:
    """One cut record as read from the cut file.

    `coefficients` holds the values that follow the RHS, in file order.
    """

    index: int
    construction_iteration: int
    forward_pass_index: int
    deactivation_iteration: int
    rhs: float
    coefficients: Tuple[float, ...] = ()


@dataclass(frozen=True, slots=True)
class BendersCut:
    """Benders cut with reservoir coefficients split from the residual terms.

    Represents: alpha >= rhs + sum(coefficients[r] * V_r)
    Reservoirs missing from `coefficients` have a zero coefficient. The
    mapping is a read-only view over a private copy.
    """

    index: int
    construction_iteration: int
    forward_pass_index: int
    deactivation_iteration: int
    rhs: float
    coefficients: Mapping[ReservoirId, float] = field(default_factory=dict)
    residual: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "coefficients", MappingProxyType(dict(self.coefficients)))

    @property
    def is_active(self) -> bool:
        return self.deactivation_iteration == 0

    def value_at(self, volumes: VolumeVector) -> float:
        total = self.rhs
        for res_id, coeff in self.coefficients.items():
            total += coeff * volumes.get(res_id, 0.0)
        return total


@dataclass(frozen=True, slots=True)
class CutSet:
    cuts: Tuple[BendersCut, ...] = ()
    reservoir_ids: Tuple[ReservoirId, ...] = ()
    record_size: int = 0
    stage_count: int = 0

    def __len__(self) -> int:
        return len(self.cuts)

    def __iter__(self):
        return iter(self.cuts)

    @property
    def is_empty(self) -> bool:
        return not self.cuts


@dataclass(frozen=True, slots=True)
class StageStructure:
    stage_count: int = 0
    week_count: int = 0
    travel_time_reservoir_count: int = 0
    max_travel_time_lag: int = 0
    first_node_per_stage: Tuple[int, ...] = ()
    load_levels_per_stage: Tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class MapcutMetadata:
    """Header data of a mapcut file.

    `reservoir_ids` gives the meaning of the leading cut coefficients.
    """

    iteration_count: int = 0
    cut_count: int = 0
    submarket_count: int = 0
    reservoir_count: int = 0
    scenario_count: int = 0
    last_cut_indices: Tuple[int, ...] = ()
    cut_record_size: int = 0
    start_date: Optional[date] = None
    reservoir_ids: Tuple[ReservoirId, ...] = ()
    stage: Optional[StageStructure] = None

    @property
    def last_cut_index(self) -> int:
        """Newest cut over all scenario nodes, 0 when unknown."""
        return max(self.last_cut_indices, default=0)


__all__ = [
    "ReservoirId",
    "VolumeVector",
    "NO_BINDING_CUT",
    "RawCut",
    "BendersCut",
    "CutSet",
    "StageStructure",
    "MapcutMetadata",
]
