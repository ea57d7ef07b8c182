from .types import (
    NO_BINDING_CUT,
    BendersCut,
    CutSet,
    MapcutMetadata,
    RawCut,
    StageStructure,
)
from .mapcut import decode_mapcut
from .cortdeco import decode_cut_chain
from .builder import build_cut_set
from .evaluator import (
    active_cuts,
    binding_cut,
    cut_statistics,
    evaluate,
    mean_water_value,
    water_value,
    water_values,
)

__all__ = [
    "NO_BINDING_CUT",
    "BendersCut",
    "CutSet",
    "MapcutMetadata",
    "RawCut",
    "StageStructure",
    "decode_mapcut",
    "decode_cut_chain",
    "build_cut_set",
    "active_cuts",
    "binding_cut",
    "cut_statistics",
    "evaluate",
    "mean_water_value",
    "water_value",
    "water_values",
]
