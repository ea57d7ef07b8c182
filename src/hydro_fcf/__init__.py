"""hydro_fcf

Reader for the Future Cost Function written by hydrothermal scheduling
optimizers (DECOMP/NEWAVE). The package provides:

- Decoders for the binary mapcut (reservoir ordering, case data) and
  cortdeco (Benders cuts as an on-disk linked list) files
- A builder that maps cut coefficients onto reservoir ids
- Pure evaluation of the FCF and of marginal water values
- YAML-based configuration and a Pyomo export of the cuts
"""

from .config import (
    ConfigurationError,
    CutChainConfig,
    FCFConfig,
    MapcutLayout,
    load_config,
)
from .logging_config import setup_logging
from .fcf import (
    NO_BINDING_CUT,
    BendersCut,
    CutSet,
    MapcutMetadata,
    RawCut,
    StageStructure,
    active_cuts,
    binding_cut,
    build_cut_set,
    cut_statistics,
    decode_cut_chain,
    decode_mapcut,
    evaluate,
    mean_water_value,
    water_value,
    water_values,
)
from .loader import load_fcf, run

__all__ = [
    "__version__",
    "ConfigurationError",
    "CutChainConfig",
    "FCFConfig",
    "MapcutLayout",
    "load_config",
    "setup_logging",
    "NO_BINDING_CUT",
    "BendersCut",
    "CutSet",
    "MapcutMetadata",
    "RawCut",
    "StageStructure",
    "active_cuts",
    "binding_cut",
    "build_cut_set",
    "cut_statistics",
    "decode_cut_chain",
    "decode_mapcut",
    "evaluate",
    "mean_water_value",
    "water_value",
    "water_values",
    "load_fcf",
    "run",
]

__version__ = "0.1.0"
