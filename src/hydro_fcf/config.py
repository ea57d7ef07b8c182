from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
import ast
import operator as _op

import yaml

# Cut record header: previous index, construction iteration, forward index,
# deactivation iteration (4 x int32).
CUT_HEADER_BYTES: int = 16
COEFFICIENT_BYTES: int = 8

# Defaults observed in DECOMP/NEWAVE cases
DEFAULT_CUT_RECORD_SIZE: int = 1664
DEFAULT_MAX_CUTS: int = 10000
DEFAULT_MAPCUT_REGISTER_SIZE: int = 48020
# general + case + reservoirs + topology + 14 skipped + tree
DEFAULT_STAGE_RECORD_INDEX: int = 19

_BYTE_ORDERS = {"<", ">", "="}


class ConfigurationError(ValueError):
    """Invalid caller-supplied decode parameters. Raised before any I/O."""


@dataclass(frozen=True, slots=True)
class MapcutLayout:
    """Producer-specific layout of the mapcut file.

    Both values are version-dependent assumptions about the producer and
    are kept here rather than hard-coded in the decoder.
    """

    register_size: int = DEFAULT_MAPCUT_REGISTER_SIZE
    stage_record_index: int = DEFAULT_STAGE_RECORD_INDEX
    byte_order: str = "<"

    def validate(self) -> None:
        if self.register_size < 20:
            raise ConfigurationError(
                f"mapcut register size must hold the 20-byte header, got {self.register_size}"
            )
        if self.stage_record_index < 3:
            raise ConfigurationError(
                f"stage record index must come after records 0-2, got {self.stage_record_index}"
            )
        if self.byte_order not in _BYTE_ORDERS:
            raise ConfigurationError(f"unknown byte order {self.byte_order!r}")


@dataclass(frozen=True, slots=True)
class CutChainConfig:
    """Concrete parameters for one traversal of a cut file."""

    record_size: int = DEFAULT_CUT_RECORD_SIZE
    last_cut_index: int = 1
    max_cuts: int = DEFAULT_MAX_CUTS
    byte_order: str = "<"

    @property
    def coefficient_count(self) -> int:
        """Float64 values per record, RHS included."""
        return (self.record_size - CUT_HEADER_BYTES) // COEFFICIENT_BYTES

    def validate(self) -> None:
        if self.coefficient_count < 1:
            raise ConfigurationError(
                f"invalid cut record size {self.record_size}: must be at least "
                f"{CUT_HEADER_BYTES + COEFFICIENT_BYTES} bytes (header + RHS)"
            )
        if self.max_cuts < 1:
            raise ConfigurationError(f"max_cuts must be positive, got {self.max_cuts}")
        if self.last_cut_index < 0:
            raise ConfigurationError(f"last_cut_index must be >= 0, got {self.last_cut_index}")
        if self.byte_order not in _BYTE_ORDERS:
            raise ConfigurationError(f"unknown byte order {self.byte_order!r}")


@dataclass(slots=True)
class FCFConfig:
    """Options for `load_fcf`.

    Any cut-file value left as None is taken from the mapcut file, falling
    back to the module defaults when the mapcut does not provide it.
    """

    mapcut: MapcutLayout = field(default_factory=MapcutLayout)
    record_size: Optional[int] = None
    last_cut_index: Optional[int] = None
    max_cuts: Optional[int] = None
    reservoir_ids: Optional[tuple[int, ...]] = None
    byte_order: str = "<"
    log_level: str = "INFO"

    def validate(self) -> None:
        """Check the explicitly set values; None fields are resolved later."""
        self.mapcut.validate()
        CutChainConfig(
            record_size=DEFAULT_CUT_RECORD_SIZE if self.record_size is None else self.record_size,
            last_cut_index=1 if self.last_cut_index is None else self.last_cut_index,
            max_cuts=DEFAULT_MAX_CUTS if self.max_cuts is None else self.max_cuts,
            byte_order=self.byte_order,
        ).validate()


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _eval_expr(expr: str) -> float | int:
    """Safely evaluate a numeric arithmetic expression such as "16 + 8 * 206".

    Allowed: int/float literals, +, -, *, /, //, %, ** and parentheses.
    Everything else (names, calls, attributes) is rejected.
    """
    node = ast.parse(expr, mode="eval")

    bin_ops = {
        ast.Add: _op.add,
        ast.Sub: _op.sub,
        ast.Mult: _op.mul,
        ast.Div: _op.truediv,
        ast.FloorDiv: _op.floordiv,
        ast.Mod: _op.mod,
        ast.Pow: _op.pow,
    }
    unary_ops = {ast.UAdd: _op.pos, ast.USub: _op.neg}

    def _eval(n: ast.AST) -> float | int:
        if isinstance(n, ast.Expression):
            return _eval(n.body)
        if isinstance(n, ast.Constant):
            if isinstance(n.value, (int, float)) and not isinstance(n.value, bool):
                return n.value
            raise ValueError("non-numeric constant in expression")
        if isinstance(n, ast.BinOp):
            if type(n.op) not in bin_ops:
                raise ValueError("operator not allowed in expression")
            return bin_ops[type(n.op)](_eval(n.left), _eval(n.right))
        if isinstance(n, ast.UnaryOp):
            if type(n.op) not in unary_ops:
                raise ValueError("unary operator not allowed in expression")
            return unary_ops[type(n.op)](_eval(n.operand))
        raise ValueError("unsupported syntax in expression")

    return _eval(node)


def _as_int(value: Any, key: str) -> Optional[int]:
    """Coerce a YAML scalar (or arithmetic string) to int; None stays None."""
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            value = _eval_expr(s)
        except (SyntaxError, ValueError, ZeroDivisionError) as exc:
            raise ConfigurationError(f"cannot evaluate '{key}': {value!r}") from exc
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level YAML document must be a mapping")
        return data


def load_config(path: str | Path | None) -> FCFConfig:
    """Load configuration from a YAML file or return defaults.

    The schema is minimal and forgiving; unknown keys are ignored. Only YAML is supported.
    """
    if path is None:
        return FCFConfig()
    p = Path(path)
    if not p.exists():
        return FCFConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    raw = _load_yaml(p)
    run = _as_dict(raw.get("run"))
    mapcut = _as_dict(raw.get("mapcut"))
    cuts = _as_dict(raw.get("cuts"))

    register_size = _as_int(mapcut.get("register_size"), "register_size")
    stage_index = _as_int(mapcut.get("stage_record_index"), "stage_record_index")
    layout = MapcutLayout(
        register_size=DEFAULT_MAPCUT_REGISTER_SIZE if register_size is None else register_size,
        stage_record_index=DEFAULT_STAGE_RECORD_INDEX if stage_index is None else stage_index,
        byte_order=str(mapcut.get("byte_order", "<")),
    )
    layout.validate()

    ids = cuts.get("reservoir_ids")
    reservoir_ids: Optional[tuple[int, ...]] = None
    if ids is not None:
        if not isinstance(ids, (list, tuple)):
            raise ConfigurationError("'reservoir_ids' must be a list of integers")
        reservoir_ids = tuple(int(x) for x in ids)

    return FCFConfig(
        mapcut=layout,
        record_size=_as_int(cuts.get("record_size"), "record_size"),
        last_cut_index=_as_int(cuts.get("last_cut_index"), "last_cut_index"),
        max_cuts=_as_int(cuts.get("max_cuts"), "max_cuts"),
        reservoir_ids=reservoir_ids,
        byte_order=str(cuts.get("byte_order", "<")),
        log_level=str(run.get("log_level", "INFO")),
    )


__all__ = [
    "ConfigurationError",
    "MapcutLayout",
    "CutChainConfig",
    "FCFConfig",
    "load_config",
    "CUT_HEADER_BYTES",
    "COEFFICIENT_BYTES",
    "DEFAULT_CUT_RECORD_SIZE",
    "DEFAULT_MAX_CUTS",
    "DEFAULT_MAPCUT_REGISTER_SIZE",
    "DEFAULT_STAGE_RECORD_INDEX",
]
