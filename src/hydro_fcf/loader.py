from __future__ import annotations

import logging
from pathlib import Path

from .config import (
    CUT_HEADER_BYTES,
    COEFFICIENT_BYTES,
    DEFAULT_CUT_RECORD_SIZE,
    DEFAULT_MAX_CUTS,
    CutChainConfig,
    FCFConfig,
    load_config,
)
from .logging_config import setup_logging
from .fcf.builder import build_cut_set
from .fcf.cortdeco import decode_cut_chain
from .fcf.mapcut import decode_mapcut
from .fcf.types import CutSet, MapcutMetadata

log = logging.getLogger(__name__)


def resolve_chain_config(
    meta: MapcutMetadata, config: FCFConfig, mapcut_path: str | Path = "mapcut"
) -> CutChainConfig:
    """Pick cut-file parameters: explicit config, then mapcut, then defaults.

    An unusable record size read from the mapcut is replaced by the default
    with a warning; only explicit config values are rejected by `validate`.
    """
    record_size = config.record_size
    if record_size is None:
        record_size = meta.cut_record_size
        min_size = CUT_HEADER_BYTES + COEFFICIENT_BYTES
        if record_size < min_size:
            if record_size != 0:
                log.warning(
                    "%s: mapcut cut record size %d below minimum %d bytes, using %d",
                    mapcut_path, record_size, min_size, DEFAULT_CUT_RECORD_SIZE,
                )
            record_size = DEFAULT_CUT_RECORD_SIZE

    last_cut = config.last_cut_index
    if last_cut is None:
        last_cut = meta.last_cut_index if meta.last_cut_index > 0 else 1

    max_cuts = config.max_cuts
    if max_cuts is None:
        max_cuts = meta.cut_count if meta.cut_count > 0 else DEFAULT_MAX_CUTS

    return CutChainConfig(
        record_size=int(record_size),
        last_cut_index=int(last_cut),
        max_cuts=int(max_cuts),
        byte_order=config.byte_order,
    )


def load_fcf(
    mapcut_path: str | Path,
    cut_path: str | Path,
    config: FCFConfig | None = None,
) -> CutSet:
    """Decode a mapcut/cut file pair into a `CutSet`.

    The mapcut supplies the reservoir ordering, record size, newest cut
    index and stage count unless `config` overrides them.
    """
    cfg = config or FCFConfig()
    # caller errors surface here, before either file is opened
    cfg.validate()
    meta = decode_mapcut(mapcut_path, cfg.mapcut)
    chain_cfg = resolve_chain_config(meta, cfg, mapcut_path)

    reservoir_ids = cfg.reservoir_ids if cfg.reservoir_ids is not None else meta.reservoir_ids
    if not reservoir_ids:
        log.warning("%s: no reservoir ordering available, all coefficients kept as residual", mapcut_path)

    raw = decode_cut_chain(cut_path, chain_cfg)
    cut_set = build_cut_set(
        raw,
        reservoir_ids,
        record_size=chain_cfg.record_size,
        stage_count=meta.stage.stage_count if meta.stage is not None else 0,
    )
    log.info(
        "loaded %d cut(s) over %d reservoir(s) from %s",
        len(cut_set), len(cut_set.reservoir_ids), cut_path,
    )
    return cut_set


def _default_config_path() -> Path:
    """Best-effort discovery of the default YAML config.

    Tries CWD `configs/default.yaml`, then the repo root relative to this
    file, and falls back to the CWD path.
    """
    cwd_path = Path("configs/default.yaml")
    if cwd_path.exists():
        return cwd_path
    here = Path(__file__).resolve()
    repo_path = here.parents[2] / "configs" / "default.yaml"
    if repo_path.exists():
        return repo_path
    return cwd_path


def run(
    mapcut_path: str | Path,
    cut_path: str | Path,
    config_path: str | Path | None = None,
) -> CutSet:
    """Load an FCF with options read from YAML, configuring logging first."""
    cfg_path = Path(config_path) if config_path is not None else _default_config_path()
    cfg = load_config(cfg_path)
    setup_logging(cfg.log_level)
    return load_fcf(mapcut_path, cut_path, cfg)


__all__ = ["load_fcf", "resolve_chain_config", "run"]
