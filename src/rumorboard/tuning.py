"""Lookup tables and selector weights, optionally overridden from ``tuning.yml``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rumorboard.errors import TuningError
from rumorboard.models import StatusTier

logger = logging.getLogger(__name__)

# ── Author trust table (handles compared case-insensitively) ──────────────
CREDIBILITY: dict[str, float] = {
    "@FabrizioRomano": 1.00,
    "@David_Ornstein": 0.99,
    "@DiMarzio": 0.97,
    "@Plettigoal": 0.95,
    "@romeoagresti": 0.93,
    "@Santi_J_FM": 0.85,
    "@JulienLaurens": 0.85,
    "@relevo": 0.84,
    "@MelissaReddy_": 0.84,
    "@JacobSteinberg": 0.83,
    "@SamiMokbel81_DM": 0.82,
    "@TheAthleticFC": 0.82,
    "@kerry_hau": 0.80,
    "@Jack_Gaughan": 0.80,
    "@M_S_Alshaikh": 0.80,
    "@A_Bin_Ahmad": 0.80,
}
DEFAULT_CREDIBILITY = 0.60

# ── Status tier weights (also the certainty fallback) ─────────────────────
STATUS_WEIGHTS: dict[StatusTier, float] = {
    StatusTier.CONFIRMED: 1.00,
    StatusTier.IMMINENT: 0.96,
    StatusTier.ADVANCED: 0.90,
    StatusTier.LINKED: 0.70,
    StatusTier.SPECULATIVE: 0.50,
    StatusTier.GHOSTED: 0.10,
    StatusTier.NO_SHOT: 0.05,
}
DEFAULT_STATUS_WEIGHT = 0.70


class SelectorWeights(BaseModel):
    """Featured-post composite score constants (tuneable)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    definitiveness: float = 10.0
    credibility: float = 4.0
    status: float = 3.0
    single_subject: float = 1.2
    engagement: float = 0.6
    alignment: float = 1.0
    recency_days: float = Field(default=21.0, gt=0)
    denial_penalty: float = Field(default=0.6, ge=0, le=1)
    definitive_threshold: float = 0.95
    definitive_band: float = Field(default=0.03, ge=0)


class Tuning(BaseModel):
    model_config = ConfigDict(frozen=True)

    weights: SelectorWeights = Field(default_factory=SelectorWeights)
    credibility: dict[str, float] = Field(default_factory=lambda: dict(CREDIBILITY))
    default_credibility: float = DEFAULT_CREDIBILITY
    status_weights: dict[StatusTier, float] = Field(default_factory=lambda: dict(STATUS_WEIGHTS))
    default_status_weight: float = DEFAULT_STATUS_WEIGHT

    def credibility_for(self, handle: str) -> float:
        wanted = handle.lower()
        for known, weight in self.credibility.items():
            if known.lower() == wanted:
                return weight
        return self.default_credibility

    def status_weight(self, status: StatusTier | None) -> float:
        if status is None:
            return self.default_status_weight
        return self.status_weights.get(status, self.default_status_weight)


DEFAULT_TUNING = Tuning()


def _status_overrides(raw: dict[str, Any]) -> dict[StatusTier, float]:
    parsed: dict[StatusTier, float] = {}
    for name, weight in raw.items():
        tier = StatusTier.parse(name)
        if tier is None:
            logger.warning("Ignoring unknown status tier in tuning file: %s", name)
            continue
        parsed[tier] = float(weight)
    return parsed


def load_tuning(path: str | Path | None) -> Tuning:
    """Read ``tuning.yml`` and overlay it on the built-in tables.

    Recognised top-level keys:
    - ``weights``: any subset of :class:`SelectorWeights` fields
    - ``credibility``: handle → trust weight (merged into the defaults)
    - ``default_credibility``: weight for unlisted authors
    - ``status_weights``: tier name → weight (merged into the defaults)

    A missing file yields :data:`DEFAULT_TUNING`.
    """
    if path is None:
        return DEFAULT_TUNING
    p = Path(path)
    if not p.exists():
        logger.warning("Tuning file not found, using built-in tables: %s", p)
        return DEFAULT_TUNING

    try:
        with open(p, encoding="utf-8") as fh:
            cfg: dict[str, Any] = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise TuningError(f"Cannot parse tuning file {p}: {exc}") from exc
    if not isinstance(cfg, dict):
        raise TuningError(f"Tuning file {p} must contain a mapping at top level")

    try:
        weights = SelectorWeights(
            **{**DEFAULT_TUNING.weights.model_dump(), **(cfg.get("weights") or {})}
        )
        credibility = {**CREDIBILITY, **(cfg.get("credibility") or {})}
        status_weights = {**STATUS_WEIGHTS, **_status_overrides(cfg.get("status_weights") or {})}
        tuning = Tuning(
            weights=weights,
            credibility=credibility,
            default_credibility=cfg.get("default_credibility", DEFAULT_CREDIBILITY),
            status_weights=status_weights,
        )
    except (ValidationError, TypeError, ValueError) as exc:
        raise TuningError(f"Invalid tuning file {p}: {exc}") from exc

    logger.info(
        "Loaded tuning from %s (%d credibility entries)", p, len(tuning.credibility)
    )
    return tuning
