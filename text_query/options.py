"""
Pydantic models for text search options.

Options usually arrive from request parameters, so parsing is lenient:
unknown or malformed values fall back to defaults (with a warning) instead of
failing the search. The rank options also accept the short keys used by older
clients ("_f", "_w", "_n") and may be submitted as a JSON string.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

WEIGHT_LABELS = ("A", "B", "C", "D")


class RankFunction(str, Enum):
    TS_RANK = "ts_rank"
    TS_RANK_CD = "ts_rank_cd"


# =============================================================================
# Rank options
# =============================================================================

class RankOptions(BaseModel):
    """
    Options for the ranking function call.

    - function: ts_rank (default) or ts_rank_cd (cover density)
    - weights: label -> weight in [0, 1]; when given, unlisted labels weigh 0.
      When absent, no weight array is passed and Postgres defaults apply.
    - normalization: bit mask; None means the configured default (16)
    - tsv: tsvector column (or expression) used when ranking for ORDER BY;
      None means the configured default
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    function: RankFunction = Field(default=RankFunction.TS_RANK, alias="_f")
    weights: Optional[Dict[str, float]] = Field(default=None, alias="_w")
    normalization: Optional[int] = Field(default=None, alias="_n")
    tsv: Optional[str] = None

    @field_validator("function", mode="before")
    @classmethod
    def _known_function(cls, v: Any) -> RankFunction:
        if isinstance(v, RankFunction):
            return v
        try:
            return RankFunction(str(v))
        except ValueError:
            logger.warning("unsupported rank function %r; using ts_rank", v)
            return RankFunction.TS_RANK

    @field_validator("weights", mode="before")
    @classmethod
    def _clean_weights(cls, v: Any) -> Optional[Dict[str, float]]:
        if v is None:
            return None
        if not isinstance(v, dict):
            logger.warning("rank weights must be a mapping, got %r; ignoring", v)
            return None
        out: Dict[str, float] = {}
        for label, weight in v.items():
            key = str(label).upper()
            if key not in WEIGHT_LABELS:
                logger.warning("unknown rank weight label %r; ignoring", label)
                continue
            try:
                w = float(weight)
            except (TypeError, ValueError):
                logger.warning("rank weight %r=%r is not a number; ignoring", label, weight)
                continue
            out[key] = min(1.0, max(0.0, w))
        return out

    @field_validator("normalization", mode="before")
    @classmethod
    def _int_normalization(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        if isinstance(v, bool) or not isinstance(v, int):
            logger.warning("rank normalization %r is not an integer; using default", v)
            return None
        return v

    def weight_array(self) -> Optional[List[float]]:
        """Weights in the order Postgres expects: {D, C, B, A}."""
        if self.weights is None:
            return None
        return [self.weights.get(label, 0) for label in reversed(WEIGHT_LABELS)]


def parse_rank_options(value: Any) -> RankOptions:
    """
    Coerce `value` into RankOptions.

    Accepts None, a RankOptions, a mapping, or a JSON string holding an
    object. Anything that cannot be parsed yields default options.
    """
    if value is None:
        return RankOptions()
    if isinstance(value, RankOptions):
        return value
    try:
        if isinstance(value, (str, bytes)):
            return RankOptions.model_validate_json(value)
        if isinstance(value, dict):
            return RankOptions.model_validate(value)
    except ValidationError as e:
        logger.warning("invalid rank options %r (%s); using defaults", value, e.error_count())
        return RankOptions()

    logger.warning("unsupported rank options type %s; using defaults", type(value).__name__)
    return RankOptions()


# =============================================================================
# Search options
# =============================================================================

class SearchOptions(BaseModel):
    """
    Options for assembling a full text search.

    - order: comma-separated string or list of ORDER BY clauses; False for no
      ordering; None for the configured default. A clause starting with
      "rank" orders by text search score.
    - rank: options for the rank clause (see RankOptions)
    - with_headline: True for a "headline" pseudo-attribute, or a string
      naming it
    - headline_options: options for ts_headline (StartSel, MaxWords, ...)
    - with_configuration: text search configuration for to_tsquery in the
      WHERE clause
    """
    model_config = ConfigDict(extra="ignore")

    order: Union[bool, str, List[str], None] = None
    rank: RankOptions = Field(default_factory=RankOptions)
    with_headline: Union[bool, str] = False
    headline_options: Optional[Dict[str, Any]] = None
    with_configuration: Optional[str] = None

    @field_validator("rank", mode="before")
    @classmethod
    def _parse_rank(cls, v: Any) -> RankOptions:
        return parse_rank_options(v)


def parse_search_options(value: Any) -> SearchOptions:
    """
    Coerce `value` (None, SearchOptions or mapping) into SearchOptions.
    """
    if value is None:
        return SearchOptions()
    if isinstance(value, SearchOptions):
        return value
    if isinstance(value, dict):
        try:
            return SearchOptions.model_validate(value)
        except ValidationError as e:
            logger.warning("invalid search options (%s errors); using defaults", e.error_count())
            return SearchOptions()

    logger.warning("unsupported search options type %s; using defaults", type(value).__name__)
    return SearchOptions()
