"""
Defaults for text query compilation.

This module defines:
- The TextSearchConfig dataclass holding the fallback values used by the
  SQL fragment builders (default ORDER BY, tsvector column, rank
  normalization, headline attribute name, text search configuration)
- load_config(), which builds a TextSearchConfig from environment variables

Builders never read the environment on their own; callers that want
environment-driven defaults call load_config() and pass the result in.

Environment variables:
    TEXT_QUERY_DEFAULT_ORDER    comma-separated ORDER BY clauses
    TEXT_QUERY_TSV              tsvector column used by rank ordering
    TEXT_QUERY_NORMALIZATION    rank normalization bit mask
    TEXT_QUERY_HEADLINE_ATTR    name of the headline pseudo-attribute
    TEXT_QUERY_CONFIG           text search configuration for the WHERE clause
    TEXT_QUERY_LOAD_DOTENV      set to 1 to load a .env file first
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_ORDER: Tuple[str, ...] = ("updated_at DESC",)
DEFAULT_TSV = "tsv"

# 16 divides the rank by 1 + log(number of unique words in the document),
# which favors shorter documents that contain the search terms
DEFAULT_NORMALIZATION = 16

DEFAULT_HEADLINE_ATTR = "headline"


@dataclass(frozen=True)
class TextSearchConfig:
    """
    Fallback values for the fragment builders.

    default_order is used when no order is requested at all, and also
    replaces a "rank" directive when there is no query to rank against.
    """
    default_order: Tuple[str, ...] = DEFAULT_ORDER
    default_tsv: str = DEFAULT_TSV
    default_normalization: int = DEFAULT_NORMALIZATION
    headline_attr: str = DEFAULT_HEADLINE_ATTR
    text_search_config: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "default_order": list(self.default_order),
            "default_tsv": self.default_tsv,
            "default_normalization": self.default_normalization,
            "headline_attr": self.headline_attr,
            "text_search_config": self.text_search_config,
        }


DEFAULT_CONFIG = TextSearchConfig()


# =============================================================================
# Environment loading
# =============================================================================

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d", name, raw, default)
        return default


def load_config() -> TextSearchConfig:
    """
    Build a TextSearchConfig from environment variables.

    Unset or empty variables keep the built-in defaults.
    """
    if os.getenv("TEXT_QUERY_LOAD_DOTENV") == "1":
        from dotenv import find_dotenv, load_dotenv

        # does not override variables already set in the environment
        load_dotenv(find_dotenv(usecwd=True))

    order_raw = os.getenv("TEXT_QUERY_DEFAULT_ORDER", "")
    order = tuple(o for o in re.split(r",\s*", order_raw.strip()) if o)

    cfg = TextSearchConfig(
        default_order=order or DEFAULT_ORDER,
        default_tsv=os.getenv("TEXT_QUERY_TSV") or DEFAULT_TSV,
        default_normalization=_env_int("TEXT_QUERY_NORMALIZATION", DEFAULT_NORMALIZATION),
        headline_attr=os.getenv("TEXT_QUERY_HEADLINE_ATTR") or DEFAULT_HEADLINE_ATTR,
        text_search_config=os.getenv("TEXT_QUERY_CONFIG") or None,
    )
    logger.debug("text query config: %s", cfg.to_dict())
    return cfg
