# wind_monitor/parser/__init__.py
from __future__ import annotations

import random
from datetime import datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from ..domain.models import DataSource, ParseOutcome
from ..logger.app_logger import get_logger
from .strategies import (
    ParseContext,
    ParseStrategy,
    SyntheticObservationGenerator,
    aggregate_token_strategy,
    line_pattern_strategy,
)
from .text_extractor import html_to_text

logger = get_logger(__name__)

SYNTHETIC_STRATEGY = "synthetic"

_STRATEGY_NAMES = {
    line_pattern_strategy: "line_pattern",
    aggregate_token_strategy: "aggregate_token",
}


class StrategyChain:
    """Run parsing strategies in order until one yields records.

    When every strategy comes back empty the synthetic generator supplies a
    placeholder so callers always have something to merge.
    """

    def __init__(self, context: Optional[ParseContext] = None) -> None:
        self.context = context or ParseContext()
        self.strategies: List[tuple[str, ParseStrategy]] = []

    def add_strategy(self, strategy: ParseStrategy, name: Optional[str] = None) -> None:
        """Append a strategy; order of calls is the order of attempts."""
        label = name or _STRATEGY_NAMES.get(strategy) or getattr(strategy, "__name__", repr(strategy))
        self.strategies.append((label, strategy))

    def parse(self, text: str, owner_id: str) -> ParseOutcome:
        """
        Args:
            text: scraped page already flattened to lines
            owner_id: owner stamped on every produced record

        Returns:
            ParseOutcome: records plus the name of the strategy that produced them
        """
        for name, strategy in self.strategies:
            try:
                records = strategy(text or "", owner_id, self.context)
            except Exception as exc:  # a broken strategy must not stop the chain
                logger.exception("Strategy %s failed: %s", name, exc)
                continue
            if records:
                logger.info("Strategy %s produced %s records", name, len(records))
                return ParseOutcome(records=list(records), strategy=name, source=DataSource.LIVE)
            logger.debug("Strategy %s produced nothing", name)

        return self.synthesize(owner_id)

    def synthesize(self, owner_id: str, count: int = 1) -> ParseOutcome:
        """Skip parsing and return generated placeholder records."""
        records = SyntheticObservationGenerator(self.context).generate(owner_id, count=count)
        return ParseOutcome(records=records, strategy=SYNTHETIC_STRATEGY, source=DataSource.SYNTHETIC)


def build_default_chain(
    *,
    timezone_name: str = "Europe/Rome",
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
    max_line_candidates: int = 60,
    max_aggregate_candidates: int = 10,
) -> StrategyChain:
    """Return the line-pattern → aggregate-token → synthetic chain."""
    context_kwargs = {
        "tz": ZoneInfo(timezone_name),
        "rng": rng or random.Random(),
        "max_line_candidates": max_line_candidates,
        "max_aggregate_candidates": max_aggregate_candidates,
    }
    if clock is not None:
        context_kwargs["clock"] = clock
    chain = StrategyChain(ParseContext(**context_kwargs))
    chain.add_strategy(line_pattern_strategy)
    chain.add_strategy(aggregate_token_strategy)
    return chain


def parse_page(content: str, owner_id: str, chain: Optional[StrategyChain] = None) -> ParseOutcome:
    """Flatten ``content`` (HTML or text) and run it through ``chain``."""
    chain = chain or build_default_chain()
    return chain.parse(html_to_text(content), owner_id)
