"""Base class for every strategy data source."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from pilot.strategies.models import Strategy


class StrategySource(ABC):
    """ABC for strategy sources.

    Each implementation pulls one upstream (the yield feed, a protocol
    subgraph, the DEX pool API) and returns normalized Strategy records.
    Upstream failures propagate as ``UpstreamError``; callers decide whether
    to degrade.
    """

    name: str = "base"

    @abstractmethod
    async def fetch(self) -> Sequence[Strategy]:
        """Return every strategy currently offered by this source."""
        ...
