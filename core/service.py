"""Assemble analyses, signals and AI output for the dashboard pages."""

from __future__ import annotations

import concurrent.futures as futures
from dataclasses import dataclass
import logging
from typing import Any

from core.models import Analysis, FullAnalysis, Signal
from core.repository import AIOutputRepository, AnalysisRepository, SignalRepository

TOP_BULLISH_LIMIT = 10
FETCH_MAX_WORKERS = 4

logger = logging.getLogger("signalboard.service")


@dataclass(frozen=True)
class DashboardData:
    analyses: list[Analysis]
    bullish_signals: list[Signal]


class AnalysisService:
    """Query facade over the three repositories sharing one client."""

    def __init__(
        self,
        analyses: AnalysisRepository,
        signals: SignalRepository,
        ai_outputs: AIOutputRepository,
        max_workers: int = FETCH_MAX_WORKERS,
    ) -> None:
        self.analyses = analyses
        self.signals = signals
        self.ai_outputs = ai_outputs
        self._executor = futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="signalboard-fetch")

    @classmethod
    def from_client(cls, client: Any, max_workers: int = FETCH_MAX_WORKERS) -> "AnalysisService":
        return cls(
            AnalysisRepository(client),
            SignalRepository(client),
            AIOutputRepository(client),
            max_workers=max_workers,
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def get_full_analysis(self, symbol: str) -> FullAnalysis | None:
        """Latest analysis for ``symbol`` with its signals and AI output; ``None`` if absent."""
        analysis = self.analyses.get_by_symbol(symbol)
        if analysis is None:
            logger.info("No analysis stored for %s", symbol)
            return None

        signals_job = self._executor.submit(self.signals.get_by_analysis_id, analysis.id)
        ai_job = self._executor.submit(self.ai_outputs.get_by_analysis_id, analysis.id)
        futures.wait([signals_job, ai_job])

        return FullAnalysis(analysis=analysis, signals=signals_job.result(), ai_output=ai_job.result())

    def get_dashboard_data(self) -> DashboardData:
        analyses_job = self._executor.submit(self.analyses.get_all)
        bullish_job = self._executor.submit(self.signals.get_bullish, TOP_BULLISH_LIMIT)
        futures.wait([analyses_job, bullish_job])
        return DashboardData(analyses=analyses_job.result(), bullish_signals=bullish_job.result())

    def get_all_symbols(self) -> list[str]:
        symbols: list[str] = []
        for analysis in self.analyses.get_all():
            if analysis.symbol not in symbols:
                symbols.append(analysis.symbol)
        return symbols
