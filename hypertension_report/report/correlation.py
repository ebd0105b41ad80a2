"""Pearson correlation tests between the council-area measures."""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Tuple

import pandas as pd
from scipy import stats

log = logging.getLogger("report.correlation")

CORRELATION_PAIRS: List[Tuple[str, str]] = [
    ("over65_CA", "paid_quantity"),
    ("mean_simd_rank", "paid_quantity"),
    ("mean_simd_rank", "over65_total_death"),
]


@dataclass
class CorrelationResult:
    x: str
    y: str
    n: int
    coefficient: float
    p_value: float
    ci_low: float
    ci_high: float
    confidence_level: float = 0.95

    def as_dict(self) -> Dict:
        return asdict(self)

    def describe(self) -> str:
        return (
            f"{self.x} vs {self.y}: r = {self.coefficient:.4f}, "
            f"p = {self.p_value:.4g}, "
            f"{self.confidence_level:.0%} CI [{self.ci_low:.4f}, {self.ci_high:.4f}], n = {self.n}"
        )


def pearson_test(df: pd.DataFrame, x: str, y: str, confidence_level: float = 0.95) -> CorrelationResult:
    """Two-sided Pearson test on the rows where both x and y are present."""
    pair = df[[x, y]].apply(pd.to_numeric, errors="coerce").dropna()
    if len(pair) < 3:
        raise ValueError(f"Pearson test {x} vs {y} needs at least 3 complete rows, got {len(pair)}")

    result = stats.pearsonr(pair[x].to_numpy(dtype=float), pair[y].to_numpy(dtype=float))
    ci = result.confidence_interval(confidence_level=confidence_level)

    return CorrelationResult(
        x=x,
        y=y,
        n=len(pair),
        coefficient=float(result.statistic),
        p_value=float(result.pvalue),
        ci_low=float(ci.low),
        ci_high=float(ci.high),
        confidence_level=confidence_level,
    )


def run_correlation_tests(df: pd.DataFrame, pairs: List[Tuple[str, str]] = None) -> List[CorrelationResult]:
    results = []
    for x, y in pairs or CORRELATION_PAIRS:
        res = pearson_test(df, x, y)
        log.info(res.describe())
        results.append(res)
    return results
