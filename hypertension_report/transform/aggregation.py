"""
Per-key aggregation for the council-area report.

Every aggregation goes through aggregate_by_key with a declared reducer per
column:
  - sum   → counts (NA skipped; an all-NA group stays NA, never 0)
  - mean  → ranks (NA skipped)
  - first → values already aggregated upstream (e.g. a board code per area)

Rounding policy:
  - mean SIMD rank: SIMD_RANK_DECIMALS (4 dp)
  - prescriptions per death: RATIO_DECIMALS (1 dp), applied in transform.derived
"""

import logging
from typing import Dict, List, Union

import pandas as pd

from hypertension_report.config import SIMD_RANK_DECIMALS

log = logging.getLogger("report.transform.aggregation")

REDUCERS = ("sum", "mean", "first")


def _reduce(grouped, column: str, reducer: str) -> pd.Series:
    if reducer == "sum":
        return grouped[column].sum(min_count=1)
    if reducer == "mean":
        return grouped[column].mean()
    if reducer == "first":
        return grouped[column].first()
    raise ValueError(f"Unknown reducer '{reducer}' for {column}; expected one of {REDUCERS}")


def aggregate_by_key(
    df: pd.DataFrame,
    key: Union[str, List[str]],
    reducers: Dict[str, str],
) -> pd.DataFrame:
    """
    Group df by key and emit one row per key.

    Args:
        df: input rows
        key: grouping column(s); rows with a missing key are dropped
        reducers: {column: 'sum' | 'mean' | 'first'}

    Returns:
        New dataframe with the key column(s) followed by the reduced columns
    """
    keys = [key] if isinstance(key, str) else list(key)

    missing = [c for c in keys + list(reducers) if c not in df.columns]
    if missing:
        log.error(f"Missing columns for aggregation by {keys}: {missing}")
        raise ValueError(f"Cannot aggregate by {keys}: missing {missing}")

    df_clean = df.dropna(subset=keys)
    if len(df_clean) < len(df):
        log.warning(f"Dropped {len(df) - len(df_clean)} rows with missing {keys}")

    grouped = df_clean.groupby(keys, sort=True)
    agg = pd.DataFrame({col: _reduce(grouped, col, reducer) for col, reducer in reducers.items()})
    agg = agg.reset_index()

    return agg[keys + list(reducers)]


# -----------------------------
# Report aggregations
# -----------------------------

def prescriptions_per_practice(prescriptions: pd.DataFrame) -> pd.DataFrame:
    """Total paid quantity per GP practice (one row per practice)."""
    agg = aggregate_by_key(
        prescriptions.rename(columns={"gp_practice": "practice_code"}),
        "practice_code",
        {"hbt": "first", "paid_quantity": "sum"},
    )
    agg = agg.rename(columns={"hbt": "hb"})
    log.info(f"Prescriptions: {len(agg)} practices, {agg['paid_quantity'].sum():,.0f} items paid")
    return agg


def elderly_population_per_practice(demographics: pd.DataFrame) -> pd.DataFrame:
    return aggregate_by_key(demographics, "practice_code", {"over_65": "sum"})


def deaths_per_health_board(mortality: pd.DataFrame) -> pd.DataFrame:
    """Elderly deaths summed over the retained age groups, per board of residence."""
    agg = aggregate_by_key(mortality, "hbr", {"number_of_deaths": "sum"})
    agg = agg.rename(columns={"hbr": "hb", "number_of_deaths": "over65_total_death"})
    log.info(f"Mortality: {len(agg)} health boards, {agg['over65_total_death'].sum():,.0f} deaths")
    return agg


def mean_simd_rank_per_area(deprivation: pd.DataFrame, key: str = "hb") -> pd.DataFrame:
    """Mean quintile over the data zones of each area (board code or council-area label)."""
    agg = aggregate_by_key(deprivation, key, {"quintile_rank": "mean"})
    agg["mean_simd_rank"] = agg.pop("quintile_rank").round(SIMD_RANK_DECIMALS)
    return agg


def concatenate_council_areas(mapping: pd.DataFrame, separator: str = ", ") -> pd.DataFrame:
    """
    Collapse the many council areas of a health board into one label.

    Joining the raw lookup would fan each board out into one row per council
    area and double-count every board-level figure downstream.
    """
    labels = (
        mapping.dropna(subset=["health_board_name", "council_area"])
        .drop_duplicates()
        .sort_values(["health_board_name", "council_area"])
        .groupby("health_board_name")["council_area"]
        .agg(separator.join)
        .reset_index()
    )

    multi = labels[labels["council_area"].str.contains(separator, regex=False)]
    if not multi.empty:
        log.info(f"{len(multi)} health boards span several council areas; areas merged into one label each")

    return labels
