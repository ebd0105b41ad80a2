"""
Join chain: GP practice → health board → council area, then mortality and
deprivation brought to the same council-area label.

Every step is a left join that keeps the driving table's row count. A right
table with duplicated keys would fan rows out and inflate the sums taken
afterwards, so it is rejected before merging. Keys absent from the right table
leave NA in the right-hand columns; that is logged, not raised.
"""

import logging
from typing import Optional

import pandas as pd

from hypertension_report.transform.aggregation import (
    aggregate_by_key,
    concatenate_council_areas,
    deaths_per_health_board,
    elderly_population_per_practice,
    mean_simd_rank_per_area,
    prescriptions_per_practice,
)

log = logging.getLogger("report.transform.joins")


def left_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str,
    right_on: Optional[str] = None,
    name: str = "join",
) -> pd.DataFrame:
    """Left join that refuses to change the left row count."""
    right_on = right_on or on

    for frame, col, side in ((left, on, "left"), (right, right_on, "right")):
        if col not in frame.columns:
            raise ValueError(f"{name}: join key '{col}' missing from {side} table")

    dup_keys = right[right_on].dropna().duplicated(keep=False)
    if dup_keys.any():
        dups = right.loc[dup_keys[dup_keys].index, right_on].unique().tolist()
        log.error(f"{name}: right table has duplicated keys {dups[:10]}")
        raise ValueError(f"{name}: duplicated join keys on right table would fan out rows")

    match_rate = left[on].isin(right[right_on].dropna()).mean() if len(left) else 1.0
    log.info(f"{name}: match rate {match_rate:.2%}")
    if match_rate < 1.0:
        unmatched = left.loc[~left[on].isin(right[right_on]), on].unique().tolist()
        log.warning(f"{name}: {len(unmatched)} unmatched keys → NA right-hand columns: {unmatched[:10]}")

    merged = left.merge(right, left_on=on, right_on=right_on, how="left", suffixes=("", "_right"))
    if right_on != on:
        merged = merged.drop(columns=[right_on])

    if len(merged) != len(left):
        raise ValueError(f"{name}: row count changed {len(left)} → {len(merged)}")

    return merged


def practice_table(prescriptions: pd.DataFrame, demographics: pd.DataFrame) -> pd.DataFrame:
    """One row per prescribing practice: hb, paid_quantity, over_65."""
    practices = prescriptions_per_practice(prescriptions)
    population = elderly_population_per_practice(demographics)
    return left_join(practices, population, on="practice_code", name="practice → demographics")


def council_area_labels(health_boards: pd.DataFrame, council_areas: pd.DataFrame) -> pd.DataFrame:
    """
    Board code → hb_name and council-area label, one row per board code.

    Archived and current codes of one board share a name, so several codes
    can map to the same label. Every board-level table is brought to the
    label through this table before it is summed.
    """
    return left_join(
        health_boards,
        concatenate_council_areas(council_areas),
        on="hb_name",
        right_on="health_board_name",
        name="health board → council area",
    )


def tag_council_areas(df: pd.DataFrame, labels: pd.DataFrame, name: str) -> pd.DataFrame:
    return left_join(df, labels[["hb", "council_area"]], on="hb", name=name)


def map_practices_to_council_areas(
    prescriptions: pd.DataFrame,
    demographics: pd.DataFrame,
    labels: pd.DataFrame,
) -> pd.DataFrame:
    """Practice table tagged with hb_name and its council-area label."""
    practices = practice_table(prescriptions, demographics)
    practices = left_join(practices, labels, on="hb", name="practice → council area")

    n_unmapped = int(practices["council_area"].isna().sum())
    if n_unmapped:
        log.warning(f"{n_unmapped} practices have no council area and are left out of area totals")

    return practices


def deaths_per_council_area(mortality: pd.DataFrame, labels: pd.DataFrame) -> pd.DataFrame:
    """Deaths summed over every board code that maps to the label."""
    boards = tag_council_areas(deaths_per_health_board(mortality), labels, "mortality → council area")
    return aggregate_by_key(boards, "council_area", {"over65_total_death": "sum"})


def mean_simd_rank_per_council_area(deprivation: pd.DataFrame, labels: pd.DataFrame) -> pd.DataFrame:
    """Mean quintile over the data zones of every board code that maps to the label."""
    zones = tag_council_areas(deprivation, labels, "deprivation → council area")
    return mean_simd_rank_per_area(zones, key="council_area")


def summarise_council_areas(
    practices: pd.DataFrame,
    mortality: pd.DataFrame,
    deprivation: pd.DataFrame,
    labels: pd.DataFrame,
) -> pd.DataFrame:
    """
    One row per council-area label.

    Population, prescriptions, deaths and deprivation are all reduced at the
    label, so a label fed by several board codes counts each of them once.

    Returns:
        council_area, hb, over65_CA, paid_quantity, over65_total_death, mean_simd_rank
    """
    summary = aggregate_by_key(
        practices,
        "council_area",
        {"hb": "first", "over_65": "sum", "paid_quantity": "sum"},
    )
    summary = summary.rename(columns={"over_65": "over65_CA"})

    summary = left_join(
        summary, deaths_per_council_area(mortality, labels), on="council_area", name="council area → mortality"
    )
    summary = left_join(
        summary, mean_simd_rank_per_council_area(deprivation, labels), on="council_area", name="council area → deprivation"
    )

    log.info(f"Council-area summary: {len(summary)} areas")
    return summary[["council_area", "hb", "over65_CA", "paid_quantity", "over65_total_death", "mean_simd_rank"]]


def build_council_area_summary(
    prescriptions: pd.DataFrame,
    demographics: pd.DataFrame,
    health_boards: pd.DataFrame,
    council_areas: pd.DataFrame,
    mortality: pd.DataFrame,
    deprivation: pd.DataFrame,
) -> pd.DataFrame:
    """Join the filtered sources (outputs of the ingest select/filter steps) into the area summary."""
    labels = council_area_labels(health_boards, council_areas)
    practices = map_practices_to_council_areas(prescriptions, demographics, labels)
    return summarise_council_areas(practices, mortality, deprivation, labels)
