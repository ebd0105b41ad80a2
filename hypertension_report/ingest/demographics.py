"""GP practice list sizes by age band."""

import logging

import pandas as pd

from hypertension_report.config import ELDERLY_AGE_BANDS
from hypertension_report.ingest.sources import as_code, load_source, require_columns

log = logging.getLogger("report.ingest.demographics")

DEMOGRAPHIC_COLUMNS = ["practice_code"] + ELDERLY_AGE_BANDS


def load_demographics(config) -> pd.DataFrame:
    df = load_source(config.demographics_source, "demographics", config)
    require_columns(df, DEMOGRAPHIC_COLUMNS, "demographics")
    return df


def select_elderly_population(df: pd.DataFrame) -> pd.DataFrame:
    """
    One over_65 figure per practice row: the sum of the three oldest bands.

    List-size extracts carry Male/Female/All rows per practice; only the "All"
    rows are kept when a sex column is present.
    """
    require_columns(df, DEMOGRAPHIC_COLUMNS, "demographics")

    if "sex" in df.columns:
        df = df[(df["sex"].astype("string").str.strip().str.lower() == "all").fillna(False)]

    bands = df[ELDERLY_AGE_BANDS].apply(pd.to_numeric, errors="coerce")

    out = pd.DataFrame({
        "practice_code": as_code(df["practice_code"]),
        "over_65": bands.sum(axis=1, min_count=1),
    }).reset_index(drop=True)

    log.info(f"Demographics: {len(out)} practices, {out['over_65'].sum():,.0f} aged 65+")
    return out
