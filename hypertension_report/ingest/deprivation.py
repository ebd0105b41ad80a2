"""SIMD data-zone lookup: deprivation quintile per data zone, tagged with health board."""

import logging

import pandas as pd

from hypertension_report.ingest.sources import as_code, load_source, require_columns

log = logging.getLogger("report.ingest.deprivation")


def load_deprivation(config) -> pd.DataFrame:
    df = load_source(config.deprivation_source, "deprivation", config)
    require_columns(df, ["hb", config.deprivation_quintile_column], "deprivation")
    return df


def select_deprivation(df: pd.DataFrame, quintile_column: str = "simd2020v2_country_quintile") -> pd.DataFrame:
    """hb / quintile_rank; quintiles run 1 (most deprived) to 5 (least deprived)."""
    require_columns(df, ["hb", quintile_column], "deprivation")

    out = pd.DataFrame({
        "hb": as_code(df["hb"]),
        "quintile_rank": pd.to_numeric(df[quintile_column], errors="coerce"),
    }).reset_index(drop=True)

    n_missing = int(out["quintile_rank"].isna().sum())
    if n_missing:
        log.warning(f"Deprivation: {n_missing} rows without a quintile (ignored in means)")

    log.info(f"Deprivation: {len(out)} rows across {out['hb'].nunique()} health boards")
    return out
