"""
Derived metrics and the zero-mortality exclusion.

Zero recorded elderly deaths for a council area is treated as a data-quality
problem, not a real observation, so such areas are dropped by a named step
before the ratio is computed. The ratio itself does not guard its
denominator.
"""

import logging

import pandas as pd

from hypertension_report.config import RATIO_DECIMALS

log = logging.getLogger("report.transform.derived")


def exclude_zero_mortality(df: pd.DataFrame, deaths_col: str = "over65_total_death") -> pd.DataFrame:
    """Drop council areas with zero or missing recorded deaths."""
    deaths = pd.to_numeric(df[deaths_col], errors="coerce")

    is_zero = deaths == 0
    is_missing = deaths.isna()

    for _, row in df[is_zero].iterrows():
        log.warning(f"Excluded {row['council_area']}: zero recorded deaths (treated as unreliable)")
    for _, row in df[is_missing].iterrows():
        log.warning(f"Excluded {row['council_area']}: no mortality match for board {row.get('hb')}")

    out = df[~(is_zero | is_missing)].reset_index(drop=True)
    log.info(f"Mortality exclusion: {len(df)} → {len(out)} council areas "
             f"({int(is_zero.sum())} zero, {int(is_missing.sum())} missing)")
    return out


def add_prescriptions_per_death(
    df: pd.DataFrame,
    numerator: str = "paid_quantity",
    denominator: str = "over65_total_death",
) -> pd.DataFrame:
    """prescriptions_per_death = paid_quantity / over65_total_death, 1 dp."""
    zero = df[denominator] == 0
    if zero.any():
        areas = df.loc[zero, "council_area"].tolist()
        raise ZeroDivisionError(f"Zero deaths reached the ratio step for {areas}; run exclude_zero_mortality first")

    out = df.copy()
    out["prescriptions_per_death"] = (out[numerator] / out[denominator]).round(RATIO_DECIMALS)
    return out
