"""Heart disease mortality by health board of residence."""

import logging
import re
from typing import Iterable, Optional

import pandas as pd

from hypertension_report.ingest.sources import as_code, load_source, require_columns

log = logging.getLogger("report.ingest.mortality")

MORTALITY_COLUMNS = ["year", "hbr", "age_group", "number_of_deaths"]


def load_mortality(config) -> pd.DataFrame:
    df = load_source(config.mortality_source, "mortality", config)
    require_columns(df, MORTALITY_COLUMNS, "mortality")
    return df


def normalise_age_group(label) -> str:
    """'65–74 years', '65-74 years' and '65-74' compare equal; 'plus' reads as '+'."""
    text = str(label).lower()
    text = text.replace("\u2013", "-").replace("\u2014", "-").replace("plus", "+")
    text = text.replace("years", "")
    return re.sub(r"\s+", "", text)


def _matches(series: pd.Series, value: str) -> pd.Series:
    return (series.astype("string").str.strip().str.lower() == value.lower()).fillna(False)


def filter_mortality(
    df: pd.DataFrame,
    year: int,
    age_groups: Iterable[str],
    sex: Optional[str] = None,
    diagnosis: Optional[str] = None,
) -> pd.DataFrame:
    """
    Deaths for one year and the given age groups, projected to
    hbr / age_group / number_of_deaths.

    sex and diagnosis only apply when the extract has those columns; the
    published file repeats every count per sex and per diagnosis subgroup.
    """
    require_columns(df, MORTALITY_COLUMNS, "mortality")

    wanted = {normalise_age_group(a) for a in age_groups}

    keep = pd.to_numeric(df["year"], errors="coerce") == year
    keep &= df["age_group"].map(normalise_age_group).isin(wanted)
    if sex is not None and "sex" in df.columns:
        keep &= _matches(df["sex"], sex)
    if diagnosis is not None and "diagnosis" in df.columns:
        keep &= _matches(df["diagnosis"], diagnosis)

    out = df.loc[keep, ["hbr", "age_group", "number_of_deaths"]].copy()
    out["hbr"] = as_code(out["hbr"])
    out["number_of_deaths"] = pd.to_numeric(out["number_of_deaths"], errors="coerce")
    out = out.reset_index(drop=True)

    log.info(f"Mortality: {len(out)} rows for {year}, age groups {sorted(wanted)}")
    return out
