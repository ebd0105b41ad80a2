"""
GP practice prescriptions (Prescriptions in the Community).

Keeps calcium-channel-blocker items only and drops the ambulance-service
health board, which is not a territorial board and has no resident population.
"""

import logging
import re
from typing import Iterable

import pandas as pd

from hypertension_report.ingest.sources import as_code, load_source, require_columns

log = logging.getLogger("report.ingest.prescriptions")

PRESCRIPTION_COLUMNS = ["gp_practice", "hbt", "bnf_item_description", "paid_quantity"]


def load_prescriptions(config) -> pd.DataFrame:
    df = load_source(config.prescriptions_source, "prescriptions", config)
    require_columns(df, PRESCRIPTION_COLUMNS, "prescriptions")
    return df


def drug_name_pattern(drug_names: Iterable[str]) -> str:
    names = [re.escape(n.strip()) for n in drug_names if n and n.strip()]
    if not names:
        raise ValueError("At least one drug name is required")
    return "|".join(names)


def filter_prescriptions(
    df: pd.DataFrame,
    drug_names: Iterable[str],
    excluded_hb: str,
) -> pd.DataFrame:
    """
    Rows whose item description contains any of drug_names (case-insensitive),
    outside the excluded health board, projected to PRESCRIPTION_COLUMNS.
    """
    require_columns(df, PRESCRIPTION_COLUMNS, "prescriptions")

    pattern = drug_name_pattern(drug_names)
    description = df["bnf_item_description"].astype("string")
    is_ccb = description.str.contains(pattern, case=False, regex=True, na=False)
    is_excluded = as_code(df["hbt"]) == excluded_hb

    out = df.loc[is_ccb & ~is_excluded.fillna(False), PRESCRIPTION_COLUMNS].copy()
    out["gp_practice"] = as_code(out["gp_practice"])
    out["hbt"] = as_code(out["hbt"])
    out["paid_quantity"] = pd.to_numeric(out["paid_quantity"], errors="coerce")
    out = out.reset_index(drop=True)

    log.info(
        f"Prescriptions: {is_ccb.sum()} CCB rows of {len(df)}, "
        f"{int((is_ccb & is_excluded.fillna(False)).sum())} dropped for {excluded_hb} → {len(out)} kept"
    )
    return out
