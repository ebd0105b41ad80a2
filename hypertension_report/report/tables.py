"""Formatted summary table: presentation only, no analysis."""

import pandas as pd

TABLE_COLUMNS = [
    "council_area",
    "over65_CA",
    "paid_quantity",
    "over65_total_death",
    "prescriptions_per_death",
    "mean_simd_rank",
]

TABLE_HEADERS = {
    "council_area": "Council area",
    "over65_CA": "Population 65+",
    "paid_quantity": "CCB paid quantity",
    "over65_total_death": "Heart disease deaths 65+",
    "prescriptions_per_death": "Prescriptions per death",
    "mean_simd_rank": "Mean SIMD quintile",
}

INTEGER_COLUMNS = ["over65_CA", "paid_quantity", "over65_total_death"]


def _fmt_int(value) -> str:
    return "" if pd.isna(value) else f"{value:,.0f}"


def _fmt_float(decimals: int):
    def fmt(value) -> str:
        return "" if pd.isna(value) else f"{value:.{decimals}f}"
    return fmt


def format_summary_table(df: pd.DataFrame, headers: bool = True) -> pd.DataFrame:
    """
    Fixed column order; counts as integers, ratio to 1 dp, SIMD rank to 4 dp.
    Rows sorted by prescriptions per death, highest first.
    """
    table = df[TABLE_COLUMNS].sort_values("prescriptions_per_death", ascending=False).reset_index(drop=True)

    formatted = pd.DataFrame({"council_area": table["council_area"].astype(str)})
    for col in INTEGER_COLUMNS:
        formatted[col] = table[col].map(_fmt_int)
    formatted["prescriptions_per_death"] = table["prescriptions_per_death"].map(_fmt_float(1))
    formatted["mean_simd_rank"] = table["mean_simd_rank"].map(_fmt_float(4))

    formatted = formatted[TABLE_COLUMNS]
    if headers:
        formatted = formatted.rename(columns=TABLE_HEADERS)
    return formatted


def render_summary_table(df: pd.DataFrame) -> str:
    return format_summary_table(df).to_string(index=False)
