import logging
import pandas as pd
from .constants import PDC_COLS
from .coverage import flag_covered_days, measurement_dates

logger = logging.getLogger(__name__)


def round_half_up(numer: pd.Series, denom: pd.Series, digits: int) -> pd.Series:
  # exact on the integer ratio; halves round away from zero
  scale = 10 ** digits
  return ((numer * scale * 2 + denom) // (2 * denom)) / scale


def aggregate_pdc(cov: pd.DataFrame, periods: pd.DataFrame, measure) -> pd.DataFrame:
  """PDC and the adherence flag per patient; covered means >= measure.coverage_threshold drugs."""
  if periods.empty:
    return pd.DataFrame(columns=PDC_COLS)

  days = cov.merge(periods[["patient_id", "ipsd"]], on="patient_id", how="inner")
  in_period = days["date"].isin(measurement_dates(measure)) & (days["date"] >= days["ipsd"])
  days = days.loc[in_period].assign(day_covered=lambda d: flag_covered_days(d, measure.coverage_threshold))

  covered = (days
    .groupby("patient_id", observed=True)["day_covered"]
    .sum()
    .rename("days_covered")
    .reset_index()
  )

  out = periods.merge(covered, on="patient_id", how="left")
  out["days_covered"] = out["days_covered"].fillna(0).astype("int64")
  out["pdc"] = (out["days_covered"] / out["days_in_period"]).astype("float64")
  out["pdc_rounded"] = round_half_up(out["days_covered"], out["days_in_period"].astype("int64"), measure.rounding_digits)
  out["is_adherent"] = out["pdc_rounded"] >= measure.adherence_threshold

  logger.info(
    "%s of %s patients adherent at PDC >= %s",
    int(out["is_adherent"].sum()), len(out), measure.adherence_threshold,
  )
  return out[PDC_COLS].sort_values("patient_id").reset_index(drop=True)


def format_pdc_pct(pdc: pd.Series, digits: int = 2) -> pd.Series:
  return (pdc * 100).map(lambda v: f"{v:.{digits}f}%")
