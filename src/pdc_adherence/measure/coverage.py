import numpy as np
import pandas as pd
from .constants import COVERAGE_COLS


def measurement_dates(measure) -> pd.DatetimeIndex:
  return pd.date_range(measure.start_date, measure.end_date, freq="D")


def expand_intervals(intervals: pd.DataFrame) -> pd.DataFrame:
  """One row per (patient_id, drug, date) inside any effective interval."""
  if intervals.empty:
    return pd.DataFrame(columns=["patient_id", "drug", "date"])

  starts = intervals["effective_start"].to_numpy(dtype="datetime64[D]")
  ends = intervals["effective_end"].to_numpy(dtype="datetime64[D]")
  lengths = (ends - starts).astype(np.int64) + 1
  lengths = np.clip(lengths, 0, None)

  row_idx = np.repeat(np.arange(len(intervals)), lengths)
  offsets = np.arange(lengths.sum()) - np.repeat(np.cumsum(lengths) - lengths, lengths)
  days = starts[row_idx] + offsets.astype("timedelta64[D]")

  return (pd.DataFrame({
      "patient_id": intervals["patient_id"].to_numpy()[row_idx],
      "drug": intervals["drug"].to_numpy()[row_idx],
      "date": days.astype("datetime64[ns]"),
    })
    .astype({"patient_id": intervals["patient_id"].dtype, "drug": intervals["drug"].dtype})
    .drop_duplicates()
    .reset_index(drop=True)
  )


def build_coverage_calendar(intervals: pd.DataFrame) -> pd.DataFrame:
  """Count the distinct drugs covering each patient-day.

  Overlapping intervals of the same drug on one date count once.
  """
  days = expand_intervals(intervals)
  if days.empty:
    return pd.DataFrame(columns=COVERAGE_COLS)

  cov = (days
    .groupby(["patient_id", "date"], as_index=False, observed=True)["drug"]
    .nunique()
    .rename(columns={"drug": "drugs_covered"})
    .sort_values(["patient_id", "date"])
    .reset_index(drop=True)
  )
  cov["drugs_covered"] = cov["drugs_covered"].astype("int16")
  return cov[COVERAGE_COLS]


def flag_covered_days(cov: pd.DataFrame, coverage_threshold: int = 1) -> pd.Series:
  return (cov["drugs_covered"] >= coverage_threshold).astype("int8")
