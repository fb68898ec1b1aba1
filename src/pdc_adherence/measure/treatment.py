import pandas as pd
from .constants import PERIOD_COLS


def resolve_treatment_periods(intervals: pd.DataFrame, measure) -> pd.DataFrame:
  """IPSD across all of a patient's drugs; enrollment assumed through the window end."""
  retained = intervals.loc[intervals["adjusted_supply"] > 0]
  if retained.empty:
    return pd.DataFrame(columns=PERIOD_COLS)

  periods = (retained
    .groupby("patient_id", as_index=False, observed=True)["date_of_service"]
    .min()
    .rename(columns={"date_of_service": "ipsd"})
  )
  days_before_ipsd = (periods["ipsd"] - measure.start_date).dt.days
  periods["days_in_period"] = (measure.days_in_window - days_before_ipsd).astype("int64")
  return periods[PERIOD_COLS].sort_values("patient_id").reset_index(drop=True)
