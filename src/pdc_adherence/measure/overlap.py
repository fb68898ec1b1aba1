import logging
import numpy as np
import pandas as pd
from .constants import INTERVAL_COLS

logger = logging.getLogger(__name__)


def fold_supply(service_days, supplies, end_day):
  """Left fold over one patient/drug group, already sorted by fill date.

  ``service_days`` are fill dates as integer day numbers, ``supplies`` the
  days supply of each fill and ``end_day`` the last day of the window on the
  same scale. Carries three pieces of state across rows: the running total of
  supply, that total as of the previous row, and the largest gap seen so far
  between the running supply running out and a fill arriving.

  Returns a dict of equal-length int64 arrays.
  """
  service_days = np.asarray(service_days, dtype=np.int64)
  supplies = np.asarray(supplies, dtype=np.int64)
  n = service_days.size
  out = {k: np.zeros(n, dtype=np.int64) for k in (
    "days_supply_ytd", "days_supply_ytd_prior", "days_supply_remaining",
    "days_supply_carried", "effective_start", "effective_end", "adjusted_supply",
  )}
  if n == 0:
    return out

  first_day = service_days.min()
  cumulative, carried = 0, 0
  for i in range(n):
    prior = cumulative
    cumulative += supplies[i]
    # days the fill arrived after the supply so far had run out
    remaining = max(0, service_days[i] - (first_day + prior))
    carried = max(carried, remaining)

    start = first_day + prior + carried
    nominal_end = start + supplies[i] - 1
    if nominal_end > end_day:
      end, adjusted = end_day, end_day - start + 1
    else:
      end, adjusted = nominal_end, supplies[i]

    out["days_supply_ytd"][i] = cumulative
    out["days_supply_ytd_prior"][i] = prior
    out["days_supply_remaining"][i] = remaining
    out["days_supply_carried"][i] = carried
    out["effective_start"][i] = start
    out["effective_end"][i] = end
    out["adjusted_supply"][i] = adjusted
  return out


def adjust_overlap(enriched: pd.DataFrame, measure) -> pd.DataFrame:
  """Same-drug fills are deferred until the earlier supply is used up; different drugs never interact."""
  if enriched.empty:
    return pd.DataFrame(columns=INTERVAL_COLS)

  origin = measure.start_date
  end_day = (measure.end_date - origin).days

  df = (enriched
    .sort_values(["patient_id", "drug", "date_of_service", "fill_seq"], kind="mergesort")
    .reset_index(drop=True)
  )
  df["service_day"] = (df["date_of_service"] - origin).dt.days.astype("int64")

  folded = []
  for _, grp in df.groupby(["patient_id", "drug"], sort=False, observed=True):
    res = fold_supply(grp["service_day"].to_numpy(), grp["days_supply"].to_numpy(), end_day)
    folded.append(pd.DataFrame(res, index=grp.index))
  folded = pd.concat(folded)

  df = df.join(folded)
  df["first_date"] = df.groupby(["patient_id", "drug"], sort=False, observed=True)["date_of_service"].transform("min")
  df["effective_start"] = origin + pd.to_timedelta(df["effective_start"], unit="D")
  df["effective_end"] = origin + pd.to_timedelta(df["effective_end"], unit="D")

  empty = df["adjusted_supply"] <= 0
  if empty.any():
    logger.debug("%s fills deferred past %s carry no supply", int(empty.sum()), measure.end_date.date())
    df = df.loc[~empty]

  return df[INTERVAL_COLS].reset_index(drop=True)
