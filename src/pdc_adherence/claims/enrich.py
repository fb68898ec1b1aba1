import logging
import numpy as np
import pandas as pd
from ..measure.constants import ENRICHED_COLS

logger = logging.getLogger(__name__)


def enrich_claims(fills: pd.DataFrame, drug_ref: pd.DataFrame, measure) -> pd.DataFrame:
  """One row per (fill, target drug); fill_seq keeps input order for tie-breaks."""
  fills = fills.assign(fill_seq=np.arange(len(fills), dtype=np.int64))

  in_window = fills["date_of_service"].between(measure.start_date, measure.end_date, inclusive="both")
  has_supply = fills["days_supply"] > 0
  kept = fills.loc[in_window & has_supply]
  logger.debug(
    "Dropped %s fills outside %s..%s and %s fills with zero supply",
    int((~in_window).sum()), measure.start_date.date(), measure.end_date.date(),
    int((in_window & ~has_supply).sum()),
  )

  enriched = kept.merge(drug_ref, on="ndc", how="inner")
  unmatched = ~kept["ndc"].isin(drug_ref["ndc"])
  if unmatched.any():
    logger.debug("Dropped %s fills with no drug reference match", int(unmatched.sum()))

  return (enriched
    .sort_values(["fill_seq", "drug"], kind="mergesort")
    .reset_index(drop=True)
    [ENRICHED_COLS]
  )
