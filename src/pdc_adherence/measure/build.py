from pathlib import Path
from typing import NoReturn, Optional
import logging
import pandas as pd
from tqdm import tqdm
from ..claims.enrich import enrich_claims
from ..claims.tables import configure_tables, load_raw_tables, validate_drug_reference, validate_fills
from .adherence import aggregate_pdc, format_pdc_pct
from .coverage import build_coverage_calendar
from .overlap import adjust_overlap
from .treatment import resolve_treatment_periods

logger = logging.getLogger(__name__)


def build_pdc_tables(
  fills: pd.DataFrame,
  drug_ref: pd.DataFrame,
  measure,
  prog_bar: Optional["tqdm[NoReturn]"] = None,
):
  def step(pct: int, msg: str):
    if prog_bar is not None:
      prog_bar.update(pct); prog_bar.set_description_str(msg)

  # a bad row fails the whole run before any stage
  measure.validate()
  fills = validate_fills(fills)
  drug_ref = validate_drug_reference(drug_ref)

  step(10, "Enriching claims..")
  enriched = enrich_claims(fills, drug_ref, measure)

  step(20, "Adjusting overlapping fills..")
  intervals = adjust_overlap(enriched, measure)

  step(30, "Expanding days covered..")
  cov = build_coverage_calendar(intervals)

  step(10, "Resolving treatment periods..")
  periods = resolve_treatment_periods(intervals, measure)

  step(10, "Aggregating PDC..")
  pdc = aggregate_pdc(cov, periods, measure)

  logger.info(
    "Computed PDC for %s patients from %s fills (%s enriched, %s retained intervals)",
    len(pdc), len(fills), len(enriched), len(intervals),
  )
  return pdc, cov, intervals


def write_pdc_outputs(out_dir: Path, pdc, cov, intervals):
  out_dir = Path(out_dir)
  out_dir.mkdir(parents=True, exist_ok=True)

  def write(df: pd.DataFrame, name: str):
    fp = out_dir / name
    df.to_csv(fp, index=False, compression="gzip", date_format="%Y-%m-%d")
    return fp

  pdc_out = pdc.assign(pdc_pct=format_pdc_pct(pdc["pdc"]) if len(pdc) else pd.Series(dtype="string"))
  return [
    write(pdc_out, "pdc.csv.gz"),
    write(cov, "coverage.csv.gz"),
    write(intervals, "intervals.csv.gz"),
  ]


def build_pdc(raw_dir: Path, out_dir: Path, measure):
  prog_bar = tqdm(total=100)

  prog_bar.set_description_str("Loading tables")
  raw = load_raw_tables(raw_dir)

  prog_bar.set_description_str("Configuring tables")
  fills, drug_ref = configure_tables(raw["rx_claims"], raw["ndc_list"])

  pdc, cov, intervals = build_pdc_tables(fills, drug_ref, measure, prog_bar=prog_bar)

  prog_bar.set_description_str("Writing outputs")
  write_pdc_outputs(out_dir, pdc, cov, intervals)
  prog_bar.update(prog_bar.total - prog_bar.n)
  prog_bar.close()
  return pdc, cov, intervals
