import pandas as pd

DEFAULT_START_DATE = pd.Timestamp("2022-01-01")
DEFAULT_END_DATE = pd.Timestamp("2022-12-31")
DEFAULT_ADHERENCE_THRESHOLD = 0.8
DEFAULT_ROUNDING_DIGITS = 4
DEFAULT_COVERAGE_THRESHOLD = 1

FILL_COLS = ["patient_id", "date_of_service", "ndc", "days_supply"]
DRUG_REF_COLS = ["ndc", "drug", "description"]
ENRICHED_COLS = FILL_COLS + ["drug", "description", "fill_seq"]
INTERVAL_COLS = [
  "patient_id", "drug", "ndc", "date_of_service", "days_supply",
  "first_date", "days_supply_ytd", "days_supply_ytd_prior",
  "days_supply_remaining", "days_supply_carried",
  "effective_start", "effective_end", "adjusted_supply",
]
COVERAGE_COLS = ["patient_id", "date", "drugs_covered"]
PERIOD_COLS = ["patient_id", "ipsd", "days_in_period"]
PDC_COLS = ["patient_id", "ipsd", "days_in_period", "days_covered", "pdc", "pdc_rounded", "is_adherent"]

# raw column name -> canonical column name
RAW_CLAIM_COLUMNS = {
  "pt_id": "patient_id",
  "date_of_service": "date_of_service",
  "ndc": "ndc",
  "days_supply": "days_supply",
}
RAW_NDC_COLUMNS = {
  "code": "ndc",
  "drug": "drug",
  "description": "description",
}
NDC_WIDTH = 11
