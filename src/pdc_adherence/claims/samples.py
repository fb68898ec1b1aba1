from pathlib import Path
import pandas as pd

LISINOPRIL_10MG = "00172375980"
LISINOPRIL_HCTZ = "43063048290"
LOSARTAN_50MG = "00006095231"

SAMPLE_NDC_LIST = [
  ("LISINOPRIL", LISINOPRIL_10MG, "Lisinopril Tab 10 MG"),
  ("LISINOPRIL", LISINOPRIL_HCTZ, "Lisinopril & Hydrochlorothiazide Tab 10-12.5 MG"),
  ("LOSARTAN", LOSARTAN_50MG, "Losartan Potassium Tab 50 MG"),
]

# one patient per scenario, measurement year 2022
SAMPLE_RX_CLAIMS = [
  # overlapping fills, same drug
  ("SAMEDRUG", "2022-01-01", LISINOPRIL_10MG, 90),
  ("SAMEDRUG", "2022-03-25", LISINOPRIL_10MG, 90),
  ("SAMEDRUG", "2022-07-05", LISINOPRIL_10MG, 90),
  ("SAMEDRUG", "2022-09-25", LISINOPRIL_10MG, 90),
  # overlapping fills, different drugs
  ("DIFFDRUG", "2022-01-01", LISINOPRIL_10MG, 90),
  ("DIFFDRUG", "2022-03-25", LOSARTAN_50MG, 90),
  ("DIFFDRUG", "2022-07-05", LOSARTAN_50MG, 90),
  ("DIFFDRUG", "2022-09-25", LOSARTAN_50MG, 90),
  # PDC below 80%
  ("NONADH", "2022-01-01", LISINOPRIL_10MG, 90),
  ("NONADH", "2022-03-25", LISINOPRIL_10MG, 90),
  ("NONADH", "2022-09-25", LISINOPRIL_10MG, 90),
  # single ingredient and combination product sharing a target drug
  ("COMBPROD", "2022-01-01", LISINOPRIL_10MG, 90),
  ("COMBPROD", "2022-03-25", LISINOPRIL_HCTZ, 90),
  ("COMBPROD", "2022-07-05", LISINOPRIL_HCTZ, 90),
  ("COMBPROD", "2022-09-25", LISINOPRIL_HCTZ, 90),
  # concurrent use of two drugs
  ("CONCUSE", "2022-01-01", LISINOPRIL_10MG, 90),
  ("CONCUSE", "2022-03-25", LISINOPRIL_10MG, 90),
  ("CONCUSE", "2022-03-25", LOSARTAN_50MG, 90),
  ("CONCUSE", "2022-07-05", LOSARTAN_50MG, 90),
  ("CONCUSE", "2022-09-25", LOSARTAN_50MG, 90),
  # first fill after 1/1, treatment period shorter than the year
  ("IPSD", "2022-03-25", LISINOPRIL_10MG, 90),
  ("IPSD", "2022-07-05", LISINOPRIL_10MG, 90),
  ("IPSD", "2022-09-25", LISINOPRIL_10MG, 90),
  # supply runs past the end of the measurement year
  ("MEASYR", "2022-01-01", LISINOPRIL_10MG, 90),
  ("MEASYR", "2022-03-25", LISINOPRIL_10MG, 90),
  ("MEASYR", "2022-07-05", LISINOPRIL_10MG, 90),
  ("MEASYR", "2022-10-15", LISINOPRIL_10MG, 90),
]


def sample_tables():
  """Raw-format claims and NDC list covering the reference scenarios."""
  rx_claims = pd.DataFrame(SAMPLE_RX_CLAIMS, columns=["pt_id", "date_of_service", "ndc", "days_supply"])
  ndc_list = pd.DataFrame(SAMPLE_NDC_LIST, columns=["drug", "code", "description"])
  return rx_claims, ndc_list


def write_sample_tables(raw_dir: Path):
  raw_dir = Path(raw_dir)
  raw_dir.mkdir(parents=True, exist_ok=True)
  rx_claims, ndc_list = sample_tables()
  rx_claims.to_csv(raw_dir / "rx_claims.csv", index=False)
  ndc_list.to_csv(raw_dir / "ndc_list.csv", index=False)
  return raw_dir / "rx_claims.csv", raw_dir / "ndc_list.csv"
