from pathlib import Path
import logging
import pandas as pd
from ..measure.constants import RAW_CLAIM_COLUMNS, RAW_NDC_COLUMNS, FILL_COLS, DRUG_REF_COLS, NDC_WIDTH

logger = logging.getLogger(__name__)

RAW_TABLES = {
    "rx_claims": RAW_CLAIM_COLUMNS,
    "ndc_list": RAW_NDC_COLUMNS,
}


def load_raw_tables(base_dir: Path):
    """
    Load raw pharmacy claims and the NDC reference list.
    - everything is read as text; typing happens in configure_tables
    """

    def _find_table(name: str):
        base = Path(base_dir)
        for ext in (".csv.gz", ".csv"):
            path = base / f"{name}{ext}"
            if path.exists():
                return path
        return None

    raw = {}
    for name in RAW_TABLES:
        path = _find_table(name)
        if not path:
            raise FileNotFoundError(f"Missing {name} under {base_dir}")
        raw[name] = pd.read_csv(path, compression="infer", dtype=str, keep_default_na=False, na_values=[""])
        logger.info("Loaded %s rows from %s", len(raw[name]), path)

    return raw


def require_cols(df: pd.DataFrame, name: str, cols):
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"{name} missing columns: {missing}")


def _bad_rows(df: pd.DataFrame, mask: pd.Series, n: int = 5) -> str:
    return repr(df.loc[mask].head(n).to_dict(orient="records"))


def normalize_ndc(codes: pd.Series) -> pd.Series:
    return codes.astype("string").str.strip().str.zfill(NDC_WIDTH)


def validate_fills(fills: pd.DataFrame) -> pd.DataFrame:
    """Type and check fill records, raising before any processing starts.

    Dates must parse, ``days_supply`` must be a non-negative whole number and
    patient / drug codes must be present. Returns a typed copy.
    """
    require_cols(fills, "fills", FILL_COLS)
    out = fills.loc[:, FILL_COLS].copy()

    missing_ids = out["patient_id"].isna() | out["ndc"].isna()
    if missing_ids.any():
        raise ValueError(f"fills with missing patient_id or ndc: {_bad_rows(fills, missing_ids)}")

    dos = pd.to_datetime(out["date_of_service"], errors="coerce", format="mixed")
    bad_dates = dos.isna()
    if bad_dates.any():
        raise ValueError(f"fills with malformed date_of_service: {_bad_rows(fills, bad_dates)}")
    if getattr(dos.dt, "tz", None) is not None:
        dos = dos.dt.tz_localize(None)

    supply = pd.to_numeric(out["days_supply"], errors="coerce")
    bad_supply = supply.isna() | (supply < 0) | (supply % 1 != 0)
    if bad_supply.any():
        raise ValueError(f"fills with invalid days_supply: {_bad_rows(fills, bad_supply)}")

    out["patient_id"] = out["patient_id"].astype("string")
    out["ndc"] = normalize_ndc(out["ndc"])
    out["date_of_service"] = dos.dt.floor("D").astype("datetime64[ns]")
    out["days_supply"] = supply.astype("int64")
    return out.reset_index(drop=True)


def validate_drug_reference(drug_ref: pd.DataFrame) -> pd.DataFrame:
    require_cols(drug_ref, "drug reference", ["ndc", "drug"])
    out = drug_ref.copy()
    if "description" not in out.columns:
        out["description"] = pd.NA
    out = out.loc[:, DRUG_REF_COLS]

    missing = out["ndc"].isna() | out["drug"].isna()
    if missing.any():
        raise ValueError(f"drug reference rows with missing ndc or drug: {_bad_rows(drug_ref, missing)}")

    out["ndc"] = normalize_ndc(out["ndc"])
    out["drug"] = out["drug"].astype("string").str.strip().str.upper()
    out["description"] = out["description"].astype("string")
    return out.drop_duplicates(subset=["ndc", "drug"]).reset_index(drop=True)


def configure_tables(rx_claims: pd.DataFrame, ndc_list: pd.DataFrame):
    """ Rename raw columns to the names the pipeline uses and cast types.
        - rx_claims: pt_id, date_of_service, ndc, days_supply
        - ndc_list: drug, code, description
    """
    # -------------------------
    # Claims
    # -------------------------
    require_cols(rx_claims, "rx_claims", list(RAW_CLAIM_COLUMNS))
    fills = rx_claims.loc[:, list(RAW_CLAIM_COLUMNS)].rename(columns=RAW_CLAIM_COLUMNS)
    fills["patient_id"] = fills["patient_id"].astype("string").str.strip()
    fills = validate_fills(fills)

    # -------------------------
    # NDC reference
    # -------------------------
    require_cols(ndc_list, "ndc_list", list(RAW_NDC_COLUMNS))
    drug_ref = ndc_list.loc[:, list(RAW_NDC_COLUMNS)].rename(columns=RAW_NDC_COLUMNS)
    drug_ref = validate_drug_reference(drug_ref)

    return fills, drug_ref
