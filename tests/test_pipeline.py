import pandas as pd
import pytest

from pdc_adherence.claims.samples import sample_tables, write_sample_tables
from pdc_adherence.claims.tables import configure_tables, load_raw_tables, validate_fills
from pdc_adherence.measure.build import build_pdc_tables, write_pdc_outputs
from pdc_adherence.run import main
from conftest import make_fills

# patient -> (ipsd, days_in_period, days_covered, pdc_rounded, is_adherent)
EXPECTED = {
    "SAMEDRUG": ("2022-01-01", 365, 360, 0.9863, True),
    "DIFFDRUG": ("2022-01-01", 365, 353, 0.9671, True),
    "NONADH":   ("2022-01-01", 365, 270, 0.7397, False),
    "COMBPROD": ("2022-01-01", 365, 360, 0.9863, True),
    "CONCUSE":  ("2022-01-01", 365, 360, 0.9863, True),
    "IPSD":     ("2022-03-25", 282, 270, 0.9574, True),
    "MEASYR":   ("2022-01-01", 365, 348, 0.9534, True),
}


@pytest.fixture
def results(sample_claims, measure):
    fills, drug_ref = sample_claims
    return build_pdc_tables(fills, drug_ref, measure)


class TestReferenceScenarios:

    @pytest.mark.parametrize("patient_id", sorted(EXPECTED))
    def test_scenario(self, results, patient_id):
        pdc = results[0].set_index("patient_id")
        ipsd, days_in_period, days_covered, pdc_rounded, is_adherent = EXPECTED[patient_id]
        row = pdc.loc[patient_id]
        assert row["ipsd"] == pd.Timestamp(ipsd)
        assert row["days_in_period"] == days_in_period
        assert row["days_covered"] == days_covered
        assert row["pdc_rounded"] == pytest.approx(pdc_rounded)
        assert bool(row["is_adherent"]) is is_adherent

    def test_one_row_per_patient(self, results):
        assert sorted(results[0]["patient_id"]) == sorted(EXPECTED)

    def test_measyr_last_fill_is_truncated(self, results):
        intervals = results[2]
        last = intervals.loc[intervals["patient_id"] == "MEASYR"].iloc[-1]
        assert last["date_of_service"] == pd.Timestamp("2022-10-15")
        assert last["effective_end"] == pd.Timestamp("2022-12-31")
        assert last["adjusted_supply"] == 78

    def test_samedrug_refills_are_deferred(self, results):
        intervals = results[2]
        samedrug = intervals.loc[intervals["patient_id"] == "SAMEDRUG"]
        assert samedrug["effective_start"].dt.strftime("%m-%d").tolist() == ["01-01", "04-01", "07-05", "10-03"]

    def test_concurrent_use_days(self, results):
        cov = results[1]
        concuse = cov.loc[cov["patient_id"] == "CONCUSE"]
        assert (concuse["drugs_covered"] == 2).sum() == 90

    def test_no_coverage_past_window(self, results, measure):
        assert (results[1]["date"] <= measure.end_date).all()

    def test_bounds(self, results):
        pdc = results[0]
        assert (pdc["days_covered"] <= pdc["days_in_period"]).all()
        assert pdc["pdc"].between(0, 1).all()

    def test_idempotent(self, sample_claims, measure, results):
        fills, drug_ref = sample_claims
        again = build_pdc_tables(fills, drug_ref, measure)
        for first, second in zip(results, again):
            pd.testing.assert_frame_equal(first, second)

    def test_input_order_does_not_change_result(self, sample_claims, measure, results):
        fills, drug_ref = sample_claims
        shuffled = fills.sample(frac=1.0, random_state=7).reset_index(drop=True)
        pdc, _, _ = build_pdc_tables(shuffled, drug_ref, measure)
        pd.testing.assert_frame_equal(pdc, results[0])


class TestExclusions:

    def test_half_pdc_rounds_up(self, drug_ref, measure):
        pdc, _, _ = build_pdc_tables(make_fills([("P1", "2022-11-30", "A1", 25)]), drug_ref, measure)
        assert pdc.loc[0, "days_in_period"] == 32
        assert pdc.loc[0, "days_covered"] == 25
        assert pdc.loc[0, "pdc_rounded"] == pytest.approx(0.7813)

    def test_unmatched_and_empty_fills_are_dropped(self, drug_ref, measure):
        fills = make_fills([
            ("P1", "2022-01-01", "A1", 30),
            ("P1", "2022-02-01", "UNKNOWN", 30),
            ("P2", "2022-01-01", "UNKNOWN", 30),
            ("P3", "2022-01-01", "A1", 0),
            ("P4", "2023-01-02", "A1", 30),
        ])
        pdc, _, _ = build_pdc_tables(fills, drug_ref, measure)
        assert pdc["patient_id"].tolist() == ["P1"]
        assert pdc.loc[0, "days_covered"] == 30

    def test_no_fills_no_results(self, drug_ref, measure):
        pdc, cov, intervals = build_pdc_tables(make_fills([]), drug_ref, measure)
        assert pdc.empty and cov.empty and intervals.empty


class TestValidation:

    def test_negative_days_supply(self, drug_ref, measure):
        fills = make_fills([("P1", "2022-01-01", "A1", 30), ("P1", "2022-02-01", "A1", -5)])
        with pytest.raises(ValueError, match="days_supply"):
            build_pdc_tables(fills, drug_ref, measure)

    def test_fractional_days_supply(self):
        with pytest.raises(ValueError, match="days_supply"):
            validate_fills(make_fills([("P1", "2022-01-01", "A1", 7.5)]))

    def test_malformed_date(self, drug_ref, measure):
        fills = make_fills([("P1", "2022-13-45", "A1", 30)])
        with pytest.raises(ValueError, match="date_of_service"):
            build_pdc_tables(fills, drug_ref, measure)

    def test_mixed_date_formats(self, drug_ref, measure):
        fills = make_fills([("P1", "2022-01-01", "A1", 30), ("P1", "02/15/2022", "A1", 30)])
        assert validate_fills(fills)["date_of_service"].tolist() == [pd.Timestamp("2022-01-01"), pd.Timestamp("2022-02-15")]
        pdc, _, _ = build_pdc_tables(fills, drug_ref, measure)
        assert pdc.loc[0, "days_covered"] == 60

    def test_missing_column(self):
        with pytest.raises(ValueError, match="missing columns"):
            validate_fills(make_fills([("P1", "2022-01-01", "A1", 30)]).drop(columns=["ndc"]))

    def test_raw_ndc_codes_keep_leading_zeros(self, tmp_path):
        write_sample_tables(tmp_path)
        raw = load_raw_tables(tmp_path)
        fills, drug_ref = configure_tables(raw["rx_claims"], raw["ndc_list"])
        assert set(fills["ndc"]) == set(drug_ref["ndc"]) == {"00172375980", "43063048290", "00006095231"}

    def test_missing_raw_table(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_raw_tables(tmp_path)


def test_write_outputs(tmp_path, results):
    paths = write_pdc_outputs(tmp_path, *results)
    assert [p.name for p in paths] == ["pdc.csv.gz", "coverage.csv.gz", "intervals.csv.gz"]
    pdc = pd.read_csv(tmp_path / "pdc.csv.gz")
    assert pdc.loc[pdc["patient_id"] == "SAMEDRUG", "pdc_pct"].item() == "98.63%"


def test_cli_end_to_end(tmp_path, capsys):
    cfg = tmp_path / "pdc.yaml"
    cfg.write_text(
        f"paths:\n  raw_dir: {tmp_path / 'raw'}\n  processed_dir: {tmp_path / 'out'}\n"
        "measure:\n  start_date: 2022-01-01\n  end_date: 2022-12-31\n"
    )
    main(["-c", str(cfg), "write-sample"])
    main(["-c", str(cfg), "compute-pdc"])

    out = capsys.readouterr().out
    assert "Adherent: 6/7 patients" in out

    pdc = pd.read_csv(tmp_path / "out" / "pdc.csv.gz", parse_dates=["ipsd"])
    assert len(pdc) == len(EXPECTED)
    assert pdc.set_index("patient_id").loc["IPSD", "days_in_period"] == 282
