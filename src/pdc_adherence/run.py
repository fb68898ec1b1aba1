import argparse
import logging

from .config import load_config
from .claims.samples import write_sample_tables
from .measure.build import build_pdc


def run_compute_pdc(cfg):
    pdc, cov, intervals = build_pdc(
        raw_dir=cfg.paths.raw_dir,
        out_dir=cfg.paths.processed_dir,
        measure=cfg.measure,
    )
    print(f"Wrote PDC tables to {cfg.paths.processed_dir}")
    print(f"Rows: pdc={len(pdc)}, coverage={len(cov)}, intervals={len(intervals)}")
    if len(pdc):
        print(f"Adherent: {int(pdc['is_adherent'].sum())}/{len(pdc)} patients "
              f"(PDC >= {cfg.measure.adherence_threshold:.0%}, "
              f"{cfg.measure.start_date.date()}..{cfg.measure.end_date.date()})")


def run_write_sample(cfg):
    claims_fp, ndc_fp = write_sample_tables(cfg.paths.raw_dir)
    print(f"Wrote sample claims to {claims_fp} and {ndc_fp}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Proportion of days covered (PDC) adherence pipeline")
    parser.add_argument("--config", "-c", type=str, default="config/default.yaml", help="YAML config file.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log each pipeline stage.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compute = subparsers.add_parser("compute-pdc", help="Compute PDC and adherence from raw claims.")
    compute.set_defaults(func=run_compute_pdc)

    sample = subparsers.add_parser("write-sample", help="Write the reference scenario claims to raw_dir.")
    sample.set_defaults(func=run_write_sample)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    cfg = load_config(args.config)
    args.func(cfg)


if __name__ == "__main__":
    main()
