import argparse
import datetime as dt
import importlib
import logging
from pathlib import Path
from typing import List, Optional

import colorlog
import pandas as pd

from ucoa_compliance import __version__ as _PACKAGE_VERSION

DEFAULT_OVERRIDES = Path("config/codeset_overrides.yaml")


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _load_codeset(args: argparse.Namespace):
    """Load the reference codeset with optional overrides.

    Overrides default to config/codeset_overrides.yaml when it exists;
    ``--no-overrides`` disables them.
    """
    codeset_mod = importlib.import_module("ucoa_compliance.codeset")

    overrides = None
    if not getattr(args, "no_overrides", False):
        overrides_arg = getattr(args, "overrides", None)
        overrides_path = Path(overrides_arg) if overrides_arg else DEFAULT_OVERRIDES.resolve()
        if overrides_arg or overrides_path.exists():
            overrides = codeset_mod.load_overrides(overrides_path)
            logging.info("Applying codeset overrides from %s", overrides_path)
    return codeset_mod.load_codeset(Path(args.codeset), overrides)


def _write_report_file(content: str, target, default_dir: Path, filename: str) -> Path:
    report_dir = default_dir if target is True else Path(target)
    report_dir.mkdir(parents=True, exist_ok=True)
    report_path = report_dir / filename
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(content)
    return report_path


def write_tables(report, output_root: Path, run_date: dt.date) -> List[Path]:
    """Write the report tables and per-category listings as CSV."""
    from ucoa_compliance.core.utils import get_listing_path, get_report_paths

    paths = get_report_paths(run_date, output_root)
    tables = {
        "detail": report.detail_table,
        "summary": report.summary_table,
        "all_entities": report.all_entities_table,
    }
    written: List[Path] = []
    for name, table in tables.items():
        path = paths[name]
        path.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(path, index=False)
        written.append(path)

    for category, entries in report.listings.items():
        rows = [
            {"entity_name": entity, "value": value}
            for entity, values in entries.items()
            for value in values
        ]
        path = get_listing_path(run_date, output_root, category)
        pd.DataFrame(rows, columns=["entity_name", "value"]).to_csv(path, index=False)
        written.append(path)
    return written


def cmd_audit(args: argparse.Namespace) -> int:
    """Run the compliance audit over CSV extracts.

    Returns:
        0 if no violations were found
        1 if no entities were audited
        2 if inputs are missing or invalid, or any violations were found
    """
    loader = importlib.import_module("ucoa_compliance.ingestion.loader")
    registry = importlib.import_module("ucoa_compliance.validation.registry")
    codeset_mod = importlib.import_module("ucoa_compliance.codeset")

    # Reference data first: without it nothing may be evaluated
    try:
        codeset = _load_codeset(args)
    except (codeset_mod.CodesetError, FileNotFoundError, ValueError) as e:
        logging.error("Failed to load reference codeset: %s", e)
        return 2

    try:
        entities = loader.load_entities(Path(args.entities))
        batches = loader.load_batches(Path(args.batches))
        transactions = loader.load_transactions(Path(args.transactions))
    except (FileNotFoundError, ValueError) as e:
        logging.error("Failed to load inputs: %s", e)
        return 2

    if getattr(args, "fiscal_years", None):
        try:
            years = _parse_years_arg(args.fiscal_years) or []
        except ValueError:
            logging.error("Invalid --fiscal-years: %s", args.fiscal_years)
            return 2
        fiscal_year = pd.to_numeric(transactions["fiscal_year"], errors="coerce")
        transactions = transactions[fiscal_year.isin(years)]
        logging.info("Restricted to fiscal years %s: %d transactions", years, len(transactions))
        # Only batches that still hold transactions in those years are audited
        batches = batches[batches["batch_id"].isin(transactions["batch_id"])]
        logging.info("Kept %d batches with transactions in those years", len(batches))

    if entities.empty:
        logging.error("No entities to audit.")
        return 1

    try:
        report = registry.run_audit(
            entities,
            batches,
            transactions,
            codeset,
            show_progress=bool(getattr(args, "progress", False)),
        )
    except ValueError as e:
        logging.error("Audit failed: %s", e)
        return 2

    registry.print_report(report)

    run_date = dt.date.today()
    output_root = Path(args.output_root or Path("data/reports")).resolve()
    try:
        for path in write_tables(report, output_root, run_date):
            logging.info("Saved: %s", path)

        default_dir = output_root / run_date.isoformat()
        if getattr(args, "report", False):
            path = _write_report_file(
                report.to_markdown(), args.report, default_dir, "ucoa_compliance.md"
            )
            logging.info("Markdown report saved: %s", path)
        if getattr(args, "report_json", False):
            path = _write_report_file(
                report.to_json(), args.report_json, default_dir, "ucoa_compliance.json"
            )
            logging.info("JSON report saved: %s", path)
    except OSError as e:
        logging.error("Failed writing outputs under %s: %s", output_root, e)
        return 2

    if report.entity_count == 0:
        logging.error("No entities were audited.")
        return 1

    if report.has_violations():
        logging.warning(
            "Violations found for %d entities in %d batches.",
            len(report.summary_table),
            len(report.detail_table),
        )
        return 2

    return 0


def cmd_codeset(args: argparse.Namespace) -> int:
    """Load the reference codeset and report its size per category."""
    codeset_mod = importlib.import_module("ucoa_compliance.codeset")
    try:
        codeset = _load_codeset(args)
    except (codeset_mod.CodesetError, FileNotFoundError, ValueError) as e:
        logging.error("Failed to load reference codeset: %s", e)
        return 2
    for category, size in codeset.sizes().items():
        logging.info("%s: %d codes", category, size)
    return 0


def _parse_years_arg(years_arg: Optional[str]) -> Optional[List[int]]:
    if not years_arg:
        return None
    years_arg = years_arg.strip()
    if "-" in years_arg and "," not in years_arg:
        start, end = years_arg.split("-", 1)
        return list(range(int(start), int(end) + 1))
    years: List[int] = []
    for part in years_arg.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            s, e = part.split("-", 1)
            years.extend(range(int(s), int(e) + 1))
        else:
            years.append(int(part))
    return sorted(set(years))


def _add_codeset_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--codeset",
        required=True,
        help="Path to the reference codeset CSV (columns: category, code)",
    )
    p.add_argument(
        "--overrides",
        default=None,
        help="Path to codeset overrides YAML (defaults to config/codeset_overrides.yaml if present)",
    )
    p.add_argument(
        "--no-overrides",
        action="store_true",
        help="Use the published codeset without supplemental overrides",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ucoa-compliance",
        description=f"UCoA Compliance Audit (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_audit = sub.add_parser("audit", help="Audit uploaded batches for UCoA and posting date violations")
    p_audit.add_argument("--entities", required=True, help="Path to the entity registry CSV")
    p_audit.add_argument("--batches", required=True, help="Path to the batches CSV")
    p_audit.add_argument("--transactions", required=True, help="Path to the transactions CSV")
    _add_codeset_arguments(p_audit)
    p_audit.add_argument(
        "--fiscal-years",
        default=None,
        help=(
            "Comma-separated fiscal years (e.g. 2019,2020) or range (2019-2024). "
            "Batches without transactions in those years are skipped. Defaults to all."
        ),
    )
    p_audit.add_argument(
        "--output-root",
        default=None,
        help="Report output root (tables written under <output-root>/<date>). Defaults to ./data/reports",
    )
    p_audit.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        help="Generate a Markdown report. Optionally specify custom directory path.",
    )
    p_audit.add_argument(
        "--report-json",
        nargs="?",
        const=True,
        default=False,
        help="Generate a JSON report. Optionally specify custom directory path.",
    )
    p_audit.add_argument("--progress", action="store_true", help="Show a progress bar over entities")
    p_audit.set_defaults(func=cmd_audit)

    p_codeset = sub.add_parser("codeset", help="Load the reference codeset and show its size")
    _add_codeset_arguments(p_codeset)
    p_codeset.set_defaults(func=cmd_codeset)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
