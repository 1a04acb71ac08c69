import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from dispatch_planner.allocator.dispatch_allocator import DispatchAllocator
from dispatch_planner.configs.config import AppConfig
from dispatch_planner.data_source.sheet_loader import DataSourceError, SheetLoader
from dispatch_planner.inventory import demand_coverage, summarize_inventory
from dispatch_planner.records import ValidationError
from dispatch_planner.reporting.recommendations import (
    format_recommendations,
    recommend_actions,
)
from dispatch_planner.reporting.report_frames import save_report, status_counts
from dispatch_planner.utils.logging import configure_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Dispatch plan generator")

    p.add_argument(
        "--config",
        default="config/app.yml",
        help="Path to application config YAML file",
    )
    p.add_argument("--stock", default=None, help="Stock sheet (CSV/XLSX); overrides config")
    p.add_argument("--orders", default=None, help="Orders sheet (CSV/XLSX); overrides config")
    p.add_argument("--output-root", default=None, help="Report output directory; overrides config")
    p.add_argument("--no-save", action="store_true", help="Do not write report files")

    return p.parse_args(argv)


def setup_logger(app_cfg: AppConfig) -> logging.Logger:
    configure_logging(
        log_root=app_cfg.log_root_path,
        level=app_cfg.runtime.log_level,
        log_to_file=app_cfg.runtime.log_to_file,
        filename=app_cfg.runtime.log_file,
        max_bytes=app_cfg.runtime.log_max_bytes,
        backup_count=app_cfg.runtime.log_backup_count,
        logger_levels=app_cfg.runtime.logger_levels,
    )
    return logging.getLogger("dispatch_runner")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Load app config
    try:
        app_cfg = AppConfig.load_from_yaml(Path(args.config))
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading app config from {args.config}: {e}", file=sys.stderr)
        return 1

    # CLI overrides (relative to the working directory, not the config file)
    if args.stock:
        app_cfg.data_source.stock_path = str(Path(args.stock).resolve())
    if args.orders:
        app_cfg.data_source.orders_path = str(Path(args.orders).resolve())
    if args.output_root:
        app_cfg.report.output_root = str(Path(args.output_root).resolve())
    if args.no_save:
        app_cfg.report.save = False

    log = setup_logger(app_cfg)
    log.info("Starting dispatch planner")

    if app_cfg.stock_path is None or app_cfg.orders_path is None:
        log.error("Both stock and orders sheets are required (config data_source or --stock/--orders)")
        return 1

    loader = SheetLoader(
        columns=app_cfg.data_source.columns,
        strict=app_cfg.data_source.strict,
    )
    try:
        stock = loader.load_stock(app_cfg.stock_path)
        orders = loader.load_orders(app_cfg.orders_path)
        inventory = summarize_inventory(stock)
        result = DispatchAllocator(app_cfg.allocator).allocate(stock, orders)
        coverage = demand_coverage(stock, orders)
    except (DataSourceError, ValidationError) as e:
        log.error("Cannot build dispatch plan: %s", e)
        return 1

    log.info(
        "Stock: %d sizes, %d units, %.3f CBM total, %d size(s) at zero before dispatch",
        inventory.size_count,
        inventory.total_quantity,
        inventory.total_cbm,
        len(inventory.zero_stock_sizes),
    )
    for status, n in status_counts(result).items():
        log.info("%s: %d line(s)", status, n)
    if result.zero_stock_sizes:
        log.info("Sizes with 0 stock after dispatch: %s", ", ".join(result.zero_stock_sizes))

    print("Total current stock CBM: {:.3f}".format(result.total_stock_cbm))
    print("Recommended actions:")
    print(format_recommendations(recommend_actions(result, coverage)))

    if app_cfg.report.save:
        written = save_report(result, app_cfg.output_root_path, app_cfg.report.formats)
        log.info("Report written: %s", ", ".join(sorted(written)))

    log.info("Dispatch planner finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
