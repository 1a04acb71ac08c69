from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml

from dispatch_planner.allocator.allocator_config import AllocatorConfig
from dispatch_planner.data_source.sheet_loader import SheetColumns


@dataclass
class RuntimeConfig:
    log_level: str = "INFO"
    log_to_file: bool = False
    log_root: Optional[str] = "logs"
    log_file: str = "dispatch.log"
    log_max_bytes: int = 5_000_000
    log_backup_count: int = 3
    # Per-logger level overrides, e.g. {"DispatchAllocator": "DEBUG"}
    logger_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class DataSourceConfig:
    stock_path: Optional[str] = None
    orders_path: Optional[str] = None
    # When True, unparseable rows abort the load instead of being skipped
    strict: bool = False
    columns: SheetColumns = field(default_factory=SheetColumns)


@dataclass
class ReportConfig:
    output_root: str = "output"
    save: bool = True
    formats: Tuple[str, ...] = ("csv",)


@dataclass
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    allocator: AllocatorConfig = field(default_factory=AllocatorConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    # Relative paths in the config resolve against this directory
    base_dir: Path = field(default_factory=Path.cwd)

    def resolve(self, p: Optional[str]) -> Optional[Path]:
        if p is None:
            return None
        path = Path(p)
        if not path.is_absolute():
            path = self.base_dir / path
        return path.resolve()

    @property
    def stock_path(self) -> Optional[Path]:
        return self.resolve(self.data_source.stock_path)

    @property
    def orders_path(self) -> Optional[Path]:
        return self.resolve(self.data_source.orders_path)

    @property
    def output_root_path(self) -> Path:
        return self.resolve(self.report.output_root)

    @property
    def log_root_path(self) -> Path:
        return self.resolve(self.runtime.log_root or "logs")

    @staticmethod
    def load_from_yaml(path: Path) -> AppConfig:
        path = Path(path)
        raw = _load_yaml(path)

        data_raw = dict(raw.get("data_source", {}) or {})
        columns_raw = data_raw.get("columns")
        if isinstance(columns_raw, dict):
            data_raw["columns"] = SheetColumns(**columns_raw)
        elif columns_raw is None:
            data_raw.pop("columns", None)
        else:
            raise TypeError("data_source.columns must be a mapping (dict)")

        report_raw = dict(raw.get("report", {}) or {})
        if "formats" in report_raw:
            formats = report_raw["formats"]
            if isinstance(formats, str):
                formats = [formats]
            report_raw["formats"] = tuple(formats)

        runtime_raw = dict(raw.get("runtime", {}) or {})
        levels_raw = runtime_raw.get("logger_levels")
        if levels_raw is None:
            runtime_raw.pop("logger_levels", None)
        elif not isinstance(levels_raw, dict):
            raise TypeError("runtime.logger_levels must be a mapping (dict)")

        cfg = AppConfig(
            runtime=RuntimeConfig(**runtime_raw),
            data_source=DataSourceConfig(**data_raw),
            allocator=AllocatorConfig(**(raw.get("allocator", {}) or {})),
            report=ReportConfig(**report_raw),
            base_dir=path.resolve().parent,
        )

        return cfg


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise TypeError(f"Top level of {path} must be a mapping (dict)")
    return raw
