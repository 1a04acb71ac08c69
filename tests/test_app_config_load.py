import pytest
import yaml

from dispatch_planner.allocator.allocator_config import AllocatorConfig
from dispatch_planner.configs.config import AppConfig
from dispatch_planner.data_source.sheet_loader import SheetColumns


def test_app_config_hydrates_sections_and_resolves_paths(tmp_path):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    cfg_path = cfg_dir / "app.yml"
    raw = {
        "runtime": {"log_level": "DEBUG", "log_to_file": True, "log_root": "../logs"},
        "data_source": {
            "stock_path": "../data/stock.csv",
            "orders_path": "/abs/orders.xlsx",
            "strict": True,
            "columns": {"quantity": "QTY ON HAND"},
        },
        "allocator": {"duplicate_sizes": "reject"},
        "report": {"output_root": "../out", "save": False, "formats": "json"},
    }
    cfg_path.write_text(yaml.safe_dump(raw), encoding="utf-8")

    cfg = AppConfig.load_from_yaml(cfg_path)

    assert cfg.runtime.log_level == "DEBUG"
    assert cfg.log_root_path == (tmp_path / "logs").resolve()
    assert cfg.stock_path == (tmp_path / "data" / "stock.csv").resolve()
    assert str(cfg.orders_path).endswith("orders.xlsx")
    assert cfg.data_source.strict is True
    assert isinstance(cfg.data_source.columns, SheetColumns)
    assert cfg.data_source.columns.quantity == "QTY ON HAND"
    assert cfg.data_source.columns.ordered_quantity == "QNTY"
    assert isinstance(cfg.allocator, AllocatorConfig)
    assert cfg.allocator.duplicate_sizes == "reject"
    assert cfg.report.save is False
    assert cfg.report.formats == ("json",)
    assert cfg.output_root_path == (tmp_path / "out").resolve()


def test_app_config_defaults_for_empty_file(tmp_path):
    cfg_path = tmp_path / "app.yml"
    cfg_path.write_text("", encoding="utf-8")

    cfg = AppConfig.load_from_yaml(cfg_path)

    assert cfg.allocator.duplicate_sizes == "sum"
    assert cfg.stock_path is None
    assert cfg.report.formats == ("csv",)
    assert cfg.runtime.log_to_file is False


def test_app_config_rejects_bad_values(tmp_path):
    cfg_path = tmp_path / "app.yml"

    cfg_path.write_text(yaml.safe_dump({"allocator": {"duplicate_sizes": "max"}}), encoding="utf-8")
    with pytest.raises(ValueError):
        AppConfig.load_from_yaml(cfg_path)

    cfg_path.write_text(yaml.safe_dump({"runtime": {"colour": True}}), encoding="utf-8")
    with pytest.raises(TypeError):
        AppConfig.load_from_yaml(cfg_path)

    cfg_path.write_text(yaml.safe_dump({"data_source": {"columns": ["SIZE"]}}), encoding="utf-8")
    with pytest.raises(TypeError):
        AppConfig.load_from_yaml(cfg_path)


def test_app_config_top_level_must_be_mapping(tmp_path):
    cfg_path = tmp_path / "app.yml"
    cfg_path.write_text("- runtime\n- report\n", encoding="utf-8")

    with pytest.raises(TypeError, match="mapping"):
        AppConfig.load_from_yaml(cfg_path)


def test_app_config_runtime_logging_options(tmp_path):
    cfg_path = tmp_path / "app.yml"
    raw = {
        "runtime": {
            "log_file": "planner.log",
            "log_backup_count": 1,
            "logger_levels": {"DispatchAllocator": "DEBUG"},
        }
    }
    cfg_path.write_text(yaml.safe_dump(raw), encoding="utf-8")

    cfg = AppConfig.load_from_yaml(cfg_path)

    assert cfg.runtime.log_file == "planner.log"
    assert cfg.runtime.log_backup_count == 1
    assert cfg.runtime.log_max_bytes == 5_000_000
    assert cfg.runtime.logger_levels == {"DispatchAllocator": "DEBUG"}

    cfg_path.write_text(yaml.safe_dump({"runtime": {"logger_levels": ["DEBUG"]}}), encoding="utf-8")
    with pytest.raises(TypeError):
        AppConfig.load_from_yaml(cfg_path)
