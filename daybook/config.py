# daybook/config.py
import copy
import logging
import os

import yaml

DEFAULT_CONFIG = {
    'db_path': 'data/daybook.db',
    'db_timeout': 10.0,
    'store': 'sqlite',
    'store_modules': {
        'sqlite': 'daybook.store.sqlite_store.SQLiteStore',
        'memory': 'daybook.store.memory.MemoryStore',
    },
    'output_dir': 'data',
    'output_modules': {
        'csv': 'daybook.outputs.csv_output.CSVOutput',
        'excel': 'daybook.outputs.excel_output.ExcelOutput',
    },
    'log_level': 'INFO',
}

ENV_OVERRIDES = {
    'DAYBOOK_DB_PATH': 'db_path',
    'DAYBOOK_STORE': 'store',
    'DAYBOOK_LOG_LEVEL': 'log_level',
}


def load_config(path=None):
    """
    Load config.yaml (if given) on top of the defaults, then apply
    DAYBOOK_* environment overrides.
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        for key, value in data.items():
            if isinstance(value, dict) and isinstance(cfg.get(key), dict):
                cfg[key].update(value)
            else:
                cfg[key] = value

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            cfg[key] = value
    return cfg


def setup_logging(level=None):
    level = (level or os.getenv('DAYBOOK_LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
