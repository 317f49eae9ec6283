# daybook/store/__init__.py
from importlib import import_module


def get_store(name, config):
    store_path = config['store_modules'][name]
    module_name, cls_name = store_path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name).from_config(config)
