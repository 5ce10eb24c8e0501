import importlib.util
import itertools
from pathlib import Path


def incrf(start: int = 1):
    """Infinite counter starting at ``start``."""
    return itertools.count(start)


def load_module(script_path: Path, module_name: str = "module"):
    spec = importlib.util.spec_from_file_location(module_name, str(script_path))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
