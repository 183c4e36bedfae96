# threadart_app/chord_selectors/__init__.py

import pkgutil
import importlib
import inspect
from typing import Dict, Type

from .base import ChordSelector, SelectionState, SelectorStatus, StepResult

SELECTORS: Dict[str, Type[ChordSelector]] = {}

# --- Auto-discover all modules in this package ---
package_name = __name__  # "threadart_app.chord_selectors"
package_path = __path__  # filesystem path to this directory

for finder, module_name, is_pkg in pkgutil.iter_modules(package_path):
    if module_name in ("base", "__init__"):
        continue  # skip base and this init
    full_name = f"{package_name}.{module_name}"
    module = importlib.import_module(full_name)

    # Find all concrete subclasses of ChordSelector in the module
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if (
            issubclass(cls, ChordSelector)
            and cls is not ChordSelector
            and not inspect.isabstract(cls)
        ):
            # Derive the registry key from module_name.
            # e.g. module greedy → key "greedy"
            key = module_name.replace("_", "-")
            SELECTORS[key] = cls


def create_selector(name: str = "greedy", **kwargs) -> ChordSelector:
    """
    Instantiate a registered selector by name, forwarding `kwargs`
    (e.g. exclusion_band, erosion_amount, rng, logger).
    """
    cls = SELECTORS.get(name)
    if cls is None:
        valid = ", ".join(SELECTORS.keys())
        raise ValueError(f"Unknown selector '{name}'. Valid options: {valid}")
    return cls(**kwargs)


__all__ = [
    "SELECTORS",
    "ChordSelector",
    "SelectionState",
    "SelectorStatus",
    "StepResult",
    "create_selector",
]
