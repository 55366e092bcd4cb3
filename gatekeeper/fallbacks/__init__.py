from importlib import import_module
from pathlib import Path


def load_fallbacks(enabled=None):
    """
    Discover geo fallback modules in this package and return instances of the
    strategies they expose via FALLBACKS (each has .name and .allows(config)).
    ``enabled`` filters and orders them by name; None keeps discovery order.
    """
    found = {}
    pkg_path = Path(__file__).parent
    for py in sorted(pkg_path.glob("*.py")):
        if py.name.startswith("_"):
            continue
        mod = import_module(f"{__package__}.{py.stem}")
        for cls in getattr(mod, "FALLBACKS", []):
            found[cls.name] = cls
    if enabled is None:
        return [cls() for cls in found.values()]
    return [found[name]() for name in enabled if name in found]
