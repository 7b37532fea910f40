"""Dotted-path import helper used to load providers lazily."""

import importlib
from typing import Any

__all__ = ("import_string",)


def import_string(dotted_path: str) -> "Any":
    """Dotted Path Import.

    Import a dotted module path and return the attribute/class designated by the
    last name in the path. Raise ImportError if the import failed.

    Args:
        dotted_path: The path of the module to import.

    Raises:
        ImportError: Could not import the module.

    Returns:
        object: The imported object.
    """
    try:
        parts = dotted_path.split(".")
        for i in range(len(parts), 0, -1):
            module_path = ".".join(parts[:i])
            try:
                module = importlib.import_module(module_path)
                break
            except ModuleNotFoundError:
                continue
        else:
            msg = f"{dotted_path} doesn't look like a module path"
            raise ImportError(msg)
        obj = module
        for attr in parts[i:]:
            try:
                obj = getattr(obj, attr)
            except AttributeError as e:
                msg = f"Module '{module.__name__}' has no attribute '{attr}' in '{dotted_path}'"
                raise ImportError(msg) from e
        return obj
    except Exception as e:
        msg = f"Could not import '{dotted_path}': {e}"
        raise ImportError(msg) from e
