"""Route function loader.

This module loads user-provided Python route derivation functions.
A reference has the form ``path/to/routes.py:function_name`` and the
function is called as ``fn(collection_name, raw_options, slugify)``.
"""

from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import Any, cast

from core.errors import DirectusConfigError
from core.types import RouteFunction


def load_route_function(reference: str, base_dir: Path | None = None) -> RouteFunction:
    """Load a route function from a ``file.py:function`` reference.

    Args:
        reference: File path and function name separated by a colon.
        base_dir: Directory relative paths are resolved against.

    Returns:
        Route derivation callable.

    Raises:
        DirectusConfigError: If the file or callable cannot be loaded.
    """
    file_part, separator, function_name = reference.rpartition(":")
    if not separator or not file_part or not function_name:
        raise DirectusConfigError(
            f"Invalid routeFunction '{reference}': expected 'path/to/file.py:function'."
        )
    module_path = Path(file_part).expanduser()
    if not module_path.is_absolute() and base_dir is not None:
        module_path = base_dir / module_path
    module_path = module_path.resolve()
    if not module_path.exists():
        raise DirectusConfigError(
            f"Route function file not found at {module_path}. Fix the routeFunction path."
        )
    module = _load_python_module(module_path)
    route_fn = getattr(module, function_name, None)
    if route_fn is None or not callable(route_fn):
        raise DirectusConfigError(
            f"Invalid route function file at {module_path}: "
            f"missing callable {function_name}(collection_name, options, slugify)."
        )
    return cast(RouteFunction, route_fn)


def _load_python_module(module_path: Path) -> Any:
    """Load Python module from file path."""
    spec = importlib.util.spec_from_file_location(
        f"directus_user_routes_{module_path.stem}", str(module_path)
    )
    if spec is None or spec.loader is None:
        raise DirectusConfigError(
            f"Failed to load route module at {module_path}. Verify the file path and syntax."
        )
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as error:
        raise DirectusConfigError(
            f"Failed to import route module at {module_path}: {error!r}. "
            "Fix the module so it imports cleanly."
        ) from error
    return module
