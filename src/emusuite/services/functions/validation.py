"""Pre-flight checks for a functions source directory."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Iterable

from emusuite.core.errors import FunctionsConfigError

_log = logging.getLogger("emusuite.functions")

VALID_FUNCTION_NAME = re.compile(r"^[a-z][a-zA-Z0-9_-]{1,62}$", re.IGNORECASE)


def resolve_project_path(cwd: str | Path, rel: str | Path) -> Path:
    return (Path(cwd) / rel).resolve()


def functions_directory_exists(cwd: str | Path, source_dir_name: str) -> None:
    """
    Check that the functions directory exists.

    :raises FunctionsConfigError: the directory is missing.
    """
    if not resolve_project_path(cwd, source_dir_name).is_dir():
        raise FunctionsConfigError(
            f'could not deploy functions because the "{source_dir_name}" directory was not found. '
            "Please create it or specify a different source directory"
        )


def function_names_are_valid(function_names: Iterable[str]) -> None:
    """
    Function names may only contain letters, numbers, underscores and dashes.
    Names starting with "." are ignored. A mapping is validated by its keys.

    :raises FunctionsConfigError: lists every invalid name.
    """
    invalid = [name for name in function_names if not (name.startswith(".") or VALID_FUNCTION_NAME.fullmatch(name))]
    if invalid:
        raise FunctionsConfigError(
            f"{', '.join(invalid)} function name(s) must be a valid subdomain (lowercase letters, numbers and dashes)"
        )


def package_json_is_valid(source_dir_name: str, source_dir: str | Path, project_dir: str | Path) -> None:
    """
    package.json must point at an existing main file (index.js by default);
    without package.json a legacy function.js is accepted.

    :raises FunctionsConfigError: nothing to deploy or package.json is broken.
    """
    source = Path(source_dir)
    package_json = source / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
            _log.debug("> [functions] package.json contents: %s", json.dumps(data, indent=2))
            main = (data.get("main") if isinstance(data, dict) else None) or "index.js"
            if not isinstance(main, str):
                raise FunctionsConfigError(f'"main" must be a path string, got {main!r}')
            index_file = source / main
            if not index_file.is_file():
                rel = os.path.relpath(index_file, project_dir)
                raise FunctionsConfigError(f"{rel} does not exist, can't deploy functions")
        except (OSError, ValueError, FunctionsConfigError) as e:
            raise FunctionsConfigError(
                f"There was an error reading {source_dir_name}{os.sep}package.json:\n\n {e}"
            ) from e
    elif not (source / "function.js").is_file():
        raise FunctionsConfigError(
            f"No npm package found in functions source directory. Please run 'npm init' inside {source_dir_name}"
        )
