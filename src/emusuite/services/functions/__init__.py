from .validation import (
    functions_directory_exists,
    function_names_are_valid,
    package_json_is_valid,
    resolve_project_path,
)

__all__ = [
    "functions_directory_exists",
    "function_names_are_valid",
    "package_json_is_valid",
    "resolve_project_path",
]
