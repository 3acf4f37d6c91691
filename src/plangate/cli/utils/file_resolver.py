"""Resource config path resolution for CLI."""

from pathlib import Path

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a resource configuration path relative to the current directory.

    A bare name without a suffix also matches ``<name>.yaml``, ``<name>.yml``
    or ``<name>.json`` in the current directory.

    Raises:
        FileNotFoundError: If no matching file exists
    """
    path = Path(file_path)
    if not path.is_absolute():
        path = Path.cwd() / path

    if path.is_file():
        return path.resolve()

    if path.exists():
        raise FileNotFoundError(f"Path is not a file: {file_path}. Please provide a resource config file.")

    if not path.suffix:
        for suffix in CONFIG_SUFFIXES:
            candidate = path.with_suffix(suffix)
            if candidate.is_file():
                return candidate.resolve()

    raise FileNotFoundError(f"Config file not found: {file_path}. Please check the file path and try again.")
