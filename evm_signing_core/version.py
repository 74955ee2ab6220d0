"""
Version information for the EVM signing core.
"""
import importlib.metadata
import pathlib
import tomli

# Prefer installed package metadata
try:
    __version__ = importlib.metadata.version("evm-signing-core")
except importlib.metadata.PackageNotFoundError:
    # Source checkout: read pyproject.toml
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with path.open("rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        __version__ = "0.1.0"
