# ==============================================================================
# Version Utilities
# ==============================================================================
"""
Utilities for retrieving package versions.
"""

from importlib.metadata import version, PackageNotFoundError


def get_uxinsights_version() -> str:
    """
    Get the uxinsights package version.

    Returns:
        Version string (e.g., "0.1.0")
    """
    try:
        return version("uxinsights")
    except PackageNotFoundError:
        return "0.1.0"
