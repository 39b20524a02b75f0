"""Central version declaration for lineup-lens.

Update this file when cutting a new release tag. Keep semantic versioning.
The CLI ``--version`` option imports from here.
"""

__version__ = "2.0.0"

__all__ = ["__version__"]
