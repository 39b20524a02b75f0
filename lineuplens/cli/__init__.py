"""CLI package bootstrap.

Defines the root group (`cli`) in helpers and imports submodules so their
decorators register commands.
"""
from lineuplens.cli.helpers import cli  # root group
from lineuplens.cli import auth_cmds  # noqa: F401
from lineuplens.cli import library_cmds  # noqa: F401
from lineuplens.cli import match_cmds  # noqa: F401
from lineuplens.cli import config_cmds  # noqa: F401

__all__ = ["cli"]
