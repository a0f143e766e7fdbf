"""mtpmirror CLI — mirror device trees onto local disk."""

from ._helpers import main  # noqa: F401 — entry point

# Import command modules to register Click commands with the main group.
from . import _mirror  # noqa: F401
