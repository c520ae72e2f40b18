"""Per-project file and directory bookmarks.

Hosts drive ``Filemarks`` with a ``FilemarksConfig``; ``main`` runs the
terminal front end.
"""

from __future__ import annotations

from .config import FilemarksConfig
from .service import ActionResult, Filemarks, OpenTarget, ResultStatus


def main(argv: list[str] | None = None) -> None:
    """Run the ``filemarks`` command line; argparse is imported on first use."""
    from .cli import main as run_cli

    run_cli(argv)

__all__ = ["ActionResult", "Filemarks", "FilemarksConfig", "OpenTarget", "ResultStatus", "main"]
