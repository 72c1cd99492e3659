"""deprefresh — grouped dependency-update pull request reconciliation."""

__version__ = "0.1.0"
