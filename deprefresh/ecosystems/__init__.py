"""Ecosystems — auto-registered on import."""

from deprefresh.ecosystems import pip  # noqa: F401
from deprefresh.ecosystems.registry import ECOSYSTEM_REGISTRY, get_ecosystem, register_ecosystem

__all__ = ["ECOSYSTEM_REGISTRY", "get_ecosystem", "register_ecosystem"]
