"""
Configuration for a catalog build.

Values come from three places, later ones winning: the dataclass defaults,
the environment (``CatalogConfig.from_env``) and the command line.

Environment
-----------
``JSONNET_PATH``
    Library search directories, separated by ``os.pathsep``.  As with the
    ``jsonnet`` tool, the right-most directory has the highest priority.
``SONNETDOC_MAX_DEPTH``
    Override for ``max_depth``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_FILE = "main.libsonnet"


@dataclass(frozen=True)
class CatalogConfig:
    """Tuning knobs for the resolver and presenters."""
    max_depth: int = 400
    search_paths: Tuple[str, ...] = field(default_factory=tuple)
    sort_keys: bool = False
    show_opaque: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_depth <= 0:
            warnings.append("max_depth must be positive")
        for path in self.search_paths:
            if not os.path.isdir(path):
                warnings.append(f"library path is not a directory: {path}")
        return warnings

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CatalogConfig":
        env = os.environ if environ is None else environ
        config = cls()

        raw_paths = env.get("JSONNET_PATH", "")
        if raw_paths:
            config = replace(
                config,
                search_paths=tuple(p for p in raw_paths.split(os.pathsep) if p),
            )

        raw_depth = env.get("SONNETDOC_MAX_DEPTH")
        if raw_depth:
            try:
                config = replace(config, max_depth=int(raw_depth))
            except ValueError:
                logger.warning(
                    "Ignoring SONNETDOC_MAX_DEPTH=%r: not an integer", raw_depth
                )
        return config

    def with_search_paths(self, extra: Tuple[str, ...]) -> "CatalogConfig":
        """Append *extra* library paths; they take priority over existing ones."""
        return replace(self, search_paths=self.search_paths + tuple(extra))
