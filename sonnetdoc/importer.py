"""
File-system importer.

``import "x.libsonnet"`` is looked up the way the ``jsonnet`` tool does it:
first relative to the directory of the importing file, then in each library
search path, right-most path first.  Absolute targets are used as they are.

Each resolved file is read and parsed once per importer; later imports of
the same path return the cached tree.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from . import ast as A
from .errors import ImportFailure, JsonnetSyntaxError, SdocErrorCodes
from .parser import parse

logger = logging.getLogger(__name__)


class FileImporter:
    """Resolves import targets against the file system."""

    def __init__(self, search_paths: Iterable[str] = ()) -> None:
        self.search_paths: Tuple[str, ...] = tuple(search_paths)
        self._cache: Dict[str, A.Node] = {}

    def candidates(self, current_file: str, target: str) -> List[Path]:
        """Paths tried for *target*, in lookup order."""
        if os.path.isabs(target):
            return [Path(target)]
        base = Path(current_file).parent if current_file else Path(".")
        found = [base / target]
        found.extend(Path(p) / target for p in reversed(self.search_paths))
        return found

    def resolve_import(self, current_file: str, target: str) -> Tuple[A.Node, str]:
        for candidate in self.candidates(current_file, target):
            if candidate.is_file():
                path = os.path.normpath(str(candidate))
                return self._load(path, target), path

        tried = ", ".join(str(c) for c in self.candidates(current_file, target))
        raise ImportFailure(target, f"no match locally or in library paths (tried {tried})")

    def _load(self, path: str, target: str) -> A.Node:
        cached = self._cache.get(path)
        if cached is not None:
            logger.debug("import cache hit: %s", path)
            return cached

        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ImportFailure(
                target, str(exc), code=SdocErrorCodes.IMPORT_UNREADABLE, cause=exc
            ) from exc

        try:
            root = parse(text, path)
        except JsonnetSyntaxError as exc:
            raise ImportFailure(
                target,
                f"syntax error: {exc.message} at {exc.span}",
                code=SdocErrorCodes.IMPORT_UNREADABLE,
                cause=exc,
            ) from exc

        logger.debug("loaded %s", path)
        self._cache[path] = root
        return root
