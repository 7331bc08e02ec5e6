# tests/conftest.py
"""Shared Jsonnet sources and fixtures."""

import logging
from typing import Dict, Tuple

import pytest

from sonnetdoc import ast as A
from sonnetdoc.errors import ImportFailure
from sonnetdoc.parser import parse
from sonnetdoc.resolver import Resolver


LIBRARY_SRC = """\
// A small library in the usual shape: locals, nested objects, methods.
local util = {
  join(parts, sep=","): std.join(sep, parts),
};

{
  add: function(a, b) a + b,
  nested: {
    sub(x): -x,
  },
  version:: "1.0",
  join: util.join,
}
"""

HELPER_LIB_SRC = """\
{
  fn(x, y=1): x + y,
  other: 42,
}
"""


class DictImporter:
    """In-memory importer: file name → Jsonnet source."""

    def __init__(self, files: Dict[str, str]) -> None:
        self.files = dict(files)
        self.calls = []

    def resolve_import(self, current_file: str, target: str) -> Tuple[A.Node, str]:
        self.calls.append((current_file, target))
        if target not in self.files:
            raise ImportFailure(target, "no such file")
        return parse(self.files[target], target), target


@pytest.fixture
def importer():
    return DictImporter({"lib.libsonnet": HELPER_LIB_SRC})


@pytest.fixture
def build(importer):
    """Parse *src* as ``main.jsonnet`` and resolve it with the dict importer."""

    def _build(src: str, config=None):
        root = parse(src, "main.jsonnet")
        return Resolver(importer, config).build(root, "main.jsonnet")

    return _build


@pytest.fixture(autouse=True)
def _reset_sonnetdoc_logger():
    """The CLI installs a handler on the package logger; drop it after each test."""
    yield
    logger = logging.getLogger("sonnetdoc")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
