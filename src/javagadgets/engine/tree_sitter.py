from __future__ import annotations

import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol, cast


class _ParserLike(Protocol):
    def parse(self, source: bytes) -> Any: ...


_language_factory: Callable[[], object] | None
_parser_cls: Callable[..., Any] | None

try:  # pragma: no cover
    import tree_sitter_java as _tree_sitter_java
    from tree_sitter import Language as _TreeSitterLanguage
    from tree_sitter import Parser as _TreeSitterParser
except (ImportError, OSError):  # pragma: no cover
    _language_factory = None
    _parser_cls = None
else:  # pragma: no cover (depends on installed grammars)

    def _java_language() -> object:
        return _TreeSitterLanguage(_tree_sitter_java.language())

    _language_factory = _java_language
    _parser_cls = cast(Callable[..., Any], _TreeSitterParser)

_TREE_SITTER_AVAILABLE = _language_factory is not None and _parser_cls is not None

# Exposed for tests and light monkeypatching.
Parser: Callable[..., Any] | None = _parser_cls
get_language: Callable[[], object] | None = _language_factory

SOURCE_ENCODING = "utf-8"


class TreeSitterError(RuntimeError):
    """Raised when tree-sitter cannot load the Java grammar or parse source."""


def encode_source(source: str) -> bytes:
    return source.encode(SOURCE_ENCODING, errors="replace")


@lru_cache(maxsize=1)
def _get_language() -> object:
    if not _TREE_SITTER_AVAILABLE:  # pragma: no cover
        raise TreeSitterError(
            "tree-sitter dependencies are not installed. Install `tree-sitter` and `tree-sitter-java` "
            "to enable Java parsing."
        )
    try:
        assert get_language is not None
        return get_language()
    except (AttributeError, TypeError, ValueError, RuntimeError) as exc:  # pragma: no cover
        raise TreeSitterError("tree-sitter Java grammar could not be loaded") from exc


_PARSER_LOCAL = threading.local()


def _get_parser() -> _ParserLike:
    """
    Return a per-thread Parser for the Java grammar.

    tree-sitter Parser objects are not thread-safe, so each thread that scans
    files gets its own instance.
    """

    parser: _ParserLike | None = getattr(_PARSER_LOCAL, "parser", None)
    if parser is not None:
        return parser

    lang = _get_language()
    assert Parser is not None
    try:
        parser = Parser(lang)
    except TypeError:  # pragma: no cover (tree-sitter < 0.22)
        parser = Parser()
        parser.set_language(lang)
    _PARSER_LOCAL.parser = parser
    return parser


def parse(source: str) -> Any | None:
    """
    Parse Java source with tree-sitter.

    Returns the tree-sitter Tree, or None if parsing is unavailable or fails.
    """

    if not _TREE_SITTER_AVAILABLE:
        return None
    try:
        return _get_parser().parse(encode_source(source))
    except (TreeSitterError, ValueError, TypeError, RuntimeError):
        return None


def parses_cleanly(source: str) -> bool:
    tree = parse(source)
    if tree is None:
        return False
    return not bool(tree.root_node.has_error)


def is_available() -> bool:
    return _TREE_SITTER_AVAILABLE
