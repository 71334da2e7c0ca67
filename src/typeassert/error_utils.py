# ===== MODULE DOCSTRING ===== #
"""Error utilities for the typeassert package: failure trees, exceptions, value rendering and message formatting."""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from collections.abc import Mapping
from typing import (
    Iterable, Optional, Final,
    List, Set, Any, Tuple
)
import dataclasses
import inspect
import logging

## ===== LOCAL ===== ##
from .config import (
    ARGUMENTS_HEADER, BULLET_INDENT, BULLET_PREFIX,
    MAX_RENDER_DEPTH
)
from .logging import _log

# ===== GLOBALS ===== #

## ===== EXPORTS ===== ##
__all__: Final[List[str]] = [
    'FailureNode',
    'TypeAssertionError',
    'ValidatorContextError',
    'UNDEFINED',
    'render_value',
    'format_failures',
    'ordinal',
    'generate_error_message',
    'build_headline',
    'build_arguments_failure',
]

# ===== CLASSES ===== #

class _Undefined:
    """Marker for a property that is absent from a checked mapping."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

UNDEFINED: Final[_Undefined] = _Undefined()

@dataclasses.dataclass(frozen=True)
class FailureNode:
    """One reason a value did not match, with the reasons nested under it.

    Attributes:
        message (str): The line rendered for this node.
        children (Tuple[FailureNode, ...]): Deeper reasons, in the order they were reported.
    """
    message: str
    children: Tuple['FailureNode', ...] = ()

class TypeAssertionError(TypeError):
    """Raised when a value does not match its descriptor.

    Carries the rendered diagnostic as its message, the failure tree it was
    rendered from, and which kind of check produced it.
    """
    def __init__(self, message: str, failure: Optional[FailureNode] = None, cause: str = 'value'):
        super().__init__(message)
        self.failure = failure
        self.cause = cause

class ValidatorContextError(RuntimeError):
    """Raised when fail() or that() is used while no validator is running."""

# ===== FUNCTIONS ===== #

## ===== VALUE RENDERING ===== ##
def render_value(value: Any) -> str:
    """Render a value in the short literal form used by diagnostics.

    Strings are double-quoted as written, ``None`` is ``null``, booleans are
    ``true``/``false``, sequences and mappings are rendered recursively as
    ``[a, b]`` and ``{key: value}``. Never raises; cyclic containers render
    as ``[Circular]``.
    """
    return _render(value, set(), 0)

def _render(value: Any, seen: Set[int], depth: int) -> str:
    try:
        return _render_unguarded(value, seen, depth)
    except Exception as e:
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"TRACE error_utils._render: Rendering {type(value).__name__} failed: {e!r}. Using fallback.")
        return f"<{type(value).__name__}>"

def _render_unguarded(value: Any, seen: Set[int], depth: int) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return _render_container(value, seen, depth, "[", "]", value)
    if isinstance(value, Mapping):
        return _render_container(value, seen, depth, "{", "}", value.items())
    if inspect.isclass(value) or inspect.isroutine(value):
        return getattr(value, '__name__', None) or type(value).__name__
    if type(value).__repr__ is object.__repr__:
        # Default reprs carry a memory address; show the attributes instead
        attrs = getattr(value, '__dict__', None)
        if isinstance(attrs, dict):
            body = _render_container(value, seen, depth, "{", "}", attrs.items())
            return f"{type(value).__name__} {body}"
        return f"<{type(value).__name__}>"
    return repr(value)

def _render_container(container: Any, seen: Set[int], depth: int, opening: str, closing: str, items: Iterable) -> str:
    marker = id(container)
    if marker in seen:
        return "[Circular]"
    if depth >= MAX_RENDER_DEPTH:
        return f"{opening}...{closing}"
    seen.add(marker)
    try:
        parts = []
        for item in items:
            if opening == "{":
                key, item_value = item
                key_repr = key if isinstance(key, str) else _render(key, seen, depth + 1)
                parts.append(f"{key_repr}: {_render(item_value, seen, depth + 1)}")
            else:
                parts.append(_render(item, seen, depth + 1))
        return opening + ", ".join(parts) + closing
    finally:
        seen.discard(marker)

## ===== FAILURE TREE FORMATTING ===== ##
def format_failures(nodes: Iterable[FailureNode], depth: int = 1) -> str:
    """Render failure nodes as bullet lines, depth-first, one indent per level."""
    lines = []
    for node in nodes:
        lines.append(f"\n{BULLET_INDENT * depth}{BULLET_PREFIX}{node.message}")
        if node.children:
            lines.append(format_failures(node.children, depth + 1))
    return "".join(lines)

def ordinal(position: int) -> str:
    """Return the English ordinal for a 1-based position (1st, 2nd, 3rd, 4th, 11th, 21st...)."""
    if 10 <= position % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(position % 10, "th")
    return f"{position}{suffix}"

## ===== MESSAGE GENERATION ===== ##
def generate_error_message(failure: FailureNode) -> str:
    """Render a whole failure tree: the root's headline, then its reasons as bullets."""
    message = failure.message + format_failures(failure.children)
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE error_utils.generate_error_message: Generated message (length={len(message)}, reasons={len(failure.children)}).")
    return message

def build_headline(template: str, expected_name: str, value: Any) -> str:
    """Fill a headline template with the expected type name and the rendered value."""
    return template.format(expected=expected_name, actual=render_value(value))

def build_arguments_failure(argument_failures: Iterable[FailureNode]) -> FailureNode:
    """Wrap per-argument failures under the shared 'Invalid arguments given!' headline."""
    return FailureNode(ARGUMENTS_HEADER, tuple(argument_failures))
