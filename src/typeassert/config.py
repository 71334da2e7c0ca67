# ===== MODULE DOCSTRING ===== #
"""Configuration constants for the typeassert package.

Holds the message templates used to build diagnostics, the layout of the
nested bullet lines, the budgets that keep checking and rendering finite,
and the attribute names typeassert sets on user objects.
"""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from typing import Final, Set

# ===== GLOBALS ===== #

## ===== MESSAGE TEMPLATES ===== ##
# Headline for a plain value/variable check
VALUE_TEMPLATE: Final[str] = "Expected an instance of {expected}, got {actual}!"
# Headline for a return value check
RETURN_TEMPLATE: Final[str] = "Expected to return an instance of {expected}, got {actual}!"
# Headline and per-argument line for argument checks
ARGUMENTS_HEADER: Final[str] = "Invalid arguments given!"
ARGUMENT_TEMPLATE: Final[str] = "{position} argument has to be an instance of {expected}, got {actual}"
# One line per unmatched candidate type
MISMATCH_TEMPLATE: Final[str] = "{actual} is not instance of {expected}"
# Leaf recorded when a validator would re-check a value it is already checking
CYCLE_TEMPLATE: Final[str] = "{actual} is already being checked against {expected}"
# Leaf recorded when the nesting backstop trips
DEPTH_EXCEEDED_TEMPLATE: Final[str] = "maximum check depth of {limit} exceeded"

## ===== LAYOUT ===== ##
BULLET_INDENT: Final[str] = "  "
BULLET_PREFIX: Final[str] = "- "

## ===== BUDGETS ===== ##
# Python frames one nested validator invocation is assumed to use. Nesting
# beyond sys.getrecursionlimit() // FRAMES_PER_CHECK is failed outright.
FRAMES_PER_CHECK: Final[int] = 8
# Container nesting rendered before falling back to [...] / {...}
MAX_RENDER_DEPTH: Final[int] = 8

## ===== ATTRIBUTE NAMES ===== ##
# Slot holding a custom validator on classes and descriptor objects
VALIDATOR_ATTR: Final[str] = "__typeassert__"
_RETURN_ANNOTATION: Final[str] = "return"
_SELF_NAMES: Final[Set[str]] = {"self", "cls"}
_TYPECHECKED_MARKER: Final[str] = "_typeassert_checked"
_IGNORE_MARKER: Final[str] = "_typeassert_ignore"
