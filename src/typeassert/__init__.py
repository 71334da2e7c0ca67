# ===== MODULE DOCSTRING ===== #
"""
typeassert: runtime type assertions with nested diagnostics.

    from typeassert import define, that, type_check, array_of, string, number

    Titles = define('ListOfTitles', lambda value: that(value).is_(array_of(string, number)))

    type_check(['one', 55], Titles)      # passes, returns the value
    type_check(['aaa', True], Titles)    # raises TypeAssertionError:
    # Expected an instance of ListOfTitles, got ["aaa", true]!
    #   - ["aaa", true] is not instance of array of string/number
    #     - true is not instance of string
    #     - true is not instance of number
"""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from typing import Final, List

## ===== LOCAL ===== ##
from .type_utils import (
    Descriptor, PrimitiveDescriptor, CustomDescriptor,
    UnionDescriptor, ArrayOfDescriptor, StructureDescriptor,
    FailureContext, Subject,
    string, number, boolean, Array, Object, Function,
    define, fail, that, is_, array_of, structure,
    type_check, argument_types, return_type, name_of
)
from .error_utils import (
    FailureNode, TypeAssertionError, ValidatorContextError,
    UNDEFINED, render_value, format_failures, ordinal
)
from .decorator import typechecked, ignore
from .logging import logger, set_verbosity

# ===== GLOBALS ===== #

__version__: Final[str] = "0.1.0"

## ===== EXPORTS ===== ##
__all__: Final[List[str]] = [
    # Checking
    'type_check', 'argument_types', 'return_type',
    'typechecked', 'ignore',
    # Defining types
    'define', 'fail', 'that', 'is_', 'array_of', 'structure',
    'string', 'number', 'boolean', 'Array', 'Object', 'Function',
    'Descriptor', 'PrimitiveDescriptor', 'CustomDescriptor',
    'UnionDescriptor', 'ArrayOfDescriptor', 'StructureDescriptor',
    'FailureContext', 'Subject', 'name_of',
    # Diagnostics
    'FailureNode', 'TypeAssertionError', 'ValidatorContextError',
    'UNDEFINED', 'render_value', 'format_failures', 'ordinal',
    # Logging
    'logger', 'set_verbosity',
]
