# ===== MODULE DOCSTRING ===== #
"""
Type checking utilities for typeassert.

This module holds the matching engine and everything that can take part in
it:
- Built-in primitive descriptors (string, number, boolean, Array, Object, Function)
- Plain classes, matched with isinstance
- Custom validators attached with define(), which report problems through a
  FailureContext or by raising
- The is_, array_of and structure combinators

A check builds a tree of FailureNode objects. Nothing is raised until the
tree for a top-level check is complete; then exactly one TypeAssertionError
carrying the rendered tree leaves the public entry point.
"""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from functools import lru_cache
from collections.abc import Mapping
from typing import (
    Callable, Iterable, Optional,
    Final, Tuple, List, Any
)
import threading
import inspect
import logging
import sys

## ===== LOCAL ===== ##
from .config import (
    VALUE_TEMPLATE, RETURN_TEMPLATE, ARGUMENT_TEMPLATE,
    MISMATCH_TEMPLATE, CYCLE_TEMPLATE, DEPTH_EXCEEDED_TEMPLATE,
    FRAMES_PER_CHECK, VALIDATOR_ATTR
)
from .error_utils import (
    FailureNode, TypeAssertionError, ValidatorContextError,
    UNDEFINED, render_value, ordinal, generate_error_message,
    build_headline, build_arguments_failure
)
from .logging import _log

# ===== GLOBALS ===== #

## ===== TYPE ALIASES ===== ##
Validator = Callable[..., Optional[bool]]

## ===== ACTIVE CONTEXTS ===== ##
# Per-thread stack of contexts whose validators are currently running
_ACTIVE_CONTEXTS = threading.local()

## ===== EXPORTS ===== ##
__all__: Final[List[str]] = [
    'Descriptor', 'PrimitiveDescriptor', 'CustomDescriptor',
    'UnionDescriptor', 'ArrayOfDescriptor', 'StructureDescriptor',
    'FailureContext', 'Subject',
    'string', 'number', 'boolean', 'Array', 'Object', 'Function',
    'define', 'fail', 'that', 'is_', 'array_of', 'structure',
    'type_check', 'argument_types', 'return_type', 'name_of',
]

# ===== CLASSES ===== #

## ===== DESCRIPTORS ===== ##
class Descriptor:
    """Base class for named, checkable types."""

    def __init__(self, name: Optional[str]):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

class PrimitiveDescriptor(Descriptor):
    """A descriptor backed by a plain predicate over values."""

    def __init__(self, name: str, predicate: Callable[[Any], bool]):
        super().__init__(name)
        self._predicate = predicate

    def matches(self, value: Any) -> bool:
        return bool(self._predicate(value))

class CustomDescriptor(Descriptor):
    """A named descriptor whose check is a custom validator.

    The validator lives in the same slot ``define`` uses on classes and is
    looked up on every check, so assigning ``descriptor.validator`` takes
    effect immediately.
    """

    def __init__(self, name: Optional[str], validator: Validator):
        super().__init__(name)
        setattr(self, VALIDATOR_ATTR, validator)

    @property
    def validator(self) -> Validator:
        return getattr(self, VALIDATOR_ATTR)

    @validator.setter
    def validator(self, validator: Validator) -> None:
        setattr(self, VALIDATOR_ATTR, validator)

class UnionDescriptor(CustomDescriptor):
    """Matches when the value matches any of the member types, tried in order."""

    def __init__(self, types: Iterable[Any]):
        self.types = tuple(types)
        super().__init__(None, self._validate)

    @property
    def name(self) -> str:
        return "/".join(name_of(t) for t in self.types)

    def _validate(self, value: Any, context: 'FailureContext') -> None:
        context.that(value).is_(*self.types)

class ArrayOfDescriptor(CustomDescriptor):
    """Matches a list or tuple whose every element matches one of the element types."""

    def __init__(self, element_types: Iterable[Any]):
        self.element_types = tuple(element_types)
        super().__init__(None, self._validate)

    @property
    def name(self) -> str:
        return "array of " + "/".join(name_of(t) for t in self.element_types)

    def _validate(self, value: Any, context: 'FailureContext') -> None:
        if context.that(value).is_(Array):
            for item in value:
                context.that(item).is_(*self.element_types)

class StructureDescriptor(CustomDescriptor):
    """Matches a mapping whose declared properties match their descriptors.

    Missing properties are checked as ``UNDEFINED``; undeclared ones are ignored.
    """

    def __init__(self, shape: Mapping):
        self.shape = dict(shape)
        super().__init__(None, self._validate)

    @property
    def name(self) -> str:
        return "object with properties " + ", ".join(str(prop) for prop in self.shape)

    def _validate(self, value: Any, context: 'FailureContext') -> None:
        if context.that(value).is_(Object):
            for prop, expected in self.shape.items():
                context.that(value.get(prop, UNDEFINED)).is_(expected)

## ===== FAILURE CONTEXT ===== ##
class FailureContext:
    """Collects the reasons one validator invocation found for rejecting its value.

    A fresh context is created for every validator call and handed to the
    validator as its second argument. Recording a failure never interrupts
    the validator; every recorded reason is reported, in order.
    """

    def __init__(self, value: Any, expected: Any = None):
        self.value = value
        self.expected = expected
        self.failures: List[FailureNode] = []

    def fail(self, message: str) -> None:
        """Record one reason the value is invalid."""
        self.failures.append(FailureNode(str(message)))

    def that(self, value: Any) -> 'Subject':
        """Start a union check of ``value`` that reports into this context."""
        return Subject(value, self)

    def is_(self, *types: Any) -> bool:
        """Shortcut for ``that(self.value).is_(*types)``."""
        return self.that(self.value).is_(*types)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

class Subject:
    """A value paired with the context its mismatches are reported into."""

    def __init__(self, value: Any, context: FailureContext):
        self.value = value
        self.context = context

    def is_(self, *types: Any) -> bool:
        """Return True if the value matches any of ``types``.

        Otherwise record one "<value> is not instance of <type>" reason per
        candidate, each holding that candidate's own reasons, and return False.
        """
        reasons_per_type = []
        for expected in types:
            reasons: List[FailureNode] = []
            if _matches(self.value, expected, reasons):
                return True
            reasons_per_type.append((expected, reasons))

        actual = render_value(self.value)
        for expected, reasons in reasons_per_type:
            message = MISMATCH_TEMPLATE.format(actual=actual, expected=name_of(expected))
            self.context.failures.append(FailureNode(message, tuple(reasons)))
        return False

# ===== FUNCTIONS ===== #

## ===== PRIMITIVE PREDICATES ===== ##
def _is_string(value: Any) -> bool:
    return isinstance(value, str)

def _is_number(value: Any) -> bool:
    # bool is an int subclass but is not a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def _is_boolean(value: Any) -> bool:
    return isinstance(value, bool)

def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))

def _is_object(value: Any) -> bool:
    return isinstance(value, Mapping)

## ===== BUILT-IN DESCRIPTORS ===== ##
string: Final[PrimitiveDescriptor] = PrimitiveDescriptor('string', _is_string)
number: Final[PrimitiveDescriptor] = PrimitiveDescriptor('number', _is_number)
boolean: Final[PrimitiveDescriptor] = PrimitiveDescriptor('boolean', _is_boolean)
Array: Final[PrimitiveDescriptor] = PrimitiveDescriptor('Array', _is_array)
Object: Final[PrimitiveDescriptor] = PrimitiveDescriptor('Object', _is_object)
Function: Final[PrimitiveDescriptor] = PrimitiveDescriptor('Function', callable)

## ===== ACTIVE CONTEXT STACK ===== ##
def _context_stack() -> List[FailureContext]:
    stack = getattr(_ACTIVE_CONTEXTS, 'stack', None)
    if stack is None:
        stack = _ACTIVE_CONTEXTS.stack = []
    return stack

def current_context() -> FailureContext:
    """Return the context of the innermost running validator.

    Raises:
        ValidatorContextError: If no validator is running on this thread.
    """
    stack = _context_stack()
    if not stack:
        raise ValidatorContextError("fail() and that() can only be used while a validator is running")
    return stack[-1]

def check_depth_limit() -> int:
    """Nested validator invocations allowed before a check is failed outright."""
    return sys.getrecursionlimit() // FRAMES_PER_CHECK

def _already_checking(stack: List[FailureContext], value: Any, expected: Any) -> bool:
    return any(ctx.value is value and ctx.expected is expected for ctx in stack)

## ===== NAMES ===== ##
def name_of(expected: Any) -> str:
    """Return the name a descriptor, class or registered object is reported under."""
    if isinstance(expected, Descriptor):
        return expected.name
    if inspect.isclass(expected):
        return expected.__name__
    name = getattr(expected, 'name', None)
    if isinstance(name, str):
        return name
    return render_value(expected)

## ===== VALIDATOR INVOCATION ===== ##
def _inspect_accepts_context(validator: Validator) -> bool:
    try:
        sig = inspect.signature(validator)
    except (TypeError, ValueError):
        # No introspectable signature (some builtins); assume the full protocol
        return True
    # Optional positional parameters keep their defaults
    required = 0
    for param in sig.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return True
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD) and param.default is param.empty:
            required += 1
    return required >= 2

@lru_cache(maxsize=512)
def _accepts_context_cached(validator: Validator) -> bool:
    return _inspect_accepts_context(validator)

def _accepts_context(validator: Validator) -> bool:
    """Whether a validator takes ``(value, context)`` rather than just ``(value)``."""
    try:
        return _accepts_context_cached(validator)
    except TypeError:
        # Unhashable callable
        return _inspect_accepts_context(validator)

def _run_validator(value: Any, expected: Any, validator: Validator, failures: List[FailureNode]) -> bool:
    """Invoke a custom validator in a fresh context and collect what it reports."""
    stack = _context_stack()
    if _already_checking(stack, value, expected):
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"TRACE type_utils._run_validator: {name_of(expected)} is already checking this value. Failing cyclic branch.")
        failures.append(FailureNode(CYCLE_TEMPLATE.format(actual=render_value(value), expected=name_of(expected))))
        return False
    limit = check_depth_limit()
    if len(stack) >= limit:
        _log.warning(f"Check depth limit of {limit} reached while checking against {name_of(expected)}. Failing check.")
        failures.append(FailureNode(DEPTH_EXCEEDED_TEMPLATE.format(limit=limit)))
        return False

    context = FailureContext(value, expected)
    stack.append(context)
    try:
        if _accepts_context(validator):
            result = validator(value, context)
        else:
            result = validator(value)
        # Only an explicit False rejects; other return values are ignored
        passed = result is not False
    except Exception as e:
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"TRACE type_utils._run_validator: Validator for {name_of(expected)} raised {e!r}. Recording as failure.")
        # str() of a KeyError is the repr of its key
        if isinstance(e, KeyError) and len(e.args) == 1:
            context.fail(e.args[0])
        else:
            context.fail(str(e))
        passed = False
    finally:
        stack.pop()

    failures.extend(context.failures)
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE type_utils._run_validator: {name_of(expected)} -> passed={passed}, reasons={len(context.failures)}")
    return passed and not context.failures

## ===== MATCHING ===== ##
def _matches(value: Any, expected: Any, failures: List[FailureNode]) -> bool:
    """Check ``value`` against ``expected``, appending any reasons to ``failures``.

    Resolution order: a custom validator in the validator slot, then a
    primitive predicate, then isinstance for plain classes.

    Raises:
        TypeError: If ``expected`` is none of the above.
    """
    validator = getattr(expected, VALIDATOR_ATTR, None)
    if validator is not None:
        return _run_validator(value, expected, validator, failures)
    if isinstance(expected, PrimitiveDescriptor):
        return expected.matches(value)
    if inspect.isclass(expected):
        return isinstance(value, expected)
    raise TypeError(f"{expected!r} is not a type descriptor, class or registered type")

def _assert_value(value: Any, expected: Any, template: str, cause: str) -> Any:
    failures: List[FailureNode] = []
    if _matches(value, expected, failures):
        return value

    failure = FailureNode(build_headline(template, name_of(expected), value), tuple(failures))
    message = generate_error_message(failure)
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE type_utils._assert_value: Raising TypeAssertionError (cause={cause}): {message!r}")
    raise TypeAssertionError(message, failure=failure, cause=cause)

def _assert_arguments(labelled: Iterable[Tuple[str, Any, Any]]) -> None:
    """Check ``(position label, value, expected)`` triples and raise once for all failures."""
    argument_failures = []
    for position, value, expected in labelled:
        reasons: List[FailureNode] = []
        if _matches(value, expected, reasons):
            continue
        message = ARGUMENT_TEMPLATE.format(position=position, expected=name_of(expected), actual=render_value(value))
        argument_failures.append(FailureNode(message, tuple(reasons)))

    if argument_failures:
        failure = build_arguments_failure(argument_failures)
        message = generate_error_message(failure)
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"TRACE type_utils._assert_arguments: {len(argument_failures)} argument(s) failed.")
        raise TypeAssertionError(message, failure=failure, cause='argument')

## ===== PUBLIC API ===== ##
def type_check(value: Any, expected: Any, template: Optional[str] = None) -> Any:
    """Assert that ``value`` matches ``expected`` and return it unchanged.

    Args:
        value: The value to check.
        expected: A descriptor, a plain class, or anything registered with define().
        template: Headline template with ``{expected}`` and ``{actual}``
                  fields. Defaults to "Expected an instance of {expected}, got {actual}!".

    Raises:
        TypeAssertionError: If the value does not match. The message lists
            every reason, nested by the structure of the descriptor.
    """
    return _assert_value(value, expected, template or VALUE_TEMPLATE, 'value')

def return_type(value: Any, expected: Any) -> Any:
    """Assert a function's return value, using the "Expected to return..." headline."""
    return _assert_value(value, expected, RETURN_TEMPLATE, 'return')

def argument_types(*checks: Tuple[Any, Any]) -> None:
    """Assert a call's arguments, given as ``(value, expected)`` pairs in positional order.

    Every failing argument is reported, numbered 1st, 2nd, 3rd... under a
    single "Invalid arguments given!" headline.
    """
    _assert_arguments(
        (ordinal(position), value, expected)
        for position, (value, expected) in enumerate(checks, start=1)
    )

def define(target: Any, validator: Validator) -> Any:
    """Register a custom validator.

    With a string, creates and returns a new descriptor of that name. With
    anything else (usually a class), stores the validator on it and returns
    it. Defining again replaces the previous validator.

    The validator is called as ``validator(value, context)`` (or
    ``validator(value)`` if it has only one required positional parameter;
    further parameters with defaults keep them). It rejects the value by
    calling ``context.fail()``, by raising, or by returning False.
    """
    if isinstance(target, str):
        descriptor = CustomDescriptor(target, validator)
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"TRACE type_utils.define: Created descriptor {target!r}")
        return descriptor

    setattr(target, VALIDATOR_ATTR, validator)
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE type_utils.define: Attached validator to {name_of(target)}")
    return target

def fail(message: str) -> None:
    """Record a failure in the context of the validator currently running."""
    current_context().fail(message)

def that(value: Any) -> Subject:
    """Start a union check of ``value`` inside the validator currently running."""
    return Subject(value, current_context())

def is_(*types: Any) -> UnionDescriptor:
    """A descriptor matching any of ``types``."""
    return UnionDescriptor(types)

def array_of(*element_types: Any) -> ArrayOfDescriptor:
    """A descriptor matching a list or tuple of elements matching any of ``element_types``."""
    return ArrayOfDescriptor(element_types)

def structure(shape: Mapping) -> StructureDescriptor:
    """A descriptor matching a mapping whose properties match ``shape``."""
    return StructureDescriptor(shape)
