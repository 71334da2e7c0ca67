# ===== MODULE DOCSTRING ===== #
"""
Decorator applying typeassert checks from function annotations.

Annotations may be any descriptor typeassert understands: the built-in
primitives, combinators, classes, or types registered with define().

The decorator performs the following checks:
1. Before the body runs, every annotated argument (one combined
   "Invalid arguments given!" error listing each failing argument)
2. After the body returns, the value against the return annotation
   ("Expected to return an instance of ...")

Usage:
    from typeassert import typechecked, string, number

    @typechecked
    def repeat(text: string, times: number) -> string:
        return text * times

    @typechecked
    async def fetch_count(name: string) -> number:
        ...
"""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from typing import (
    Callable, Optional, Final,
    Dict, List, Tuple, Any
)
import dataclasses
import functools
import inspect
import logging

## ===== LOCAL ===== ##
from .config import (
    _RETURN_ANNOTATION, _TYPECHECKED_MARKER,
    _IGNORE_MARKER, _SELF_NAMES
)
from .error_utils import ordinal
from .type_utils import _assert_arguments, return_type
from .logging import _log

# ===== GLOBALS ===== #

## ===== EXPORTS ===== ##
__all__: Final[List[str]] = ['typechecked', 'ignore']

# ===== CLASSES ===== #

@dataclasses.dataclass(frozen=True)
class _CheckPlan:
    """Annotations of a decorated function, resolved once on first call.

    Attributes:
        signature (inspect.Signature): The function's signature with string annotations evaluated.
        arguments (Dict[str, Any]): Parameter name -> expected type, for checked parameters only.
        returns (Optional[Any]): Expected return type, or None when the return is unchecked.
        skip_first (bool): Whether the first parameter is self/cls and not numbered.
    """
    signature: inspect.Signature
    arguments: Dict[str, Any]
    returns: Optional[Any]
    skip_first: bool

# ===== FUNCTIONS ===== #

## ===== FUNCTION INFO ===== ##
def _get_func_info(func: Callable) -> Dict[str, Any]:
    """Collect the name and location of a decorated function for log lines."""
    try:
        first_line = func.__code__.co_firstlineno
    except AttributeError:
        first_line = 'unknown'
    return {
        'func_name': getattr(func, '__qualname__', getattr(func, '__name__', 'unknown')),
        'func_module': getattr(func, '__module__', 'unknown'),
        'func_lineno': first_line,
    }

def _is_unchecked(annotation: Any) -> bool:
    return annotation is inspect.Parameter.empty or annotation is Any

def _build_check_plan(func: Callable) -> _CheckPlan:
    """Resolve a function's annotations into the checks its wrapper runs."""
    sig = inspect.signature(func, eval_str=True)
    params = list(sig.parameters.items())
    skip_first = bool(params) and params[0][0] in _SELF_NAMES

    arguments = {}
    for index, (name, param) in enumerate(params):
        if index == 0 and skip_first:
            continue
        if _is_unchecked(param.annotation):
            continue
        arguments[name] = param.annotation

    returns = None if _is_unchecked(sig.return_annotation) else sig.return_annotation
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE decorator._build_check_plan: {getattr(func, '__qualname__', func)!r}: arguments={list(arguments)}, checks {_RETURN_ANNOTATION}={returns is not None}")
    return _CheckPlan(signature=sig, arguments=arguments, returns=returns, skip_first=skip_first)

## ===== ARGUMENT CHECKING ===== ##
def _label_arguments(plan: _CheckPlan, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> List[Tuple[str, Any, Any]]:
    """Pair every checked argument value with its position label and expected type.

    Positional parameters (including each ``*args`` item) are numbered 1st,
    2nd... in call order; keyword-only parameters and ``**kwargs`` items are
    labelled by name.

    Raises:
        TypeError: If the call does not bind to the signature.
    """
    bound = plan.signature.bind(*args, **kwargs)
    bound.apply_defaults()

    labelled = []
    position = 0
    for index, (name, param) in enumerate(plan.signature.parameters.items()):
        if index == 0 and plan.skip_first:
            continue
        expected = plan.arguments.get(name)
        value = bound.arguments.get(name)

        if param.kind == param.VAR_POSITIONAL:
            for item in value or ():
                position += 1
                if expected is not None:
                    labelled.append((ordinal(position), item, expected))
        elif param.kind == param.VAR_KEYWORD:
            if expected is not None:
                for key, item in (value or {}).items():
                    labelled.append((f"'{key}'", item, expected))
        elif param.kind == param.KEYWORD_ONLY:
            if expected is not None:
                labelled.append((f"'{name}'", value, expected))
        else:
            position += 1
            if expected is not None:
                labelled.append((ordinal(position), value, expected))
    return labelled

def _check_arguments(plan: _CheckPlan, args: Tuple[Any, ...], kwargs: Dict[str, Any], func_info: Dict[str, Any]) -> None:
    if not plan.arguments:
        return
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE decorator._check_arguments: Checking arguments of '{func_info['func_name']}' ({func_info['func_module']}:{func_info['func_lineno']})")
    _assert_arguments(_label_arguments(plan, args, kwargs))

## ===== RETURN VALUE CHECKING ===== ##
def _check_return_value(plan: _CheckPlan, result: Any, func_info: Dict[str, Any]) -> Any:
    if plan.returns is None:
        return result
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE decorator._check_return_value: Checking return value of '{func_info['func_name']}'")
    return return_type(result, plan.returns)

## ===== PUBLIC DECORATORS ===== ##
def ignore(func: Callable) -> Callable:
    """Mark a function so that @typechecked leaves it unwrapped."""
    setattr(func, _IGNORE_MARKER, True)
    return func

def typechecked(func: Callable) -> Callable:
    """Decorator enforcing a function's annotations at every call.

    Raises TypeAssertionError (cause ``'argument'``) before the body runs if
    any annotated argument does not match, and (cause ``'return'``) after it
    returns if the result does not match the return annotation. Coroutine
    functions are checked on the awaited result.
    """
    if getattr(func, _IGNORE_MARKER, False) or getattr(func, _TYPECHECKED_MARKER, False):
        return func

    func_info = _get_func_info(func)
    plan: Optional[_CheckPlan] = None

    def _get_plan() -> _CheckPlan:
        # Resolved on first call so annotations may name types defined later
        nonlocal plan
        if plan is None:
            plan = _build_check_plan(func)
        return plan

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def _async_wrapper(*args, **kwargs):
            current = _get_plan()
            _check_arguments(current, args, kwargs, func_info)
            result = await func(*args, **kwargs)
            return _check_return_value(current, result, func_info)
        wrapper = _async_wrapper
    else:
        @functools.wraps(func)
        def _sync_wrapper(*args, **kwargs):
            current = _get_plan()
            _check_arguments(current, args, kwargs, func_info)
            result = func(*args, **kwargs)
            return _check_return_value(current, result, func_info)
        wrapper = _sync_wrapper

    setattr(wrapper, _TYPECHECKED_MARKER, True)
    return wrapper
