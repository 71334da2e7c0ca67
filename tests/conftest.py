import logging
import pytest

from typeassert import logger as typeassert_logger
from typeassert.type_utils import _ACTIVE_CONTEXTS, _accepts_context_cached


@pytest.fixture(scope="function", autouse=True)
def configure_typeassert_logging():
    """Run every test with the typeassert logger at DEBUG so TRACE lines are exercised."""
    original_level = typeassert_logger.level
    typeassert_logger.setLevel(logging.DEBUG)
    yield
    typeassert_logger.setLevel(original_level)


@pytest.fixture(scope="function", autouse=True)
def clear_state():
    """Clears the validator arity cache and any leftover active contexts before each test."""
    _accepts_context_cached.cache_clear()
    if hasattr(_ACTIVE_CONTEXTS, 'stack'):
        del _ACTIVE_CONTEXTS.stack
    yield
