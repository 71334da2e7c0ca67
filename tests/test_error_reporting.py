# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
import threading
import sys

## ===== THIRD-PARTY ===== ##
import pytest

## ===== LOCAL ===== ##
from typeassert import (
    type_check, define, fail, that, structure, is_,
    string, number,
    FailureNode, TypeAssertionError, ValidatorContextError,
    UNDEFINED, render_value, format_failures, ordinal
)
from typeassert.config import MAX_RENDER_DEPTH
from typeassert.type_utils import check_depth_limit

# ===== MOCKS ===== #
class _Plain:
    pass

class _WithRepr:
    def __repr__(self):
        return "WithRepr()"

class _BrokenRepr:
    __slots__ = ()
    def __repr__(self):
        raise RuntimeError("no repr for you")

def _named_function():
    pass

# ===== TESTS ===== #
class TestRenderValue:
    """Tests for the literal form values take in diagnostics."""

    @pytest.mark.parametrize("value, expected", [
        ("xxx", '"xxx"'),
        ('say "hi"', '"say "hi""'),
        (123, "123"),
        (1.5, "1.5"),
        (True, "true"),
        (False, "false"),
        (None, "null"),
        (UNDEFINED, "undefined"),
        ([], "[]"),
        (["aaa", True], '["aaa", true]'),
        ((1, 2), "[1, 2]"),
        ({}, "{}"),
        ({"name": "Vojta", "age": True}, '{name: "Vojta", age: true}'),
        ({1: "one"}, '{1: "one"}'),
        ({"a": [1, {"b": None}]}, '{a: [1, {b: null}]}'),
    ])
    def test_literals(self, value, expected):
        assert render_value(value) == expected

    def test_classes_and_functions_render_by_name(self):
        assert render_value(_Plain) == "_Plain"
        assert render_value(_named_function) == "_named_function"
        assert render_value(len) == "len"

    def test_objects_with_default_repr_render_attributes(self):
        obj = _Plain()
        obj.size = 3
        assert render_value(obj) == "_Plain {size: 3}"
        assert render_value(_Plain()) == "_Plain {}"

    def test_custom_repr_is_used(self):
        assert render_value(_WithRepr()) == "WithRepr()"

    def test_failing_repr_does_not_raise(self):
        assert render_value(_BrokenRepr()) == "<_BrokenRepr>"

    def test_cyclic_list(self):
        items = [1]
        items.append(items)
        assert render_value(items) == "[1, [Circular]]"

    def test_cyclic_dict(self):
        node = {"name": "a"}
        node["self"] = node
        assert render_value(node) == '{name: "a", self: [Circular]}'

    def test_shared_reference_is_not_circular(self):
        shared = [1]
        assert render_value([shared, shared]) == "[[1], [1]]"

    def test_deep_nesting_is_cut(self):
        value = current = []
        for _ in range(MAX_RENDER_DEPTH + 2):
            inner = []
            current.append(inner)
            current = inner
        rendered = render_value(value)
        assert rendered.count("[...]") == 1
        assert rendered.startswith("[" * MAX_RENDER_DEPTH)

    def test_rendering_is_stable(self):
        value = {"a": [1, 2], "b": _Plain()}
        assert render_value(value) == render_value(value)


class TestFormatFailures:

    def test_leaves(self):
        nodes = [FailureNode("first"), FailureNode("second")]
        assert format_failures(nodes) == "\n  - first\n  - second"

    def test_nesting_adds_two_spaces_per_level(self):
        tree = [FailureNode("a", (FailureNode("b", (FailureNode("c"),)), FailureNode("d")))]
        assert format_failures(tree) == "\n  - a\n    - b\n      - c\n    - d"

    def test_empty(self):
        assert format_failures([]) == ""


class TestOrdinal:

    @pytest.mark.parametrize("position, expected", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (5, "5th"),
        (10, "10th"), (11, "11th"), (12, "12th"), (13, "13th"),
        (21, "21st"), (22, "22nd"), (23, "23rd"), (24, "24th"),
        (101, "101st"), (111, "111th"), (112, "112th"),
    ])
    def test_ordinal(self, position, expected):
        assert ordinal(position) == expected


class TestTypeAssertionError:

    def test_is_a_type_error(self):
        with pytest.raises(TypeError):
            type_check(1, string)

    def test_carries_failure_tree_and_cause(self):
        User = define('MyUser', lambda value: that(value).is_(structure({'name': string})))
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check({'name': 1}, User)

        error = exc_info.value
        assert error.cause == 'value'
        assert error.failure == FailureNode(
            'Expected an instance of MyUser, got {name: 1}!',
            (FailureNode('{name: 1} is not instance of object with properties name',
                         (FailureNode('1 is not instance of string'),)),)
        )

    def test_custom_template(self):
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check('x', number, template="Config value must be {expected}, not {actual}")
        assert str(exc_info.value) == 'Config value must be number, not "x"'


class TestValidatorErrors:

    def test_exception_message_becomes_single_reason(self):
        def validator(value):
            raise ValueError('bad value')
        Thing = define('Thing', validator)
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check({}, Thing)
        assert str(exc_info.value) == "Expected an instance of Thing, got {}!\n  - bad value"
        assert len(exc_info.value.failure.children) == 1

    def test_key_error_message_is_not_quoted(self):
        Thing = define('Thing', lambda value: value['id'])
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check({}, Thing)
        assert str(exc_info.value) == "Expected an instance of Thing, got {}!\n  - id"

    def test_validator_with_optional_parameter_is_called_with_value_only(self):
        def within(value, limit=10):
            return value <= limit
        Small = define('Small', within)
        assert type_check(5, Small) == 5
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check(11, Small)
        assert str(exc_info.value) == 'Expected an instance of Small, got 11!'

    def test_nested_type_check_error_is_wrapped(self):
        Wrapper = define('Wrapper', lambda value: type_check(value, number))
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check('a', Wrapper)
        assert str(exc_info.value) == ('Expected an instance of Wrapper, got "a"!\n'
                                       '  - Expected an instance of number, got "a"!')

    def test_invalid_member_type_is_reported_inside_validator(self):
        Broken = define('Broken', lambda value: that(value).is_(42))
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check(1, Broken)
        assert "is not a type descriptor" in str(exc_info.value)

    def test_invalid_top_level_descriptor_raises_type_error(self):
        with pytest.raises(TypeError) as exc_info:
            type_check(1, 42)
        assert not isinstance(exc_info.value, TypeAssertionError)

    def test_fail_outside_validator(self):
        with pytest.raises(ValidatorContextError):
            fail('nope')

    def test_that_outside_validator(self):
        with pytest.raises(ValidatorContextError):
            that(1).is_(number)

    def test_context_stack_is_unwound_after_failure(self):
        Thing = define('Thing', lambda value: False)
        with pytest.raises(TypeAssertionError):
            type_check(1, Thing)
        with pytest.raises(ValidatorContextError):
            fail('still outside')


class TestRecursionGuard:

    @staticmethod
    def _linked_node():
        Node = define('Node', lambda value: None)
        Node.validator = lambda value: that(value).is_(structure({'next': is_(Node, type(None))}))
        return Node

    def test_cyclic_value_terminates_with_cycle_reason(self):
        Node = self._linked_node()
        cyclic = {}
        cyclic['next'] = cyclic
        with pytest.raises(TypeAssertionError) as exc_info:
            type_check(cyclic, Node)

        assert str(exc_info.value) == ('Expected an instance of Node, got {next: [Circular]}!\n'
                                       '  - {next: [Circular]} is not instance of object with properties next\n'
                                       '    - {next: [Circular]} is not instance of Node/NoneType\n'
                                       '      - {next: [Circular]} is not instance of Node\n'
                                       '        - {next: [Circular]} is already being checked against Node\n'
                                       '      - {next: [Circular]} is not instance of NoneType')

    def test_long_valid_chain_passes(self):
        Node = self._linked_node()
        chain = None
        for _ in range(100):
            chain = {'next': chain}

        # Each link nests three validators (Node, structure, union)
        original_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(original_limit, 10000))
        try:
            assert type_check(chain, Node) is chain
        finally:
            sys.setrecursionlimit(original_limit)

    def test_same_value_under_different_descriptors_is_not_a_cycle(self):
        Inner = define('Inner', lambda value: that(value).is_(number))
        Outer = define('Outer', lambda value: that(value).is_(Inner))
        assert type_check(5, Outer) == 5

    def test_unbounded_recursion_hits_depth_backstop(self):
        Counter = define('Counter', lambda value: None)
        Counter.validator = lambda value: that(value + 1).is_(Counter)

        with pytest.raises(TypeAssertionError) as exc_info:
            type_check(0, Counter)
        assert str(exc_info.value).endswith(f'- maximum check depth of {check_depth_limit()} exceeded')


class TestThreadIsolation:

    def test_concurrent_validators_report_only_their_own_reasons(self):
        barrier = threading.Barrier(2, timeout=5)
        messages = {}

        def validator(value):
            fail(f'{value} first')
            # Both validators are running when the second reasons are recorded
            barrier.wait()
            fail(f'{value} second')

        Tagged = define('Tagged', validator)

        def worker(name):
            try:
                type_check(name, Tagged)
            except TypeAssertionError as e:
                messages[name] = str(e)

        threads = [threading.Thread(target=worker, args=(name,)) for name in ('left', 'right')]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert messages == {
            'left': 'Expected an instance of Tagged, got "left"!\n  - left first\n  - left second',
            'right': 'Expected an instance of Tagged, got "right"!\n  - right first\n  - right second',
        }

    def test_fail_in_another_thread_does_not_see_running_validator(self):
        errors = []

        def attempt():
            try:
                fail('from elsewhere')
            except ValidatorContextError as e:
                errors.append(e)

        def validator(value):
            thread = threading.Thread(target=attempt)
            thread.start()
            thread.join()

        Quiet = define('Quiet', validator)
        assert type_check(1, Quiet) == 1
        assert len(errors) == 1
