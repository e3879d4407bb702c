import pytest

from builders import call, placeholder
from grammar_uml.cardinality import cardinality_marks, compute_multiplicity, format_multiplicity
from grammar_uml.compiler import compile_rules
from grammar_uml.grammar_ast import Action, Alternatives, Assignment, Group, Keyword, ParserRule

TARGET = placeholder("Target")


def in_rule(definition):
    ParserRule(name="Owner", definition=definition)
    return definition


def test_default_is_one_to_one():
    rc = call(TARGET)
    in_rule(Group([Keyword("x"), rc]))
    assert format_multiplicity(rc) == '"1..1"'


def test_plus_assign_is_one_to_many():
    a = in_rule(Assignment("items", "+=", call(TARGET)))
    assert format_multiplicity(a) == '"1..*"'


def test_optional_mark_lowers_only_the_lower_bound():
    a = in_rule(Assignment("item", "=", call(TARGET), cardinality="?"))
    assert format_multiplicity(a) == '"0..1"'


def test_star_mark_raises_only_the_upper_bound():
    a = in_rule(Assignment("item", "=", call(TARGET), cardinality="*"))
    assert format_multiplicity(a) == '"1..*"'


def test_plus_mark_alone():
    a = in_rule(Assignment("item", "=", call(TARGET), cardinality="+"))
    assert format_multiplicity(a) == '"1..*"'


def test_enclosing_group_mark_applies():
    a = Assignment("item", "=", call(TARGET))
    in_rule(Group([Keyword("("), Group([a], cardinality="*")]))
    assert format_multiplicity(a) == '"1..*"'


def test_enclosing_alternatives_mark_applies():
    a = Assignment("item", "=", call(TARGET))
    in_rule(Alternatives([a, Keyword("none")], cardinality="?"))
    assert format_multiplicity(a) == '"0..1"'


def test_inner_unmarked_group_shadows_outer_group():
    a = Assignment("item", "=", call(TARGET))
    in_rule(Group([Group([a])], cardinality="*"))
    assert format_multiplicity(a) == '"1..1"'


def test_rule_call_picks_up_enclosing_assignment_operator():
    rc = call(TARGET)
    in_rule(Group([Assignment("items", "+=", rc)]))
    assert cardinality_marks(rc) == [None, "+=", None]
    assert format_multiplicity(rc) == '"1..*"'


def test_action_operator_counts():
    action = Action(inferred_type="List", feature="items", operator="+=")
    in_rule(Group([call(TARGET), action]))
    assert format_multiplicity(action) == '"1..*"'


@pytest.mark.parametrize("own, operator, group, expected", [
    ("?", "=", "*", ("0", "*")),
    ("*", "=", "?", ("0", "*")),
    ("?", "+=", None, ("0", "*")),
    (None, "+=", "?", ("0", "*")),
    ("+", "=", "?", ("0", "*")),
    ("?", "=", "?", ("0", "1")),
    ("*", "+=", "*", ("1", "*")),
])
def test_nested_optional_and_repeated_signals_accumulate(own, operator, group, expected):
    a = Assignment("f", operator, call(TARGET), cardinality=own)
    in_rule(Group([Group([a], cardinality=group)]))
    assert compute_multiplicity(a) == expected


@pytest.mark.parametrize("operator", ["=", "+=", "?="])
@pytest.mark.parametrize("group", [None, "?", "*", "+"])
def test_optional_mark_never_raises_upper_bound(operator, group):
    plain = Assignment("f", operator, call(TARGET))
    optional = Assignment("f", operator, call(TARGET), cardinality="?")
    in_rule(Group([Group([plain, optional], cardinality=group)]))
    assert compute_multiplicity(optional)[1] == compute_multiplicity(plain)[1]
    assert compute_multiplicity(optional)[0] == "0"


@pytest.mark.parametrize("own, operator", [("*", "="), (None, "+="), ("+", "?=")])
def test_repetition_never_leaves_upper_bound_at_one(own, operator):
    a = in_rule(Assignment("f", operator, call(TARGET), cardinality=own))
    assert compute_multiplicity(a)[1] == "*"


@pytest.mark.parametrize("alternatives_mark, group_mark, expected", [
    (None, "*", '"1..*"'),
    (None, "?", '"0..1"'),
    (None, None, '"1..1"'),
    ("?", "*", '"0..1"'),
    ("*", None, '"1..*"'),
])
def test_unmarked_alternatives_are_looked_through(alternatives_mark, group_mark, expected):
    # R: ('.' (a=A | b=B))*
    a = Assignment("a", "=", call(placeholder("A")))
    b = Assignment("b", "=", call(placeholder("B")))
    in_rule(Group([Keyword("."), Alternatives([a, b], cardinality=alternatives_mark)], cardinality=group_mark))
    assert format_multiplicity(a) == expected
    assert format_multiplicity(b) == expected


def test_repeated_group_around_alternatives_compiles_to_many():
    rule = ParserRule(name="R", definition=Group([
        Keyword("."),
        Alternatives([Assignment("a", "=", call(placeholder("A"))), Assignment("b", "=", call(placeholder("B")))]),
    ], cardinality="*"))
    assert compile_rules([rule]) == (
        '@startuml\nclass R {\n}\nR "1..*" o-- "a" A\nR "1..*" o-- "b" B\n@enduml\n'
    )
