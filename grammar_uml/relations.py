"""
Relationship lines between diagram classes.

Every element that names another rule or type yields at most one line:

- assignment to a parser rule     Owner "m" <arrow> "feature" Target
- assignment to a cross-reference Declared "m" <arrow> "feature" Owner
- bare parser rule call           Owner "m" *-- Target
- bare cross-reference            Owner "m" --> Declared
- action                          Type "m" <|--- ["feature"] Owner
- alias rule (``A: B;``)          A *-- B

Calls to terminal rules are attributes, not relationships. References the
linker left unresolved produce no line.
"""

from typing import Any, Optional

from grammar_uml.cardinality import format_multiplicity
from grammar_uml.containment import owner_class_name
from grammar_uml.dispatch import ElementVisitor
from grammar_uml.grammar_ast import (
    COMPOUND_TYPES, Action, Assignment, CrossReference, InvariantViolation,
    ParserRule, RuleCall, TerminalRule,
)
from grammar_uml.writer import DiagramWriter

COMPOSITION = "*--"
AGGREGATION = "o--"
ASSOCIATION = "-->"
INHERITANCE = "<|---"


def arrow_kind(element: Any) -> str:
    """Relationship arrow for the element that makes the reference."""
    if isinstance(element, Assignment):
        return AGGREGATION if element.operator == '=' else COMPOSITION
    if isinstance(element, Action):
        return INHERITANCE
    if isinstance(element, CrossReference):
        return ASSOCIATION
    if isinstance(element, RuleCall):
        return COMPOSITION
    raise InvariantViolation(f"No arrow kind for {type(element).__name__}")


def relationship_line(source: str, multiplicity: Optional[str], arrow: str,
                      target: str, feature: Optional[str] = None) -> str:
    parts = [source]
    if multiplicity:
        parts.append(multiplicity)
    parts.append(arrow)
    if feature:
        parts.append(f'"{feature}"')
    parts.append(target)
    return " ".join(parts) + "\n"


def _parser_rule_target(call: RuleCall) -> Optional[ParserRule]:
    target = call.rule.ref
    return target if isinstance(target, ParserRule) else None


def _cross_reference_target(xref: CrossReference) -> Optional[str]:
    """Declared type name of a cross-reference, or None if it cannot be drawn."""
    if not xref.type.resolved:
        return None
    terminal = xref.terminal
    if isinstance(terminal, RuleCall) and not isinstance(terminal.rule.ref, (ParserRule, TerminalRule)):
        return None
    return xref.type.ref.name


class _RelationshipCollector(ElementVisitor):

    def __init__(self, writer: DiagramWriter):
        self.writer = writer

    def visit_assignment(self, element: Assignment) -> None:
        self._assigned(element, element.terminal)

    def _assigned(self, assignment: Assignment, terminal: Any) -> None:
        if isinstance(terminal, RuleCall):
            target = _parser_rule_target(terminal)
            if target is None:
                return
            self.writer.append(relationship_line(
                owner_class_name(assignment), format_multiplicity(assignment),
                arrow_kind(assignment), target.name, assignment.feature,
            ))
        elif isinstance(terminal, CrossReference):
            declared = _cross_reference_target(terminal)
            if declared is None:
                return
            self.writer.append(relationship_line(
                declared, format_multiplicity(assignment),
                arrow_kind(assignment), owner_class_name(assignment), assignment.feature,
            ))
        elif isinstance(terminal, COMPOUND_TYPES):
            for child in terminal.elements:
                self._assigned(assignment, child)

    def visit_rule_call(self, element: RuleCall) -> None:
        target = _parser_rule_target(element)
        if target is None:
            return
        self.writer.append(relationship_line(
            owner_class_name(element), format_multiplicity(element),
            arrow_kind(element), target.name,
        ))

    def visit_cross_reference(self, element: CrossReference) -> None:
        declared = _cross_reference_target(element)
        if declared is None:
            return
        self.writer.append(relationship_line(
            owner_class_name(element), format_multiplicity(element),
            arrow_kind(element), declared,
        ))

    def visit_action(self, element: Action) -> None:
        type_name = element.type_name
        if type_name is None:
            return
        self.writer.append(relationship_line(
            type_name, format_multiplicity(element),
            arrow_kind(element), owner_class_name(element), element.feature,
        ))


def emit_relationships(rule: Any, writer: DiagramWriter) -> None:
    """Write every relationship line found in ``rule``'s body."""
    if not isinstance(rule, ParserRule) or rule.definition is None:
        return
    definition = rule.definition
    if isinstance(definition, RuleCall):
        target = _parser_rule_target(definition)
        if target is not None:
            writer.append(relationship_line(rule.name, None, arrow_kind(definition), target.name))
        return
    _RelationshipCollector(writer).visit(definition)
