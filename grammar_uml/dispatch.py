"""Routes rule-body elements to per-kind handlers."""

from typing import Any, Dict

from grammar_uml.grammar_ast import (
    Action, Alternatives, Assignment, CrossReference, Group, InvariantViolation,
    Keyword, RuleCall,
)

_HANDLERS: Dict[type, str] = {
    Keyword: 'visit_keyword',
    Assignment: 'visit_assignment',
    CrossReference: 'visit_cross_reference',
    RuleCall: 'visit_rule_call',
    Alternatives: 'visit_alternatives',
    Group: 'visit_group',
    Action: 'visit_action',
}


def handler_name(element: Any) -> str:
    """Name of the visitor method for an element; unknown kinds are fatal."""
    for klass in type(element).__mro__:
        name = _HANDLERS.get(klass)
        if name is not None:
            return name
    raise InvariantViolation(f"Unsupported grammar element: {type(element).__name__}")


class ElementVisitor:
    """Base traversal over a rule body.

    Compound elements are walked child by child in declaration order, so
    whatever a subclass emits follows the order of the grammar source.
    Leaf handlers do nothing unless overridden.
    """

    def visit(self, element: Any) -> None:
        getattr(self, handler_name(element))(element)

    def visit_children(self, element: Any) -> None:
        for child in element.elements:
            self.visit(child)

    def visit_group(self, element: Group) -> None:
        self.visit_children(element)

    def visit_alternatives(self, element: Alternatives) -> None:
        self.visit_children(element)

    def visit_keyword(self, element: Keyword) -> None:
        pass

    def visit_assignment(self, element: Assignment) -> None:
        pass

    def visit_cross_reference(self, element: CrossReference) -> None:
        pass

    def visit_rule_call(self, element: RuleCall) -> None:
        pass

    def visit_action(self, element: Action) -> None:
        pass
