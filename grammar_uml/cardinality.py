"""
Multiplicity inference for relationship lines.

Signals are gathered from up to three levels: the element's own cardinality
mark, the operator of the element (or of its nearest enclosing assignment),
and the mark of the nearest enclosing group. Alternatives without a mark of
their own are looked through on the way up. Signals accumulate: ``?`` lowers
the bound to 0, any of ``*``, ``+`` or ``+=`` raises the upper bound to ``*``.
No signal can undo another, so the merge is order-independent.
"""

from typing import Any, List, Optional, Tuple

from grammar_uml.containment import nearest_enclosing
from grammar_uml.grammar_ast import RULE_TYPES, Action, Alternatives, Assignment, Group

MANY_MARKS = ('*', '+', '+=')
OPTIONAL_MARKS = ('?',)


def enclosing_group(element: Any) -> Optional[Any]:
    """Nearest enclosing Group; an Alternatives counts only when it carries a mark."""
    node = element.container
    while node is not None and not isinstance(node, RULE_TYPES):
        if isinstance(node, Group):
            return node
        if isinstance(node, Alternatives) and node.cardinality:
            return node
        node = getattr(node, 'container', None)
    return None


def cardinality_marks(element: Any) -> List[Optional[str]]:
    """Collect the raw cardinality signals that apply to ``element``."""
    marks: List[Optional[str]] = [getattr(element, 'cardinality', None)]

    if isinstance(element, (Assignment, Action)):
        marks.append(element.operator)
    else:
        assignment = nearest_enclosing(element, Assignment)
        if assignment is not None:
            marks.append(assignment.operator)

    group = enclosing_group(element)
    if group is not None:
        marks.append(group.cardinality)

    return marks


def compute_multiplicity(element: Any) -> Tuple[str, str]:
    marks = cardinality_marks(element)
    lower = '0' if any(m in OPTIONAL_MARKS for m in marks) else '1'
    upper = '*' if any(m in MANY_MARKS for m in marks) else '1'
    return lower, upper


def format_multiplicity(element: Any) -> str:
    """Quoted ``"lo..hi"`` range, as written on a relationship line."""
    lower, upper = compute_multiplicity(element)
    return f'"{lower}..{upper}"'
