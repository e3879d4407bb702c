"""Upward walks over the ``container`` chain of grammar elements."""

from typing import Any, Optional, Tuple, Type, Union

from grammar_uml.grammar_ast import RULE_TYPES, InvariantViolation

Kinds = Union[Type, Tuple[Type, ...]]


def owner_rule(element: Any) -> Any:
    """Return the innermost rule that contains ``element``."""
    node = element.container
    while node is not None:
        if isinstance(node, RULE_TYPES):
            return node
        node = getattr(node, 'container', None)
    raise InvariantViolation(
        f"{type(element).__name__} is not contained in any rule"
    )


def owner_class_name(element: Any) -> str:
    """Name of the diagram class an element belongs to."""
    return owner_rule(element).name


def nearest_enclosing(element: Any, kinds: Kinds) -> Optional[Any]:
    """Closest ancestor of the given kind(s), looking no further than the owning rule."""
    node = element.container
    while node is not None and not isinstance(node, RULE_TYPES):
        if isinstance(node, kinds):
            return node
        node = getattr(node, 'container', None)
    return None
