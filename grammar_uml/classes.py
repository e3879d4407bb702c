"""Class blocks: one per parser rule, one attribute line per terminal assignment."""

from typing import Any

from grammar_uml.dispatch import ElementVisitor
from grammar_uml.grammar_ast import Assignment, ParserRule, RuleCall, TerminalRule
from grammar_uml.writer import DiagramWriter


def attribute_line(assignment: Assignment) -> str:
    """``feature<op>Terminal`` for an assignment to a terminal rule, else ''."""
    terminal = assignment.terminal
    if not isinstance(terminal, RuleCall) or not isinstance(terminal.rule.ref, TerminalRule):
        return ""
    return f"{assignment.feature}{assignment.operator}{terminal.rule.ref.name}\n"


class _AttributeCollector(ElementVisitor):
    # Nested groups and alternatives belong to the same class.

    def __init__(self, writer: DiagramWriter):
        self.writer = writer

    def visit_assignment(self, element: Assignment) -> None:
        line = attribute_line(element)
        if line:
            self.writer.append(line)


def emit_class(rule: Any, writer: DiagramWriter) -> bool:
    """Write the class block for ``rule``. Returns False when the rule yields none."""
    if not isinstance(rule, ParserRule) or rule.definition is None:
        return False
    writer.append(f"class {rule.name} {{\n")
    _AttributeCollector(writer).visit(rule.definition)
    writer.append("}\n")
    return True
