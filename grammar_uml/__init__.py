"""Grammar to class diagram compiler.

Turns the rules of a parsed, linked grammar into a PlantUML class diagram:
classes for parser rules, attributes for terminal assignments, and
composition/aggregation/association/inheritance lines between rules.
"""

from grammar_uml.compiler import compile_grammar, compile_rules
from grammar_uml.grammar_ast import InvariantViolation, from_json, load_grammar

__all__ = [
    "compile_rules",
    "compile_grammar",
    "from_json",
    "load_grammar",
    "InvariantViolation",
]
