#!/usr/bin/env python3
"""
Grammar to PlantUML Class Diagram Compiler

Projects the rules of a linked grammar onto a class diagram:
- one class block per parser rule, with terminal assignments as attributes
- one relationship line per reference to another rule or declared type
- multiplicities inferred from cardinality marks and assignment operators

The output is plain PlantUML text; rendering is left to PlantUML itself.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional

from grammar_uml.classes import emit_class
from grammar_uml.config import Settings, load_env
from grammar_uml.grammar_ast import Grammar, InvariantViolation, collect_rules, load_grammar
from grammar_uml.relations import emit_relationships
from grammar_uml.render import FORMATS, render_diagram
from grammar_uml.writer import DiagramWriter


def compile_rules(rules: Iterable[Any], verbose: bool = False,
                  writer: Optional[DiagramWriter] = None) -> str:
    """Compile a rule collection into PlantUML text.

    Class blocks come first, in rule order, followed by relationship lines in
    rule order. The same rules always produce the same text. Pass a ``writer``
    to keep the finished document around, e.g. to ``save`` it.
    """
    rules = list(rules)
    if writer is None:
        writer = DiagramWriter()
    writer.reset()

    if verbose:
        print(f"[uml] rules: {', '.join(r.name for r in rules)}", file=sys.stderr)

    for rule in rules:
        if emit_class(rule, writer) and verbose:
            print(f"[uml] class {rule.name}", file=sys.stderr)

    for rule in rules:
        emit_relationships(rule, writer)

    return writer.finish()


def compile_grammar(grammar: Grammar, include_imports: bool = True,
                    verbose: bool = False,
                    writer: Optional[DiagramWriter] = None) -> Optional[str]:
    """Compile a whole grammar; returns None if the grammar has errors."""
    if grammar.has_errors:
        if verbose:
            print(f"[uml] {grammar.name}: has errors, no diagram", file=sys.stderr)
        return None
    rules: List[Any] = collect_rules(grammar, include_imports=include_imports)
    return compile_rules(rules, verbose=verbose, writer=writer)


# ──────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_GRAMMAR_ERRORS = 2
EXIT_INTERNAL = 3


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    parser = argparse.ArgumentParser(description='Grammar to PlantUML class diagram compiler')
    sub = parser.add_subparsers(dest='command')

    comp = sub.add_parser('compile', help='Compile a serialized grammar (.json) to PlantUML')
    comp.add_argument('file', help='Path to the grammar .json')
    comp.add_argument('--output', '-o', help='Output .pu path (default: print to stdout)')
    comp.add_argument('--no-imports', action='store_true', help='Ignore imported grammars')
    comp.add_argument('--render', action='store_true', help='Render the .pu file with PlantUML')
    comp.add_argument('--format', default='png', choices=FORMATS, help='Render format')
    comp.add_argument('--verbose', '-v', action='store_true', help='List compiled rules on stderr')

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return EXIT_OK

    if args.render and not args.output:
        parser.error("--render requires --output")

    verbose = args.verbose or settings.verbose
    input_path = Path(args.file)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return EXIT_BAD_INPUT

    writer = DiagramWriter()
    try:
        grammar = load_grammar(str(input_path))
        diagram = compile_grammar(grammar, include_imports=not args.no_imports,
                                  verbose=verbose, writer=writer)
    except ValueError as exc:
        print(f"Error: {input_path}: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except InvariantViolation as exc:
        print(f"Internal error: {exc}", file=sys.stderr)
        return EXIT_INTERNAL

    if diagram is None:
        print(f"Error: {input_path} has errors, no diagram generated", file=sys.stderr)
        return EXIT_GRAMMAR_ERRORS

    if not args.output:
        sys.stdout.write(diagram)
        return EXIT_OK

    try:
        out = writer.save(args.output)
    except OSError as exc:
        print(f"Error: cannot write {args.output}: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    print(f"  Diagram written to {out}", file=sys.stderr)

    if args.render:
        ok, message = render_diagram(
            str(out), fmt=args.format,
            command=settings.plantuml_cmd, timeout=settings.plantuml_timeout,
        )
        if not ok:
            print(f"Error: {message}", file=sys.stderr)
            return EXIT_BAD_INPUT
        print(f"  Rendered {message}", file=sys.stderr)

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
