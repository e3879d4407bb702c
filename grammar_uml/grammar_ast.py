"""
Grammar AST: read-only view of a parsed, linked grammar.

Mirrors the node set of the grammar framework (parser rules, terminal rules,
declared types and the elements of rule bodies). Every element keeps a
``container`` back-link so the owning rule can be found by walking upward.

Nodes are normally produced by ``from_json`` / ``load_grammar`` from the
framework's JSON serialization; tests and callers may also build them
directly, the constructors link containers automatically.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional


class InvariantViolation(RuntimeError):
    """The AST handed to the compiler broke its structural contract."""


# ──────────────────────────────────────────────────────────────────
# References
# ──────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Reference:
    text: str
    ref: Any = None

    @property
    def resolved(self) -> bool:
        return self.ref is not None


# ──────────────────────────────────────────────────────────────────
# Rule body elements
# ──────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Keyword:
    value: str
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)


@dataclass(eq=False)
class RuleCall:
    rule: Reference
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)


@dataclass(eq=False)
class CrossReference:
    type: Reference
    terminal: Any = None
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)

    def __post_init__(self):
        if self.terminal is not None:
            self.terminal.container = self


@dataclass(eq=False)
class Assignment:
    feature: str
    operator: str
    terminal: Any
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)

    def __post_init__(self):
        if self.terminal is not None:
            self.terminal.container = self


@dataclass(eq=False)
class Alternatives:
    elements: List[Any] = field(default_factory=list)
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)

    def __post_init__(self):
        for element in self.elements:
            element.container = self


@dataclass(eq=False)
class Group:
    elements: List[Any] = field(default_factory=list)
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)

    def __post_init__(self):
        for element in self.elements:
            element.container = self


@dataclass(eq=False)
class Action:
    type: Optional[Reference] = None
    inferred_type: Optional[str] = None
    feature: Optional[str] = None
    operator: Optional[str] = None
    cardinality: Optional[str] = None
    container: Any = field(default=None, repr=False)

    @property
    def type_name(self) -> Optional[str]:
        """Name of the type this action instantiates, if known."""
        if self.inferred_type:
            return self.inferred_type
        if self.type is not None and self.type.resolved:
            return self.type.ref.name
        return None


ELEMENT_TYPES = (Keyword, Assignment, CrossReference, RuleCall, Alternatives, Group, Action)
COMPOUND_TYPES = (Group, Alternatives)


# ──────────────────────────────────────────────────────────────────
# Rules, types, grammars
# ──────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class ParserRule:
    name: str
    definition: Any = None
    inferred_type: Optional[str] = None
    entry: bool = False
    fragment: bool = False
    container: Any = field(default=None, repr=False)

    def __post_init__(self):
        if self.definition is not None:
            self.definition.container = self


@dataclass(eq=False)
class TerminalRule:
    name: str
    regex: Optional[str] = None
    hidden: bool = False
    fragment: bool = False
    container: Any = field(default=None, repr=False)


@dataclass(eq=False)
class TypeDeclaration:
    name: str
    kind: str = "Interface"
    container: Any = field(default=None, repr=False)


RULE_TYPES = (ParserRule, TerminalRule)


@dataclass
class Diagnostic:
    severity: Any
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.severity in (1, "error", "Error")


@dataclass(eq=False)
class Grammar:
    name: str
    rules: List[Any] = field(default_factory=list)
    types: List[TypeDeclaration] = field(default_factory=list)
    imports: List["Grammar"] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    path: Optional[str] = None

    def __post_init__(self):
        for node in [*self.rules, *self.types]:
            node.container = self

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)


def resolve_transitive_imports(grammar: Grammar) -> List[Grammar]:
    """All grammars reachable through imports, breadth-first, each once."""
    seen = {id(grammar)}
    ordered: List[Grammar] = []
    queue = list(grammar.imports)
    while queue:
        current = queue.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        ordered.append(current)
        queue.extend(current.imports)
    return ordered


def collect_rules(grammar: Grammar, include_imports: bool = True) -> List[Any]:
    """Local rules first, then imported ones; the first rule of a name wins."""
    grammars = [grammar]
    if include_imports:
        grammars.extend(resolve_transitive_imports(grammar))

    names = set()
    rules: List[Any] = []
    for g in grammars:
        for rule in g.rules:
            if rule.name in names:
                continue
            names.add(rule.name)
            rules.append(rule)
    return rules


# ──────────────────────────────────────────────────────────────────
# JSON Deserialization
# ──────────────────────────────────────────────────────────────────

_REF_SEGMENT = re.compile(r'^(\w+)(?:@(\d+))?$')

ImportResolver = Callable[[str], Optional[Grammar]]


class _GrammarLoader:
    """Two-pass builder: create nodes, then bind ``$ref`` paths."""

    def __init__(self, data: dict, resolve_import: Optional[ImportResolver] = None):
        self.data = data
        self.resolve_import = resolve_import
        self.built: Dict[int, Any] = {}
        self.pending: List[tuple] = []
        self.imported: Dict[str, Grammar] = {}

    def load(self) -> Grammar:
        data = self.data
        for imp in data.get('imports', []):
            path = imp.get('path', '') if isinstance(imp, dict) else str(imp)
            if not path or self.resolve_import is None:
                continue
            grammar = self.resolve_import(path)
            if grammar is not None:
                self.imported[Path(path).stem] = grammar

        rules = [self._rule(r) for r in data.get('rules', [])]
        types = [self._type_decl(t) for t in [*data.get('interfaces', []), *data.get('types', [])]]
        diagnostics = [
            Diagnostic(severity=d.get('severity'), message=d.get('message', ''))
            for d in data.get('diagnostics', [])
        ]
        grammar = Grammar(
            name=data.get('name') or '',
            rules=rules,
            types=types,
            imports=list(self.imported.values()),
            diagnostics=diagnostics,
        )
        for reference, raw in self.pending:
            reference.ref = self._lookup(raw)
        return grammar

    # ── nodes ──

    def _remember(self, raw: dict, node: Any) -> Any:
        self.built[id(raw)] = node
        return node

    def _reference(self, raw: Optional[dict]) -> Optional[Reference]:
        if raw is None:
            return None
        reference = Reference(text=raw.get('$refText') or _ref_text(raw.get('$ref', '')))
        self.pending.append((reference, raw))
        return reference

    def _rule(self, raw: dict) -> Any:
        kind = raw.get('$type')
        if kind == 'TerminalRule':
            definition = raw.get('definition') or {}
            return self._remember(raw, TerminalRule(
                name=raw['name'],
                regex=definition.get('regex'),
                hidden=bool(raw.get('hidden', False)),
                fragment=bool(raw.get('fragment', False)),
            ))
        if kind != 'ParserRule':
            raise ValueError(f"Unsupported rule type: {kind!r}")
        definition = raw.get('definition')
        inferred = raw.get('inferredType')
        return self._remember(raw, ParserRule(
            name=raw['name'],
            definition=self._element(definition) if definition else None,
            inferred_type=inferred.get('name') if isinstance(inferred, dict) else inferred,
            entry=bool(raw.get('entry', False)),
            fragment=bool(raw.get('fragment', False)),
        ))

    def _type_decl(self, raw: dict) -> TypeDeclaration:
        return self._remember(raw, TypeDeclaration(name=raw['name'], kind=raw.get('$type', 'Interface')))

    def _element(self, raw: dict) -> Any:
        kind = raw.get('$type')
        card = raw.get('cardinality')
        if kind == 'Keyword':
            node = Keyword(value=raw.get('value', ''), cardinality=card)
        elif kind == 'RuleCall':
            node = RuleCall(rule=self._reference(raw.get('rule')) or Reference(''), cardinality=card)
        elif kind == 'CrossReference':
            terminal = raw.get('terminal')
            node = CrossReference(
                type=self._reference(raw.get('type')) or Reference(''),
                terminal=self._element(terminal) if terminal else None,
                cardinality=card,
            )
        elif kind == 'Assignment':
            node = Assignment(
                feature=raw['feature'],
                operator=raw.get('operator', '='),
                terminal=self._element(raw['terminal']),
                cardinality=card,
            )
        elif kind == 'Alternatives':
            node = Alternatives(elements=[self._element(e) for e in raw.get('elements', [])], cardinality=card)
        elif kind in ('Group', 'UnorderedGroup'):
            node = Group(elements=[self._element(e) for e in raw.get('elements', [])], cardinality=card)
        elif kind == 'Action':
            inferred = raw.get('inferredType')
            node = Action(
                type=self._reference(raw.get('type')),
                inferred_type=inferred.get('name') if isinstance(inferred, dict) else inferred,
                feature=raw.get('feature'),
                operator=raw.get('operator'),
                cardinality=card,
            )
        else:
            raise ValueError(f"Unsupported grammar element: {kind!r}")
        return self._remember(raw, node)

    # ── references ──

    def _lookup(self, raw: dict) -> Any:
        ref = raw.get('$ref', '')
        document, _, path = ref.partition('#')
        if document:
            return self._lookup_imported(document, path)
        target = _walk_path(self.data, path)
        if target is None:
            return None
        return self.built.get(id(target))

    def _lookup_imported(self, document: str, path: str) -> Any:
        grammar = self.imported.get(Path(document).stem)
        if grammar is None:
            return None
        m = re.match(r'^/(rules|interfaces|types)@(\d+)$', path)
        if not m:
            return None
        index = int(m.group(2))
        if m.group(1) == 'rules':
            nodes = grammar.rules
        else:
            wanted = 'Interface' if m.group(1) == 'interfaces' else 'Type'
            nodes = [t for t in grammar.types if t.kind == wanted]
        return nodes[index] if index < len(nodes) else None


def _ref_text(ref: str) -> str:
    return ref.rsplit('/', 1)[-1]


def _walk_path(data: Any, path: str) -> Any:
    """Follow a ``/rules@2/definition/elements@0`` path through raw JSON."""
    current = data
    for segment in path.strip('/').split('/'):
        if not segment:
            continue
        m = _REF_SEGMENT.match(segment)
        if not m or not isinstance(current, dict):
            return None
        current = current.get(m.group(1))
        if m.group(2) is not None:
            index = int(m.group(2))
            if not isinstance(current, list) or index >= len(current):
                return None
            current = current[index]
    return current if isinstance(current, dict) else None


def from_json(data: dict, resolve_import: Optional[ImportResolver] = None) -> Grammar:
    """Deserialize a serialized grammar document into a linked Grammar."""
    if data.get('$type', 'Grammar') != 'Grammar':
        raise ValueError(f"Expected a Grammar document, got {data.get('$type')!r}")
    return _GrammarLoader(data, resolve_import).load()


def load_grammar(path: str, _loaded: Optional[Dict[str, Grammar]] = None) -> Grammar:
    """Read a serialized grammar from disk, loading imports from sibling .json files."""
    source = Path(path).resolve()
    loaded = _loaded if _loaded is not None else {}

    def resolve(import_path: str) -> Optional[Grammar]:
        candidate = (source.parent / import_path).with_suffix('.json').resolve()
        key = str(candidate)
        if key in loaded:
            return loaded[key]
        if not candidate.exists():
            return None
        return load_grammar(key, loaded)

    with open(source, 'r', encoding='utf-8') as f:
        data = json.load(f)

    # Placeholder entry so an import cycle back to this file stops here.
    placeholder = Grammar(name=data.get('name') or source.stem, path=str(source))
    loaded[str(source)] = placeholder
    grammar = from_json(data, resolve)
    grammar.path = str(source)
    if not grammar.name:
        grammar.name = source.stem
    loaded[str(source)] = grammar
    return grammar
