"""Accumulates diagram fragments for one compilation pass."""

from pathlib import Path
from typing import List

from grammar_uml.grammar_ast import InvariantViolation

START_WRAPPER = "@startuml\n"
END_WRAPPER = "@enduml\n"


class DiagramWriter:
    """Append-only text sink.

    ``reset`` starts a fresh document with the opening wrapper; ``append``
    adds fragments verbatim; ``finish`` closes the document and returns it.
    A writer belongs to a single pass, so callers create their own.
    """

    def __init__(self):
        self._fragments: List[str] = []
        self._started = False
        self._finished = False

    def reset(self) -> None:
        self._fragments = [START_WRAPPER]
        self._started = True
        self._finished = False

    def append(self, fragment: str) -> None:
        if not self._started:
            raise InvariantViolation("DiagramWriter.append called before reset")
        if self._finished:
            raise InvariantViolation("DiagramWriter.append called after finish")
        self._fragments.append(fragment)

    def finish(self) -> str:
        self.append(END_WRAPPER)
        self._finished = True
        return self.getvalue()

    def getvalue(self) -> str:
        return "".join(self._fragments)

    def save(self, path: str) -> Path:
        """Write the current document to ``path``; I/O errors propagate."""
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, 'w', encoding='utf-8') as f:
            f.write(self.getvalue())
        return out
