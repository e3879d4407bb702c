"""
Diagram persistence for the diagram service.

Latest diagram per grammar document, keyed by its URI, held in memory and
persisted to <output_dir>/diagram_state.json on every mutation. The diagram
text itself goes to <output_dir>/<name>.pu so PlantUML can be pointed at it directly.
"""

import hashlib
import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

STATE_FILENAME = "diagram_state.json"


def diagram_name(uri: str) -> str:
    """File-safe key for a document: URI file stem plus a short hash of the URI."""
    stem = Path(uri.split("?", 1)[0].rstrip("/")).stem
    stem = re.sub(r"[^a-zA-Z0-9_.-]", "_", stem).strip("_.") or "diagram"
    digest = hashlib.sha1(uri.encode("utf-8")).hexdigest()[:8]
    return f"{stem}-{digest}"


class DiagramStore:
    def __init__(self, output_dir: Path):
        self._dir = Path(output_dir)
        self._path = self._dir / STATE_FILENAME
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    self._entries = json.load(f)
            except (json.JSONDecodeError, IOError):
                self._entries = {}

    def _save(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._entries, f, indent=2, default=str)

    def save(self) -> None:
        """Explicit save for shutdown / flush."""
        self._save()

    def diagram_path(self, name: str) -> Path:
        return self._dir / f"{name}.pu"

    def put(self, name: str, uri: str, diagram: str, rule_count: int, grammar: str = "") -> Dict[str, Any]:
        self._dir.mkdir(parents=True, exist_ok=True)
        self.diagram_path(name).write_text(diagram, encoding="utf-8")
        entry = {
            "name": name,
            "uri": uri,
            "grammar": grammar,
            "rules": rule_count,
            "updated": datetime.now().isoformat(),
        }
        self._entries[name] = entry
        self._save()
        return entry

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        return self._entries.get(name)

    def read_diagram(self, name: str) -> Optional[str]:
        path = self.diagram_path(name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def list_entries(self) -> List[Dict[str, Any]]:
        return sorted(self._entries.values(), key=lambda e: e["name"])
