"""
FastAPI application for on-demand grammar diagrams.

A client (typically an editor extension) posts the serialized, linked
grammar of a document after validation; the service compiles it to a
PlantUML class diagram, stores the latest diagram per document and serves
it back as plain text.
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from grammar_uml.compiler import compile_grammar
from grammar_uml.config import Settings, load_env
from grammar_uml.grammar_ast import Grammar, InvariantViolation, collect_rules, from_json
from server.store import DiagramStore, diagram_name


class DiagramRequest(BaseModel):
    uri: str
    grammar: Dict[str, Any]
    imports: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    include_imports: bool = True


def _load_request_grammar(request: DiagramRequest) -> Grammar:
    """Build the grammar, resolving imports from the documents sent along."""
    loaded: Dict[str, Optional[Grammar]] = {}

    def resolve(path: str) -> Optional[Grammar]:
        if path in loaded:
            return loaded[path]
        data = request.imports.get(path)
        loaded[path] = None
        if data is None:
            return None
        loaded[path] = from_json(data, resolve)
        return loaded[path]

    return from_json(request.grammar, resolve)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        load_env()
        settings = Settings.from_env()
    store = DiagramStore(settings.output_dir)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        print(f"[app] Diagrams stored in {settings.output_dir}", file=sys.stderr)
        try:
            yield
        finally:
            store.save()
            print("[app] Shutdown complete", file=sys.stderr)

    app = FastAPI(title="Grammar UML Diagram Service", lifespan=lifespan)
    app.state.store = store

    # ──────────────────────────────────────────────────────────────
    # REST API
    # ──────────────────────────────────────────────────────────────

    @app.post("/api/diagrams")
    async def create_diagram(request: DiagramRequest):
        """Compile a posted grammar. ``diagram`` is null if it has errors."""
        try:
            grammar = _load_request_grammar(request)
            diagram = compile_grammar(
                grammar, include_imports=request.include_imports, verbose=settings.verbose,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except InvariantViolation as exc:
            print(f"[app] Internal error for {request.uri}: {exc}", file=sys.stderr)
            raise HTTPException(status_code=500, detail=str(exc))

        name = diagram_name(request.uri)
        if diagram is None:
            print(f"[app] {request.uri} has errors, no diagram", file=sys.stderr)
            return JSONResponse({"uri": request.uri, "name": name, "grammar": grammar.name, "diagram": None})

        rule_count = len(collect_rules(grammar, include_imports=request.include_imports))
        store.put(name, request.uri, diagram, rule_count, grammar=grammar.name)
        print(f"[app] Diagram for {request.uri} -> {store.diagram_path(name)}", file=sys.stderr)
        return {"uri": request.uri, "name": name, "grammar": grammar.name, "diagram": diagram}

    @app.get("/api/diagrams")
    async def list_diagrams():
        return store.list_entries()

    @app.get("/api/diagrams/{name}", response_class=PlainTextResponse)
    async def get_diagram(name: str):
        entry = store.get(name)
        diagram = store.read_diagram(name) if entry is not None else None
        if diagram is None:
            raise HTTPException(status_code=404, detail="Diagram not found")
        return PlainTextResponse(diagram)

    return app


def main() -> None:
    import uvicorn

    load_env()
    uvicorn.run(create_app(), host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
