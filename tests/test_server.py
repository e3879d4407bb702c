import pytest
from fastapi.testclient import TestClient

from grammar_uml.config import Settings
from server.app import create_app
from server.store import DiagramStore, diagram_name
from builders import SHOP, SHOP_DIAGRAM, rule_call


@pytest.fixture
def settings(tmp_path):
    return Settings(output_dir=tmp_path / "uml", plantuml_cmd="plantuml", plantuml_timeout=5, verbose=False)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def test_compile_and_fetch(client, settings):
    uri = "file:///work/shop.langium"
    name = diagram_name(uri)
    resp = client.post("/api/diagrams", json={"uri": uri, "grammar": SHOP})
    assert resp.status_code == 200
    body = resp.json()
    assert body == {"uri": uri, "name": name, "grammar": "Shop", "diagram": SHOP_DIAGRAM}
    assert (settings.output_dir / f"{name}.pu").read_text(encoding="utf-8") == SHOP_DIAGRAM

    listing = client.get("/api/diagrams").json()
    assert [(e["name"], e["uri"], e["grammar"], e["rules"]) for e in listing] == [(name, uri, "Shop", 4)]

    text = client.get(f"/api/diagrams/{name}")
    assert text.status_code == 200
    assert text.text == SHOP_DIAGRAM


def test_same_grammar_from_two_documents_keeps_both(client):
    first = "file:///a/shop.langium"
    second = "file:///b/shop.langium"
    client.post("/api/diagrams", json={"uri": first, "grammar": SHOP})
    client.post("/api/diagrams", json={"uri": second, "grammar": SHOP})

    listing = client.get("/api/diagrams").json()
    assert sorted(e["uri"] for e in listing) == [first, second]
    assert {e["grammar"] for e in listing} == {"Shop"}
    assert client.get(f"/api/diagrams/{diagram_name(first)}").text == SHOP_DIAGRAM
    assert client.get(f"/api/diagrams/{diagram_name(second)}").text == SHOP_DIAGRAM


def test_grammar_with_errors_is_not_stored(client):
    grammar = dict(SHOP, diagnostics=[{"severity": 1, "message": "unresolved"}])
    resp = client.post("/api/diagrams", json={"uri": "file:///work/shop.langium", "grammar": grammar})
    assert resp.status_code == 200
    assert resp.json()["diagram"] is None
    assert client.get("/api/diagrams").json() == []
    assert client.get(f"/api/diagrams/{diagram_name('file:///work/shop.langium')}").status_code == 404


def test_bad_document_is_rejected(client):
    grammar = {"$type": "Grammar", "name": "X", "rules": [{"$type": "ParserRule", "name": "A",
                                                          "definition": {"$type": "Wildcard"}}]}
    resp = client.post("/api/diagrams", json={"uri": "file:///x.langium", "grammar": grammar})
    assert resp.status_code == 400


def test_imports_sent_with_request(client):
    common = {
        "$type": "Grammar", "name": "Common",
        "rules": [
            {"$type": "ParserRule", "name": "Named", "definition": {
                "$type": "Assignment", "feature": "name", "operator": "=", "terminal": rule_call(1)}},
            {"$type": "TerminalRule", "name": "ID", "definition": {"$type": "RegexToken", "regex": "/\\w+/"}},
        ],
    }
    main = {
        "$type": "Grammar", "name": "Main",
        "imports": [{"$type": "GrammarImport", "path": "./common.langium"}],
        "rules": [{"$type": "ParserRule", "name": "Model", "definition": {
            "$type": "Assignment", "feature": "elements", "operator": "+=",
            "terminal": {"$type": "RuleCall", "rule": {"$ref": "common.langium#/rules@0"}},
        }}],
    }
    resp = client.post("/api/diagrams", json={
        "uri": "file:///work/main.langium", "grammar": main, "imports": {"./common.langium": common},
    })
    diagram = resp.json()["diagram"]
    assert "class Named {\nname=ID\n}\n" in diagram
    assert 'Model "1..*" *-- "elements" Named\n' in diagram


def test_unknown_diagram(client):
    assert client.get("/api/diagrams/nothing").status_code == 404


def test_store_survives_restart(settings):
    with TestClient(create_app(settings)) as c:
        c.post("/api/diagrams", json={"uri": "file:///work/shop.langium", "grammar": SHOP})
    name = diagram_name("file:///work/shop.langium")
    store = DiagramStore(settings.output_dir)
    assert store.get(name)["grammar"] == "Shop"
    assert store.read_diagram(name) == SHOP_DIAGRAM


@pytest.mark.parametrize("uri, stem", [
    ("file:///work/shop.langium", "shop"),
    ("file:///work/my grammar.langium", "my_grammar"),
    ("file:///work/shop.langium?version=2", "shop"),
    ("untitled:", "untitled"),
    ("", "diagram"),
])
def test_diagram_name_keeps_a_readable_stem(uri, stem):
    name = diagram_name(uri)
    assert name.startswith(stem + "-")
    assert len(name) == len(stem) + 9


def test_diagram_name_tells_documents_apart():
    assert diagram_name("file:///a/shop.langium") != diagram_name("file:///b/shop.langium")
    assert diagram_name("file:///a/shop.langium") == diagram_name("file:///a/shop.langium")
