# tests/test_query_catalog.py
from fastapi.testclient import TestClient

from sqlplayground.app import app
from sqlplayground.query_catalog import PREDEFINED_QUERIES, get_query

client = TestClient(app)


def test_catalog_entries_are_named_and_trimmed():
    names = [q["name"] for q in PREDEFINED_QUERIES]
    assert len(names) == len(set(names))
    for q in PREDEFINED_QUERIES:
        assert q["query"] == q["query"].strip()
        assert q["query"].upper().startswith(("SELECT", "WITH"))


def test_get_query_is_case_insensitive():
    assert get_query("user count")["query"] == "SELECT COUNT(*) AS total_users\nFROM Users"
    assert get_query("does not exist") is None


def test_catalog_endpoint():
    r = client.get("/api/queries")
    assert r.status_code == 200
    queries = r.json()["queries"]
    assert {"name": "All Users", "query": "SELECT *\nFROM Users"} in queries


def test_single_query_endpoint():
    r = client.get("/api/queries/Average Order Value")
    assert r.status_code == 200
    assert "AVG(total_amount)" in r.json()["query"]

    missing = client.get("/api/queries/nope")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "E_NOT_FOUND"
