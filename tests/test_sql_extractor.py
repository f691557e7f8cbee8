# tests/test_sql_extractor.py
from sqlplayground.processors.sql_extractor import extract_sql


def test_extracts_trimmed_interior():
    out = extract_sql("Let me check.[SQL]  SELECT COUNT(*) FROM Orders \n[/SQL] done")
    assert out is not None
    assert out.sql == "SELECT COUNT(*) FROM Orders"
    assert out.span == "[SQL]  SELECT COUNT(*) FROM Orders \n[/SQL]"


def test_multiline_interior_with_braces():
    text = "[SQL]\nSELECT '{\"a\": 1}' AS j\nFROM Users\n[/SQL]"
    out = extract_sql(text)
    assert out.sql == "SELECT '{\"a\": 1}' AS j\nFROM Users"


def test_no_delimiters_returns_none():
    assert extract_sql("There are 3 users in the database.") is None


def test_opening_without_closing_returns_none():
    assert extract_sql("Here you go: [SQL]SELECT * FROM Users") is None


def test_closing_before_opening_returns_none():
    assert extract_sql("[/SQL] oops [SQL]SELECT 1") is None


def test_empty_interior_returns_none():
    assert extract_sql("[SQL]   \n [/SQL]") is None


def test_only_first_pair_is_returned():
    text = "[SQL]SELECT 1[/SQL] and also [SQL]SELECT 2[/SQL]"
    out = extract_sql(text)
    assert out.sql == "SELECT 1"
    assert out.span == "[SQL]SELECT 1[/SQL]"


def test_non_string_input_is_absent_not_an_error():
    assert extract_sql(None) is None
    assert extract_sql(42) is None
