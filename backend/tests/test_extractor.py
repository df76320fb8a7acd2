"""
Tests for best-effort JSON extraction from model output.

Run with: pytest tests/test_extractor.py -v
"""

import pytest

from app.services.llm.extractor import extract_json, get_text_field


# =============================================================================
# extract_json
# =============================================================================

def test_plain_object():
    assert extract_json('{"pro": "Yes", "con": "No"}') == {"pro": "Yes", "con": "No"}


def test_code_fence_with_language_tag():
    text = 'Here you go:\n```json\n{"pro": "Yes", "con": "No"}\n```\nHope that helps!'

    assert extract_json(text) == {"pro": "Yes", "con": "No"}


def test_prose_around_object():
    text = 'Sure! The answer is {"verdict": "pro"} as requested.'

    assert extract_json(text) == {"verdict": "pro"}


def test_trailing_comma_is_repaired():
    assert extract_json('{"pro": "Yes", "con": "No",}') == {"pro": "Yes", "con": "No"}


def test_smart_quotes_are_repaired():
    text = "{“pro”: “Yes”, “con”: “No”}"

    assert extract_json(text) == {"pro": "Yes", "con": "No"}


def test_raw_line_breaks_inside_strings():
    text = '{"overall": "First line\nsecond line", "advice": "Be brief"}'

    data = extract_json(text)

    assert data is not None
    assert data["advice"] == "Be brief"
    assert data["overall"].startswith("First line")


def test_braces_inside_strings_do_not_break_the_scan():
    text = 'Result: {"mainArgument": "Use {curly} braces", "label": "Pro"}'

    assert extract_json(text) == {"mainArgument": "Use {curly} braces", "label": "Pro"}


def test_last_object_wins_when_several_are_present():
    text = 'Example: {"pro": "sample"}\nAnswer: {"pro": "real"}'

    assert extract_json(text) == {"pro": "real"}


def test_nested_object():
    text = '{"pro": {"score": 3}, "con": "No"}'

    assert extract_json(text) == {"pro": {"score": 3}, "con": "No"}


@pytest.mark.parametrize("text", ["", "no json here", "{not json at all}", "[1, 2, 3]", None, 42])
def test_unparseable_input_returns_none(text):
    assert extract_json(text) is None


# =============================================================================
# get_text_field
# =============================================================================

def test_text_field_is_stripped():
    assert get_text_field({"pro": "  Yes  "}, "pro") == "Yes"


def test_missing_field_uses_default():
    assert get_text_field({}, "pro") == ""
    assert get_text_field(None, "pro", default="n/a") == "n/a"


def test_list_field_is_joined():
    assert get_text_field({"advice": ["Be brief.", "Cite data."]}, "advice") == "Be brief. Cite data."


def test_scalars_are_stringified():
    assert get_text_field({"n": 3}, "n") == "3"
    assert get_text_field({"flag": True}, "flag") == "True"


def test_nested_object_is_treated_as_missing():
    assert get_text_field({"pro": {"text": "Yes"}}, "pro") == ""
