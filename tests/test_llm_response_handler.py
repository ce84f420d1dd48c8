# tests/test_llm_response_handler.py
from site_engine.services.llm_response_handler import LLMResponseHandler


def test_string_content_returned_unchanged():
    assert LLMResponseHandler.content_to_text("  {} \n") == "  {} \n"


def test_none_content_is_empty():
    assert LLMResponseHandler.content_to_text(None) == ""


def test_excluded_parts_dropped():
    parts = [
        {"type": "thinking", "text": "hmm"},
        {"type": "text", "text": "hello"},
        {"type": "refusal", "refusal": "no"},
        " world",
    ]
    assert LLMResponseHandler.content_to_text(parts) == "hello world"


def test_strip_code_fences():
    assert LLMResponseHandler.strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert LLMResponseHandler.strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'
    assert LLMResponseHandler.strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_inner_fences_left_alone():
    text = 'Here you go:\n```json\n{}\n```'
    assert LLMResponseHandler.strip_code_fences(text) == text
