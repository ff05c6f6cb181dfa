"""Unit tests for knowledge-base ingestion helpers."""
import pytest

from app.services.document_parser import get_content_type
from app.services.document_processor import (
    DEFAULT_SUMMARY,
    DocumentProcessor,
    parse_analysis_response,
)
from app.utils.helpers import extract_json_structure, fix_json_issues, slugify


# ---------------------------------------------------------------------------
# parse_analysis_response
# ---------------------------------------------------------------------------

def test_parses_summary_and_insights():
    analysis = parse_analysis_response(
        "SUMMARY: Strong backend engineer.\n\n"
        'KEY_INSIGHTS: {"skills": ["python", "sql"], "keywords": ["backend"]}'
    )
    assert analysis.summary == "Strong backend engineer."
    assert analysis.key_insights == {"skills": ["python", "sql"], "keywords": ["backend"]}


def test_repairs_trailing_commas_and_literals():
    analysis = parse_analysis_response(
        'SUMMARY: ok\nKEY_INSIGHTS: {"remote": True, "skills": ["a", "b",],}'
    )
    assert analysis.key_insights == {"remote": True, "skills": ["a", "b"]}


def test_missing_summary_uses_default():
    analysis = parse_analysis_response('KEY_INSIGHTS: {"skills": []}')
    assert analysis.summary == DEFAULT_SUMMARY


def test_no_insights_keeps_raw_analysis():
    reply = "This candidate is great. " * 40
    analysis = parse_analysis_response(reply)
    assert analysis.summary == DEFAULT_SUMMARY
    assert analysis.key_insights["status"] == "processed"
    assert analysis.key_insights["processing_note"] == "Document analyzed successfully"
    assert analysis.key_insights["analysis"] == reply[:500]


def test_unparsable_insights_flagged():
    analysis = parse_analysis_response("SUMMARY: fine\nKEY_INSIGHTS: {not: json: at all}")
    assert analysis.summary == "fine"
    assert analysis.key_insights["processing_note"] == "Full analysis available in raw format"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "filename,expected",
    [
        ("CV.PDF", "pdf"),
        ("letter.docx", "docx"),
        ("notes.txt", "txt"),
        ("image.png", "unknown"),
    ],
)
def test_get_content_type(filename, expected):
    assert get_content_type(filename) == expected


def test_extract_json_structure_ignores_braces_in_strings():
    text = 'prefix {"a": "}", "b": {"c": 1}} suffix'
    assert extract_json_structure(text) == '{"a": "}", "b": {"c": 1}}'


def test_fix_json_issues_strips_control_characters():
    assert fix_json_issues('{"a":\x01 1}') == '{"a": 1}'


def test_slugify():
    assert slugify("Café Launch: Phase 2!") == "cafe-launch-phase-2"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_initialize_categories_is_idempotent(db_session):
    processor = DocumentProcessor()
    assert await processor.initialize_categories(db_session) == 6
    assert await processor.initialize_categories(db_session) == 0

    category = await processor.get_category(db_session, "resume")
    assert "ATS compatibility" in category.ai_prompts["analysisPrompt"]


@pytest.mark.asyncio
async def test_category_prompt_used_for_analysis(db_session, llm_reply):
    prompts = llm_reply("SUMMARY: s\nKEY_INSIGHTS: {}")
    processor = DocumentProcessor()
    await processor.initialize_categories(db_session)

    await processor.generate_summary_and_insights(db_session, "some text", "interview_transcript")
    assert "Analyze interview performance" in prompts[0]
    assert "some text" in prompts[0]
