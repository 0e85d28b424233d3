"""
Document analyzer: parsing model output into the eight sections.

Run with: pytest tests/test_analyzer.py -v
"""
import asyncio
import json

import pytest

from app.config import ANALYSIS_MAX_OUTPUT_TOKENS, ANALYSIS_TEMPERATURE
from app.errors import AnalysisFailure, GenerationFailure
from app.models.document import ANALYSIS_FIELDS
from app.prompts import DOCUMENT_ANALYSIS_PROMPT
from app.services.analyzer import DocumentAnalyzer, parse_analysis

FULL_ANALYSIS = {name: f"{name} feedback" for name in ANALYSIS_FIELDS}


class TestParseAnalysis:
    def test_valid_json(self):
        assert parse_analysis(json.dumps(FULL_ANALYSIS)) == FULL_ANALYSIS

    def test_code_fenced_json(self):
        raw = "```json\n" + json.dumps(FULL_ANALYSIS) + "\n```"
        assert parse_analysis(raw) == FULL_ANALYSIS

    def test_missing_fields_filled(self):
        sections = parse_analysis(json.dumps({"overview": "Solid", "extra": "ignored"}))
        assert set(sections) == set(ANALYSIS_FIELDS)
        assert sections["overview"] == "Solid"
        assert sections["logic"] == ""
        assert "extra" not in sections

    def test_non_string_values_serialized(self):
        sections = parse_analysis(json.dumps({"recommendations": ["Cut scope", "Add data"], "logic": None}))
        assert sections["recommendations"] == '["Cut scope", "Add data"]'
        assert sections["logic"] == ""

    def test_malformed_output_falls_back(self):
        raw = "The argument is weak. " * 60
        sections = parse_analysis(raw)
        assert set(sections) == set(ANALYSIS_FIELDS)
        assert sections["overview"] == "Analysis completed"
        assert sections["logic"] == raw[:500]
        for name in ANALYSIS_FIELDS:
            if name not in ("overview", "logic"):
                assert sections[name] == ""

    def test_json_array_falls_back(self):
        sections = parse_analysis("[1, 2, 3]")
        assert sections["overview"] == "Analysis completed"
        assert sections["logic"] == "[1, 2, 3]"

    def test_empty_output_falls_back(self):
        sections = parse_analysis("")
        assert sections["overview"] == "Analysis completed"
        assert sections["logic"] == ""


class TestDocumentAnalyzer:
    def test_sends_fixed_prompt(self, gemini):
        gemini.completion = json.dumps(FULL_ANALYSIS)
        outcome = asyncio.run(DocumentAnalyzer(gemini).analyze("Our plan is flawless."))

        assert outcome.sections == FULL_ANALYSIS
        assert outcome.raw_text == gemini.completion
        call = gemini.complete_calls[0]
        assert call["system_instruction"] == DOCUMENT_ANALYSIS_PROMPT
        assert call["prompt"] == "Please analyze this document:\n\nOur plan is flawless."
        assert call["temperature"] == ANALYSIS_TEMPERATURE
        assert call["max_output_tokens"] == ANALYSIS_MAX_OUTPUT_TOKENS

    def test_non_json_reply_still_well_shaped(self, gemini):
        gemini.completion = "I could not format this as JSON, sorry."
        outcome = asyncio.run(DocumentAnalyzer(gemini).analyze("text"))
        assert outcome.sections["overview"] == "Analysis completed"
        assert outcome.sections["logic"] == gemini.completion

    @pytest.mark.parametrize("error", [RuntimeError("quota exceeded"), GenerationFailure("timed out")])
    def test_completion_failure_raises(self, gemini, error):
        gemini.completion_error = error
        with pytest.raises(AnalysisFailure) as excinfo:
            asyncio.run(DocumentAnalyzer(gemini).analyze("text"))
        assert excinfo.value.__cause__ is error
        assert excinfo.value.user_message == "Analysis failed"
