import json
import logging
from dataclasses import dataclass
from typing import Dict

from fastapi import Depends

from app.config import ANALYSIS_MAX_OUTPUT_TOKENS, ANALYSIS_TEMPERATURE
from app.errors import AnalysisFailure
from app.models.document import ANALYSIS_FIELDS
from app.prompts import DOCUMENT_ANALYSIS_PROMPT, DOCUMENT_ANALYSIS_REQUEST
from app.services.gemini import GeminiService, get_gemini_service

logger = logging.getLogger("uvicorn.error")

FALLBACK_OVERVIEW = "Analysis completed"
FALLBACK_LOGIC_CHARS = 500


@dataclass
class AnalysisOutcome:
    raw_text: str
    sections: Dict[str, str]


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def fallback_sections(raw_text: str) -> Dict[str, str]:
    sections = {name: "" for name in ANALYSIS_FIELDS}
    sections["overview"] = FALLBACK_OVERVIEW
    sections["logic"] = raw_text[:FALLBACK_LOGIC_CHARS]
    return sections


def parse_analysis(raw_text: str) -> Dict[str, str]:
    """
    Parse model output into the eight analysis sections.

    A JSON object is normalized to exactly the eight fields (missing ones
    empty, non-strings serialized). Anything else gets the degraded record
    with the start of the raw output under "logic". Never raises.
    """
    raw_text = raw_text or ""
    try:
        data = json.loads(_strip_code_fence(raw_text))
    except ValueError:
        logger.warning("Analysis output was not valid JSON; using fallback sections")
        return fallback_sections(raw_text)

    if not isinstance(data, dict):
        logger.warning("Analysis output was JSON but not an object; using fallback sections")
        return fallback_sections(raw_text)

    sections = {}
    for name in ANALYSIS_FIELDS:
        value = data.get(name, "")
        if value is None:
            value = ""
        elif not isinstance(value, str):
            value = json.dumps(value, ensure_ascii=False)
        sections[name] = value
    return sections


class DocumentAnalyzer:
    def __init__(self, gemini: GeminiService):
        self.gemini = gemini

    async def analyze(self, text: str) -> AnalysisOutcome:
        """
        Critique extracted document text.

        Raises:
            AnalysisFailure: If the completion call fails
        """
        try:
            raw_text = await self.gemini.complete(
                system_instruction=DOCUMENT_ANALYSIS_PROMPT,
                prompt=DOCUMENT_ANALYSIS_REQUEST.format(content=text),
                temperature=ANALYSIS_TEMPERATURE,
                max_output_tokens=ANALYSIS_MAX_OUTPUT_TOKENS,
                response_mime_type="application/json",
            )
        except Exception as e:
            raise AnalysisFailure(f"Completion call failed: {e}") from e

        return AnalysisOutcome(raw_text=raw_text, sections=parse_analysis(raw_text))


def get_document_analyzer(gemini: GeminiService = Depends(get_gemini_service)) -> DocumentAnalyzer:
    """Get document analyzer instance"""
    return DocumentAnalyzer(gemini)
