from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from app.bot.faq.engine import FaqEntry

logger = logging.getLogger(__name__)

DEFAULT_FAQ_PATH = Path(__file__).resolve().parent / "faq_entries.json"


class FaqTableError(Exception):
    pass


class FaqEntrySchema(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    keywords: List[str] = Field(min_length=1)
    confidence: float = Field(gt=0, le=1)

    @field_validator("keywords")
    @classmethod
    def normalize_keywords(cls, value: List[str]) -> List[str]:
        normalized: List[str] = []
        for keyword in value:
            cleaned = keyword.strip().lower()
            if cleaned and cleaned not in normalized:
                normalized.append(cleaned)
        if not normalized:
            raise ValueError("keywords must contain at least one non-blank term")
        return normalized


def parse_faq_table(payload: object) -> Tuple[FaqEntry, ...]:
    if not isinstance(payload, list):
        raise FaqTableError("FAQ table must be a JSON list")
    entries: List[FaqEntry] = []
    for index, raw in enumerate(payload):
        try:
            item = FaqEntrySchema.model_validate(raw)
        except ValidationError as exc:
            raise FaqTableError(f"invalid FAQ entry at index {index}: {exc}") from exc
        entries.append(
            FaqEntry(
                question=item.question,
                answer=item.answer,
                keywords=tuple(item.keywords),
                base_confidence=item.confidence,
            )
        )
    return tuple(entries)


def load_faq_table(path: str | Path | None = None) -> Tuple[FaqEntry, ...]:
    source = Path(path) if path else DEFAULT_FAQ_PATH
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise FaqTableError(f"unable to read FAQ table from {source}: {exc}") from exc
    table = parse_faq_table(payload)
    logger.info("faq_table_loaded", extra={"extra": {"path": str(source), "entries": len(table)}})
    return table
