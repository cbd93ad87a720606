# bank.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from schemas.questions import QuestionSet

logger = logging.getLogger(__name__)

_BASE = Path(__file__).resolve().parent
_DATA_DIR = Path(os.getenv("QUESTION_BANK_DIR", str(_BASE / "data" / "question_sets")))


def _iter_jsonl(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        for idx, line in enumerate(f, 1):
            s = line.strip()
            if not s or s.startswith("#") or s.startswith("//"):
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError:
                # Skip malformed rows instead of dropping the whole file
                logger.warning("skipping malformed line %s:%d", p.name, idx)
                continue


def _iter_json(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("skipping unreadable question file %s", p.name)
            data = []
    # one set per file, or a list of sets
    if isinstance(data, dict):
        yield data
    elif isinstance(data, list):
        for obj in data:
            yield obj


class QuestionBank:
    _sets: Dict[str, QuestionSet] = {}

    @classmethod
    def load(cls) -> Dict[str, QuestionSet]:
        if not cls._sets:
            cls.reload()
        return cls._sets

    @classmethod
    def reload(cls) -> int:
        sets: Dict[str, QuestionSet] = {}

        if _DATA_DIR.exists():
            for p in sorted(_DATA_DIR.rglob("*")):
                if not p.is_file():
                    continue
                suf = p.suffix.lower()
                if suf == ".jsonl":
                    source = _iter_jsonl(p)
                elif suf == ".json":
                    source = _iter_json(p)
                else:
                    continue

                for raw in source:
                    try:
                        qs = QuestionSet.model_validate(raw)
                    except ValidationError as e:
                        # Skip invalid sets; one bad record must not hide the rest
                        logger.warning(
                            "skipping invalid question set in %s: %s",
                            p.name,
                            e.errors(include_url=False),
                        )
                        continue
                    if qs.id in sets:
                        logger.warning("duplicate question set %s in %s; keeping first", qs.id, p.name)
                        continue
                    sets[qs.id] = qs
        else:
            logger.warning("question bank directory %s does not exist", _DATA_DIR)

        cls._sets = sets
        logger.info("question bank loaded: %d set(s) from %s", len(sets), _DATA_DIR)
        return len(cls._sets)


# Public API
def get_question_sets() -> List[QuestionSet]:
    return list(QuestionBank.load().values())


def get_question_set(question_set_id: str) -> Optional[QuestionSet]:
    return QuestionBank.load().get(question_set_id)


def reload_bank() -> int:
    return QuestionBank.reload()
