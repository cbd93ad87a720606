# grader.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from sympy import Rational, floor

from schemas.marking import AnswerIn, AnswerResult
from schemas.questions import (
    AttachmentQuestion,
    LongTextQuestion,
    MultiChoiceQuestion,
    Question,
    QuestionType,
    ShortTextQuestion,
    SingleChoiceQuestion,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

# --- Grading policy --------------------------------------------------------------
# Keyword coverage at or above this earns provisional partial credit. The credit
# is always surfaced for reviewer confirmation, even at full coverage.
KEYWORD_PASS_THRESHOLD = Rational(4, 5)

# Partial-credit paths round half-up to this many decimal places.
MARKS_DP = 2

CORRECT_MSG = "Correct!"
INCORRECT_MSG = "Incorrect"
ALL_CORRECT_MSG = "All correct!"
NO_SELECTION_MSG = "No answer selected"
NO_TEXT_MSG = "No answer provided"
REVIEW_MSG = "Flagged for teacher review"
MANUAL_MSG = "This question requires manual grading by your teacher"

# question_id -> option records carrying `id` and `is_correct`
OptionsLookup = Callable[[str], Optional[Iterable[Any]]]


# --- Low-level helpers ------------------------------------------------------------


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def _first_token(options: Iterable[str], text: Optional[str]) -> str:
    for o in options:
        if _norm(o):
            return _norm(o)
    return _norm(text)


def _exact(value: float) -> Rational:
    # go through str so 2.5 becomes 5/2 rather than its binary approximation
    return Rational(str(value))


def _round_marks(value: Rational, max_marks: float) -> float:
    scale = 10**MARKS_DP
    rounded = floor(value * scale + Rational(1, 2)) / scale
    return float(min(max(rounded, Rational(0)), _exact(max_marks)))


def _option_pairs(options: Optional[Iterable[Any]]) -> Iterable[Tuple[str, bool]]:
    """Accept OptionModel instances or plain {id, is_correct} rows from a store."""
    for o in options or ():
        if isinstance(o, dict):
            yield str(o.get("id", "")), bool(o.get("is_correct"))
        else:
            yield str(getattr(o, "id", "")), bool(getattr(o, "is_correct", False))


def _result(is_correct: bool, marks: float, manual: bool, feedback: str) -> AnswerResult:
    return AnswerResult(
        is_correct=is_correct,
        marks_obtained=marks,
        needs_manual_grading=manual,
        feedback=feedback,
        auto_graded=not manual,
    )


def _flag_for_manual_grading() -> AnswerResult:
    return _result(False, 0, True, MANUAL_MSG)


# --- Strategies -------------------------------------------------------------------


def _grade_single_choice(
    q: SingleChoiceQuestion, a: AnswerIn, _lookup: Optional[OptionsLookup]
) -> AnswerResult:
    token = _first_token(a.selected_options, a.text_answer)
    correct = bool(token) and token == _norm(q.correct_answer)
    return _result(correct, q.marks if correct else 0, False, CORRECT_MSG if correct else INCORRECT_MSG)


def _grade_true_false(
    q: TrueFalseQuestion, a: AnswerIn, _lookup: Optional[OptionsLookup]
) -> AnswerResult:
    token = _norm(a.text_answer) or _first_token(a.selected_options, None)
    expected = _norm(q.correct_answer)
    if token == expected:
        return _result(True, q.marks, False, CORRECT_MSG)
    return _result(False, 0, False, f"{INCORRECT_MSG}. The correct answer is {expected}")


def _grade_multi_choice(
    q: MultiChoiceQuestion, a: AnswerIn, lookup: Optional[OptionsLookup]
) -> AnswerResult:
    selected: Set[str] = {_norm(s) for s in a.selected_options if _norm(s)}
    if not selected:
        return _result(False, 0, False, NO_SELECTION_MSG)

    options = lookup(q.id) if lookup is not None else q.options
    correct_ids = {_norm(oid) for oid, ok in _option_pairs(options) if ok}
    if not correct_ids:
        # nothing to score against; a teacher has to decide
        logger.warning("multi_choice %s has no correct options; flagging for review", q.id)
        return _flag_for_manual_grading()

    correct = len(selected & correct_ids)
    incorrect = len(selected - correct_ids)
    fraction = max(Rational(correct - incorrect, len(correct_ids)), Rational(0))
    marks = _round_marks(fraction * _exact(q.marks), q.marks)

    if correct == len(correct_ids) and incorrect == 0:
        return _result(True, marks, False, ALL_CORRECT_MSG)
    return _result(
        False, marks, False, f"Partial credit: {correct} correct, {incorrect} incorrect"
    )


def _grade_short_text(
    q: ShortTextQuestion, a: AnswerIn, _lookup: Optional[OptionsLookup]
) -> AnswerResult:
    text = _norm(a.text_answer)
    if not text:
        # unanswered is not escalated for review
        return _result(False, 0, False, NO_TEXT_MSG)

    if text == _norm(q.correct_answer):
        return _result(True, q.marks, False, CORRECT_MSG)

    if q.keywords:
        matched = sum(1 for k in q.keywords if k.lower() in text)
        coverage = Rational(matched, len(q.keywords))
        if coverage >= KEYWORD_PASS_THRESHOLD:
            return _result(
                bool(coverage == 1),
                _round_marks(coverage * _exact(q.marks), q.marks),
                True,
                f"Partial match ({matched}/{len(q.keywords)} keywords). {REVIEW_MSG}.",
            )

    return _result(False, 0, True, REVIEW_MSG)


def _grade_manual(
    q: LongTextQuestion | AttachmentQuestion, a: AnswerIn, _lookup: Optional[OptionsLookup]
) -> AnswerResult:
    return _flag_for_manual_grading()


_STRATEGIES: Dict[QuestionType, Callable[..., AnswerResult]] = {
    QuestionType.SINGLE_CHOICE: _grade_single_choice,
    QuestionType.MULTI_CHOICE: _grade_multi_choice,
    QuestionType.TRUE_FALSE: _grade_true_false,
    QuestionType.SHORT_TEXT: _grade_short_text,
    QuestionType.LONG_TEXT: _grade_manual,
    QuestionType.ATTACHMENT_BASED: _grade_manual,
}


def _ensure_every_type_has_strategy() -> None:
    missing = [t.value for t in QuestionType if t not in _STRATEGIES]
    if missing:
        raise RuntimeError(f"No grading strategy for question types: {missing}")


_ensure_every_type_has_strategy()


# --- Public API -------------------------------------------------------------------


def grade_answer(
    question: Question, answer: AnswerIn, options_lookup: Optional[OptionsLookup] = None
) -> AnswerResult:
    """
    Score one answer against its question. Deterministic; the only I/O is the
    optional `options_lookup` used by multi_choice questions. Learner content
    never raises: absent or malformed responses score zero and, where the
    type calls for it, are flagged for manual grading.
    """
    strategy = _STRATEGIES[QuestionType(question.type)]
    result = strategy(question, answer, options_lookup)
    logger.debug(
        "graded %s (%s): %s/%s manual=%s",
        question.id,
        question.type,
        result.marks_obtained,
        question.marks,
        result.needs_manual_grading,
    )
    return result
