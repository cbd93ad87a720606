from __future__ import annotations


class GradingError(Exception):
    """Base class for every error raised by the attempt lifecycle."""

    status_code = 400


# ---------- Validation ----------


class ValidationError(GradingError):
    status_code = 422


class OutOfRange(ValidationError):
    def __init__(self, marks: float, max_marks: float):
        self.marks = marks
        self.max_marks = max_marks
        super().__init__(f"marks {marks} out of range: must be between 0 and {max_marks}")


# ---------- State ----------


class StateError(GradingError):
    status_code = 409


class AlreadySubmitted(StateError):
    def __init__(self, attempt_id: str):
        self.attempt_id = attempt_id
        super().__init__(f"attempt {attempt_id} already submitted")


class InvalidState(StateError):
    pass


class ConcurrentModification(StateError):
    def __init__(self, attempt_id: str):
        self.attempt_id = attempt_id
        super().__init__(f"attempt {attempt_id} was modified concurrently; retry")


# ---------- Not found ----------


class NotFoundError(GradingError):
    status_code = 404


class AttemptNotFound(NotFoundError):
    def __init__(self, attempt_id: str):
        self.attempt_id = attempt_id
        super().__init__(f"attempt {attempt_id} not found")


class AnswerNotFound(NotFoundError):
    def __init__(self, answer_id: str):
        self.answer_id = answer_id
        super().__init__(f"answer {answer_id} not found")


class QuestionNotFound(NotFoundError):
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"question {question_id} not found")


class QuestionSetNotFound(NotFoundError):
    def __init__(self, question_set_id: str):
        self.question_set_id = question_set_id
        super().__init__(f"question set {question_set_id} not found")
