from typing import Iterable, List


class QuizError(Exception):
    """Base class for errors reported to API callers as structured results."""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": self.detail}


class InsufficientPoolError(Exception):
    """Sampler was asked for more items than the pool holds. Never reaches API callers."""

    def __init__(self, requested: int, available: int):
        super().__init__(f"Cannot draw {requested} items from a pool of {available}")
        self.requested = requested
        self.available = available


class PoolExhaustedError(QuizError):
    """The catalog is smaller than the assignment size. Configuration error, not retryable."""
    status_code = 503

    def __init__(self, required: int, available: int):
        super().__init__(f"Question catalog has {available} questions, {required} required per assignment")
        self.required = required
        self.available = available

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"required": self.required, "available": self.available})
        return data


class NoActiveAssignmentError(QuizError):
    """Submission arrived without an assignment for the current epoch."""
    status_code = 409

    def __init__(self, session_id: str, epoch: int):
        super().__init__("No questions assigned for the current epoch; request questions first")
        self.session_id = session_id
        self.epoch = epoch

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["epoch"] = self.epoch
        return data


class UnknownQuestionError(QuizError):
    """Submission references questions outside the current assignment."""

    def __init__(self, question_ids: Iterable[int]):
        self.question_ids: List[int] = sorted(set(question_ids))
        super().__init__(f"Questions not assigned in this epoch: {self.question_ids}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["questionIds"] = self.question_ids
        return data


class LockTimeoutError(QuizError):
    """Per-session lock could not be acquired in time. Safe to retry."""
    status_code = 503

    def __init__(self, session_id: str, timeout: float):
        super().__init__(f"Session is busy, retry shortly (waited {timeout}s)")
        self.session_id = session_id
        self.timeout = timeout

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retryable"] = True
        return data
