"""Error taxonomy shared by the REST and realtime boundaries."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for every failure reported back to a caller."""

    code = "QuizError"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, object]:
        return {"success": False, "error": self.message, "code": self.code}


class NotFound(QuizError):
    code = "NotFound"
    status_code = 404


class SessionNotFound(NotFound):
    code = "SessionNotFound"

    def __init__(self, session_code: str) -> None:
        super().__init__(f"Session '{session_code}' not found.")
        self.session_code = session_code


class QuizNotFound(NotFound):
    code = "QuizNotFound"

    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"Quiz '{quiz_id}' not found.")
        self.quiz_id = quiz_id


class ParticipantNotFound(NotFound):
    code = "ParticipantNotFound"

    def __init__(self, participant_id: str) -> None:
        super().__init__("Participant not found in this session.")
        self.participant_id = participant_id


class ValidationError(QuizError, ValueError):
    code = "ValidationError"
    status_code = 422


class MalformedRequest(ValidationError):
    code = "MalformedRequest"


class InvalidQuestionIndex(ValidationError):
    code = "InvalidQuestionIndex"

    def __init__(self, question_index: int) -> None:
        super().__init__(f"Invalid question index {question_index}.")
        self.question_index = question_index


class InvalidOptionIndex(ValidationError):
    code = "InvalidOptionIndex"

    def __init__(self, option_index: int) -> None:
        super().__init__(f"Invalid option index {option_index}.")
        self.option_index = option_index


class InvalidQuestion(ValidationError):
    code = "InvalidQuestion"


class Conflict(QuizError, RuntimeError):
    code = "Conflict"
    status_code = 409


class DuplicateAnswer(Conflict):
    code = "DuplicateAnswer"

    def __init__(self, question_index: int) -> None:
        super().__init__("You have already answered this question.")
        self.question_index = question_index


class DuplicateParticipantName(Conflict):
    code = "DuplicateParticipantName"

    def __init__(self, name: str) -> None:
        super().__init__("This name is already taken. Please choose another name.")
        self.name = name


class InvalidTransition(Conflict):
    code = "InvalidTransition"


class UpstreamFailure(QuizError):
    code = "UpstreamFailure"
    status_code = 502


class InternalError(QuizError):
    code = "InternalError"
    status_code = 500
