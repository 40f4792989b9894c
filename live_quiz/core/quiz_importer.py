"""Utilities for importing quizzes from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    TITLE: Quiz title      (optional header, before the first question)
    TOPIC: Quiz topic      (optional header)
    DIFFICULTY: easy|medium|hard   (optional header)

    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    EXPLANATION: Why the correct option is correct (optional)

Example:

    Q: What is 2 + 2?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B
    EXPLANATION: Two plus two equals four.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

from live_quiz.constants.quiz_constants import DEFAULT_DIFFICULTY, DIFFICULTY_LEVELS
from live_quiz.core.models import QuizQuestion

logger = logging.getLogger(__name__)


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path | None
    title: str
    topic: str
    difficulty: str
    questions: list[QuizQuestion] = field(default_factory=list)


_OPTION_ORDER = ["A", "B", "C", "D"]
_HEADERS = ("TITLE:", "TOPIC:", "DIFFICULTY:")


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text, default_title=file_path.stem)
    imported.source_path = file_path
    logger.info("Imported %d questions from %s", len(imported.questions), file_path)
    return imported


def parse_quiz_text(text: str, default_title: str = "Imported quiz") -> ImportedQuiz:
    headers: dict[str, str] = {}
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        upper = stripped.upper()
        if not blocks and not current_block and upper.startswith(_HEADERS):
            key, value = stripped.split(":", 1)
            headers[key.strip().upper()] = value.strip()
            continue
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions = [_parse_block(block) for block in blocks if block]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")

    difficulty = headers.get("DIFFICULTY", DEFAULT_DIFFICULTY).lower()
    if difficulty not in DIFFICULTY_LEVELS:
        raise QuizImportError(f"DIFFICULTY must be one of {', '.join(DIFFICULTY_LEVELS)}.")
    title = headers.get("TITLE") or default_title
    return ImportedQuiz(
        source_path=None,
        title=title,
        topic=headers.get("TOPIC") or title,
        difficulty=difficulty,
        questions=questions,
    )


def _parse_block(block: str) -> QuizQuestion:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) != 4:
        raise QuizImportError("Each question must define exactly four options (A-D).")

    option_list = [options.get(letter, "").strip() for letter in _OPTION_ORDER]
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError("Each question needs a CORRECT: line.")
    if correct_letter not in _OPTION_ORDER:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text cannot be empty.")

    return QuizQuestion(
        question_text=question_text,
        options=option_list,
        correct_option_index=_OPTION_ORDER.index(correct_letter),
        explanation=" ".join(explanation_lines).strip(),
    )


class ImportedQuestionGenerator:
    """Serves questions from an imported file through the generator protocol."""

    def __init__(self, imported: ImportedQuiz) -> None:
        self._imported = imported

    async def generate(self, topic: str, count: int, difficulty: str) -> list[dict[str, Any]]:
        return [
            {
                "question": q.question_text,
                "options": list(q.options),
                "correctAnswer": q.correct_option_index,
                "explanation": q.explanation,
            }
            for q in self._imported.questions[:count]
        ]
