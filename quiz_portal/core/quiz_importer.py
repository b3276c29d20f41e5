"""Utilities for importing quizzes from a human-friendly text file.

File format (blocks separated by blank lines or '---'). The first block is
the quiz header, every following block is one question:

    TITLE: Quiz title
    DESCRIPTION: Optional description
    DURATION: minutes (optional, default 60)
    PUBLISHED: yes|no (optional, default yes)

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    TYPE: multiple-choice|true-false   (optional, default multiple-choice)
    POINTS: integer >= 1               (optional, default 1)
    A: First option text
    B: Second option text
    ...                                (option letters are uppercase)
    CORRECT: A, C

Example:

    TITLE: Fractions
    DURATION: 15

    Q: Which of these equal $\\frac{1}{2}$?
    A: 2/4
    B: 3/4
    C: 0.5
    CORRECT: A, C
    POINTS: 2

    Q: $\\frac{1}{3} > \\frac{1}{4}$
    TYPE: true-false
    A: True
    B: False
    CORRECT: A

The quiz id is taken from the file name; question ids are ``<quiz>-q<n>``
and option ids ``<question>-<letter>``, so they are stable across reloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import string

from quiz_portal.constants.quiz_constants import DEFAULT_DURATION_MINUTES, DEFAULT_QUESTION_POINTS
from quiz_portal.core.models import Option, Question, QuestionType, Quiz


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path
    quiz: Quiz
    questions: list[Question]


_OPTION_LETTERS = string.ascii_uppercase
_HEADER_KEYS = ("TITLE", "DESCRIPTION", "DURATION", "PUBLISHED")
_TRUTHY = {"yes", "true", "1", "y"}
_FALSY = {"no", "false", "0", "n"}


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    quiz, questions = parse_quiz_text(text, quiz_id=file_path.stem)
    return ImportedQuiz(source_path=file_path, quiz=quiz, questions=questions)


def parse_quiz_text(text: str, quiz_id: str) -> tuple[Quiz, list[Question]]:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file is empty.")

    quiz = _parse_header(blocks[0], quiz_id)
    questions = [
        _parse_block(block, quiz_id=quiz_id, question_id=f"{quiz_id}-q{index}")
        for index, block in enumerate(blocks[1:], start=1)
    ]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    quiz.question_ids = [question.id for question in questions]
    return quiz, questions


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _split_marker(line: str) -> tuple[str, str]:
    key, _, value = line.partition(":")
    return key.strip().upper(), value.strip()


def _parse_header(block: str, quiz_id: str) -> Quiz:
    values: dict[str, str] = {}
    for raw_line in block.splitlines():
        key, value = _split_marker(raw_line)
        if key not in _HEADER_KEYS:
            raise QuizImportError(f"Quiz header must start with TITLE:, found '{raw_line.strip()}'.")
        values[key] = value

    title = values.get("TITLE", "")
    if not title:
        raise QuizImportError("Quiz header requires a TITLE.")

    duration = DEFAULT_DURATION_MINUTES
    if "DURATION" in values:
        duration = _parse_positive_int(values["DURATION"], "DURATION")

    published = True
    if "PUBLISHED" in values:
        flag = values["PUBLISHED"].lower()
        if flag not in _TRUTHY | _FALSY:
            raise QuizImportError("PUBLISHED must be yes or no.")
        published = flag in _TRUTHY

    return Quiz(
        id=quiz_id,
        title=title,
        description=values.get("DESCRIPTION", ""),
        duration_minutes=duration,
        is_published=published,
    )


def _parse_block(block: str, quiz_id: str, question_id: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letters: set[str] = set()
    question_type = QuestionType.MULTIPLE_CHOICE.value
    points = DEFAULT_QUESTION_POINTS
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
            raw_value = line.split(":", 1)[1]
            correct_letters = {part.strip().upper() for part in raw_value.split(",") if part.strip()}
            current_section = None
            continue

        if upper.startswith("TYPE:"):
            question_type = line.split(":", 1)[1].strip().lower()
            current_section = None
            continue

        if upper.startswith("POINTS:"):
            points = _parse_positive_int(line.split(":", 1)[1].strip(), "POINTS")
            current_section = None
            continue

        if len(line) > 2 and line[0] in _OPTION_LETTERS and line[1] == ":":
            letter = line[0]
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    letters = sorted(options)
    if letters != list(_OPTION_LETTERS[: len(letters)]):
        raise QuizImportError("Options must be lettered consecutively starting at A.")
    if len(letters) < 2:
        raise QuizImportError("Each question must define at least two options.")
    if any(not options[letter].strip() for letter in letters):
        raise QuizImportError("Option text cannot be empty.")

    if not correct_letters:
        raise QuizImportError("CORRECT must name at least one option.")
    unknown = correct_letters - set(letters)
    if unknown:
        raise QuizImportError(f"CORRECT refers to undefined option(s): {', '.join(sorted(unknown))}.")

    return Question(
        id=question_id,
        quiz_id=quiz_id,
        text=question_text,
        question_type=question_type,
        options=[
            Option(
                id=f"{question_id}-{letter}",
                text=options[letter].strip(),
                is_correct=letter in correct_letters,
            )
            for letter in letters
        ],
        points=points,
    )


def _parse_positive_int(raw_value: str, label: str) -> int:
    if not raw_value:
        raise QuizImportError(f"{label} must include an integer value.")
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError(f"{label} must be an integer.") from exc
    if parsed_value <= 0:
        raise QuizImportError(f"{label} must be a positive integer.")
    return parsed_value
