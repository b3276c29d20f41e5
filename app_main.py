"""Application entry point for QuizPortal.

Usage: python app_main.py [quiz-file.txt ...]
"""

from __future__ import annotations

from pathlib import Path
import sys

from quiz_portal.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_portal.core.quiz_importer import QuizImportError, load_quiz_from_file
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.server.api_server import run_api_server
from quiz_portal.utils.logging_config import configure_logging


def main(argv: list[str] | None = None) -> int:
    """Initialize logging, load the given quiz files, and serve the API."""
    logger = configure_logging()
    logger.info("Starting QuizPortal…")

    quiz_manager = QuizManager()
    for raw_path in argv if argv is not None else sys.argv[1:]:
        path = Path(raw_path)
        try:
            imported = load_quiz_from_file(path)
            quiz_manager.load_quiz(imported.quiz, imported.questions)
        except (OSError, QuizImportError, ValueError) as exc:
            logger.error("Could not load quiz from %s: %s", path, exc)
            return 1
        logger.info("Loaded quiz '%s' (%d questions) from %s", imported.quiz.title, len(imported.questions), path)

    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
