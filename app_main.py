"""Application entry point for the live quiz server."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from live_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from live_quiz.core.quiz_importer import ImportedQuestionGenerator, load_quiz_from_file
from live_quiz.core.quiz_manager import QuizManager
from live_quiz.server.api_server import run_api_server
from live_quiz.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the live quiz server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--log-level", default=None)
    parser.add_argument(
        "--seed-quiz",
        type=Path,
        default=None,
        help="Quiz text file to load at startup; it also backs quiz generation.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, optionally seed a quiz, and serve the API."""
    args = _parse_args(argv)
    logger = configure_logging(args.log_level)
    logger.info("Starting live quiz server…")

    quiz_manager = QuizManager()
    if args.seed_quiz is not None:
        imported = load_quiz_from_file(args.seed_quiz)
        quiz_manager = QuizManager(generator=ImportedQuestionGenerator(imported))
        quiz = asyncio.run(quiz_manager.register_imported_quiz(imported))
        logger.info("Seeded quiz '%s' with id %s", quiz.title, quiz.id)

    logger.info("Serving on http://%s:%d/", args.host, args.port)
    run_api_server(
        quiz_manager=quiz_manager,
        host=args.host,
        port=args.port,
        log_level=(args.log_level or "info").lower(),
    )


if __name__ == "__main__":
    main()
