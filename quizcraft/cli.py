"""
Terminal front end for the quiz API.

Usage:
    quizcraft serve
    quizcraft register --name Ada --email ada@example.com --password secret1
    quizcraft login --email ada@example.com --password secret1
    quizcraft take "Operating Systems" --count 5 --time 5 --difficulty easy
    quizcraft stats
    quizcraft history

Commands that need an account read the bearer token from ``--token`` or the
``QUIZCRAFT_TOKEN`` environment variable (``login`` prints one).
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from quizcraft.client.api_client import QuizApiClient, SessionContext
from quizcraft.core.config import get_settings
from quizcraft.core.constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUESTION_COUNT,
    DEFAULT_TIME_LIMIT,
    QUESTION_COUNTS,
    TIME_LIMITS_MINUTES,
    format_duration,
    get_difficulties,
)
from quizcraft.core.exceptions import ApiError, SessionError
from quizcraft.core.logging_config import setup_logging
from quizcraft.core.quiz_session import QuizSession
from quizcraft.core.quiz_timer import QuizTimer
from quizcraft.schemas import QuizConfig, SessionResult

OPTION_LABELS = "ABCD"

HELP_TEXT = (
    "  1-4 or a-d  choose an answer\n"
    "  n / p       next / previous question\n"
    "  g <number>  go to question\n"
    "  s           submit\n"
    "  q           quit without saving"
)


def _client(args) -> QuizApiClient:
    token = getattr(args, "token", None) or os.environ.get("QUIZCRAFT_TOKEN")
    return QuizApiClient(base_url=args.api_url, context=SessionContext(token=token))


def _signed_in_client(args) -> QuizApiClient:
    client = _client(args)
    if not client.context.authenticated:
        client.close()
        raise ApiError(401, "Not signed in: run 'quizcraft login' and export QUIZCRAFT_TOKEN")
    return client


# ----------------------------------------------------------------------
# Account commands
# ----------------------------------------------------------------------

def cmd_register(args) -> int:
    with _client(args) as client:
        user = client.register(args.name, args.email, args.password)
        print(f"Registered {user.name} <{user.email}>")
        print(f"Token: {client.context.token}")
    return 0


def cmd_login(args) -> int:
    with _client(args) as client:
        user = client.login(args.email, args.password)
        print(f"Welcome back, {user.name}")
        print(f"export QUIZCRAFT_TOKEN={client.context.token}")
    return 0


def cmd_topics(args) -> int:
    with _client(args) as client:
        for topic in client.list_topics():
            print(f" - {topic}")
    return 0


# ----------------------------------------------------------------------
# Taking a quiz
# ----------------------------------------------------------------------

def render_question(session: QuizSession) -> None:
    question = session.current_question
    marks = {"current": ">", "answered": "*", "unanswered": "."}
    navigator = " ".join(
        f"{marks[state]}{index + 1}" for index, state in enumerate(session.question_states())
    )
    print()
    print(
        f"[{session.format_time()}] Question {session.current_index + 1} of "
        f"{session.question_count} ({session.progress:.0f}%)   {navigator}"
    )
    print(question.question)
    selected = session.answers[session.current_index]
    for index, option in enumerate(question.options):
        marker = "(x)" if index == selected else "( )"
        print(f"  {marker} {OPTION_LABELS[index]}. {option}")


def handle_command(session: QuizSession, command: str) -> Optional[str]:
    """
    Apply one line of user input to the session.

    Returns "submit" or "quit" for the terminal commands, None otherwise.
    """
    command = command.strip().lower()
    if not command:
        return None

    if command in ("1", "2", "3", "4"):
        session.select_answer(int(command) - 1)
    elif len(command) == 1 and command in OPTION_LABELS.lower():
        session.select_answer(OPTION_LABELS.lower().index(command))
    elif command == "n":
        if not session.advance():
            print("Already on the last question.")
    elif command == "p":
        if not session.retreat():
            print("Already on the first question.")
    elif command.startswith("g"):
        target = command[1:].strip()
        if not target.isdigit():
            print("Usage: g <question number>")
            return None
        session.jump_to(int(target) - 1)
    elif command == "s":
        return "submit"
    elif command == "q":
        return "quit"
    else:
        print(HELP_TEXT)
    return None


async def run_session(session: QuizSession) -> Optional[SessionResult]:
    """Interactive loop racing keyboard input against the countdown."""
    timer = QuizTimer(session)
    timer_task = timer.start()
    print(HELP_TEXT)

    try:
        while not session.submitted:
            render_question(session)
            input_task = asyncio.ensure_future(asyncio.to_thread(input, "> "))
            done, _ = await asyncio.wait(
                {input_task, timer_task}, return_when=asyncio.FIRST_COMPLETED
            )

            if timer_task in done:
                print("\nTime's up! Your answers were submitted automatically.")
                print("(press Enter to see your results)")
                return timer_task.result()

            try:
                line = input_task.result()
            except EOFError:
                line = "q"

            try:
                action = handle_command(session, line)
            except SessionError as e:
                print(e.message)
                continue

            if action == "quit":
                return None
            if action == "submit":
                try:
                    return session.submit()
                except SessionError as e:
                    print(e.message)
        return session.result
    finally:
        await timer.cancel()


def print_results(result: SessionResult) -> None:
    print()
    print(f"Quiz Results: {result.quiz.topic}")
    print(f"  Score:      {result.score}/{result.totalQuestions} ({result.percentage}%)")
    print(f"  Time taken: {format_duration(result.timeTaken)}")
    print(f"  {result.score_message}")
    print()
    for index, question in enumerate(result.quiz.questions):
        answer = result.answers[index]
        correct = answer == question.correctAnswer
        given = OPTION_LABELS[answer] if answer >= 0 else "-"
        print(
            f"{index + 1}. {'correct' if correct else 'wrong'}: {question.question}\n"
            f"   your answer: {given}, correct: {OPTION_LABELS[question.correctAnswer]}"
        )
        if question.explanation:
            print(f"   {question.explanation}")


def cmd_take(args) -> int:
    config = QuizConfig(
        topic=args.topic,
        questionCount=args.count,
        timeLimit=args.time,
        difficulty=args.difficulty,
    )
    with _signed_in_client(args) as client:
        print(f"Generating {config.questionCount} questions on {config.topic}...")
        generated = client.generate_quiz(config)
        if generated.source == "fallback":
            print("(using the built-in question bank)")
        quiz = client.save_quiz(generated.topic, generated.questions, generated.timeLimit)

        session = QuizSession(quiz, difficulty=generated.difficulty)
        result = asyncio.run(run_session(session))
        if result is None:
            print("Quiz abandoned.")
            return 0

        print_results(result)
        # Results are shown whether or not the save succeeds
        saver = client.record_attempt_in_background(result.to_attempt())
        saver.join(timeout=get_settings().CLIENT_TIMEOUT)
    return 0


# ----------------------------------------------------------------------
# History
# ----------------------------------------------------------------------

def cmd_stats(args) -> int:
    with _signed_in_client(args) as client:
        stats = client.get_stats()
    print(f"Quizzes taken:   {stats.totalAttempts}")
    print(f"Average score:   {stats.averageScore}")
    print(f"Average percent: {stats.averagePercentage}%")
    print(f"Best percent:    {stats.bestPercentage}%")
    print(f"Questions:       {stats.totalQuestions}")
    print(f"Time spent:      {format_duration(stats.totalTime)}")
    if stats.topics:
        print(f"Topics:          {', '.join(stats.topics)}")
    for attempt in stats.recentAttempts:
        print(
            f"  {attempt.completedAt:%Y-%m-%d %H:%M}  {attempt.topic}: "
            f"{attempt.score}/{attempt.totalQuestions} ({attempt.percentage}%)"
        )
    return 0


def cmd_history(args) -> int:
    with _signed_in_client(args) as client:
        attempts = client.list_attempts()
    if not attempts:
        print("No attempts yet.")
        return 0
    for attempt in attempts:
        print(
            f"{attempt.completedAt:%Y-%m-%d %H:%M}  {attempt.topic:<30} "
            f"{attempt.score}/{attempt.totalQuestions} ({attempt.percentage}%)  "
            f"{format_duration(attempt.timeTaken)}  {attempt.difficulty.value}"
        )
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("quizcraft.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="quizcraft", description="Quiz generator and trainer")
    parser.add_argument("--api-url", default=settings.API_BASE_URL, help="API base URL")
    parser.add_argument("--token", help="Bearer token (default: $QUIZCRAFT_TOKEN)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    register = subparsers.add_parser("register", help="Create an account")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", required=True)
    register.set_defaults(func=cmd_register)

    login = subparsers.add_parser("login", help="Sign in and print a token")
    login.add_argument("--email", required=True)
    login.add_argument("--password", required=True)
    login.set_defaults(func=cmd_login)

    topics = subparsers.add_parser("topics", help="List suggested topics")
    topics.set_defaults(func=cmd_topics)

    take = subparsers.add_parser("take", help="Generate and take a timed quiz")
    take.add_argument("topic")
    take.add_argument("--count", type=int, default=DEFAULT_QUESTION_COUNT, choices=QUESTION_COUNTS)
    take.add_argument("--time", type=int, default=DEFAULT_TIME_LIMIT, choices=TIME_LIMITS_MINUTES,
                      help="Time limit in minutes")
    take.add_argument("--difficulty", default=DEFAULT_DIFFICULTY, choices=get_difficulties())
    take.set_defaults(func=cmd_take)

    stats = subparsers.add_parser("stats", help="Show your statistics")
    stats.set_defaults(func=cmd_stats)

    history = subparsers.add_parser("history", help="List your attempts")
    history.set_defaults(func=cmd_history)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command != "serve":
        setup_logging(log_level="DEBUG" if args.verbose else "WARNING")

    try:
        return args.func(args)
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
        return 130


if __name__ == "__main__":
    sys.exit(main())
