"""CLI entry point for the Zuper dispatch agent.

Usage:
    python -m zuper_dispatch.main single <job_uid> [--date YYYY-MM-DD]
    python -m zuper_dispatch.main batch <job_uid> [<job_uid> ...] [--no-optimize]
    python -m zuper_dispatch.main auto
    python -m zuper_dispatch.main preferences <job_uid> [--technician NAME] [--date D]
                                  [--skill S ...] [--max-workload N]
    python -m zuper_dispatch.main rank <job_uid>      # no LLM, workload ranking only
    python -m zuper_dispatch.main chat                # interactive session
    python -m zuper_dispatch.main --debug ...         # show API calls
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid

from zuper_dispatch.agent import create_dispatcher_agent
from zuper_dispatch.config import get_settings
from zuper_dispatch.dispatcher import (
    DispatchPreferences,
    auto_assign_unassigned,
    batch_dispatch_jobs,
    dispatch_job,
    dispatch_with_preferences,
    recommend_assignment,
    run_agent,
)
from zuper_dispatch.services.credentials import ZuperError
from zuper_dispatch.services.zuper_client import close_zuper_client

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    root_level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("zuper_dispatch").setLevel(logging.DEBUG if debug else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zuper-dispatch",
        description="Assign Zuper FSM jobs to technicians with an AI dispatcher",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    sub = parser.add_subparsers(dest="command")

    single = sub.add_parser("single", help="Assign one job")
    single.add_argument("job_uid")
    single.add_argument("--date", dest="preferred_date", help="Preferred scheduling date")

    batch = sub.add_parser("batch", help="Assign several jobs in one pass")
    batch.add_argument("job_uids", nargs="+")
    batch.add_argument(
        "--no-optimize", dest="optimize", action="store_false",
        help="Skip travel/workload optimization hints",
    )

    sub.add_parser("auto", help="Find unassigned jobs and assign them")

    prefs = sub.add_parser("preferences", help="Assign one job with explicit preferences")
    prefs.add_argument("job_uid")
    prefs.add_argument("--technician", dest="preferred_technician")
    prefs.add_argument("--date", dest="preferred_date")
    prefs.add_argument("--skill", dest="required_skills", action="append", default=[])
    prefs.add_argument("--max-workload", type=int)

    rank = sub.add_parser("rank", help="Rank technicians by workload (no LLM)")
    rank.add_argument("job_uid")

    sub.add_parser("chat", help="Interactive session with the dispatcher")
    return parser


def _print_result(title: str, text: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print(text)
    print()


async def _rank(job_uid: str) -> None:
    job, recommendation = await recommend_assignment(job_uid)
    if recommendation.top is None:
        print(f"No technicians available for job {job_uid}.")
        return
    top = recommendation.top
    lines = [
        f"Job: {job.get('job_title') or job_uid}",
        f"Recommended: {top.display_name} ({top.user_uid})",
        f"  Score: {top.score}/120",
        f"  Current workload: {top.workload} job(s)",
    ]
    if recommendation.alternatives:
        lines.append("Alternatives:")
        for index, alt in enumerate(recommendation.alternatives, start=2):
            lines.append(f"  {index}. {alt.display_name} (score {alt.score}, {alt.workload} job(s))")
    _print_result("Workload ranking", "\n".join(lines))


async def _chat(agent) -> None:
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' for a new session.\n")
    session_id = str(uuid.uuid4())
    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            return
        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye!")
            return
        if user_input.lower() == "new":
            session_id = str(uuid.uuid4())
            print(f"\n>> New session started: {session_id[:8]}...\n")
            continue
        try:
            result = await run_agent(agent, user_input, thread_id=session_id)
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nDispatcher: something went wrong: {e}\n")
            continue
        print(f"\nDispatcher: {result.text}\n")


async def run(args: argparse.Namespace) -> None:
    """Execute one CLI command."""
    try:
        if args.command == "rank":
            await _rank(args.job_uid)
            return

        agent = create_dispatcher_agent(get_settings())
        if args.command == "single":
            result = await dispatch_job(agent, args.job_uid, preferred_date=args.preferred_date)
            _print_result(f"Assignment for job {args.job_uid}", result.text)
        elif args.command == "batch":
            result = await batch_dispatch_jobs(agent, args.job_uids, optimize=args.optimize)
            _print_result(f"Batch assignment ({len(args.job_uids)} jobs)", result.text)
        elif args.command == "auto":
            result = await auto_assign_unassigned(agent)
            if result is None:
                print("No unassigned jobs found.")
            else:
                _print_result("Auto-assignment", result.text)
        elif args.command == "preferences":
            prefs = DispatchPreferences(
                preferred_technician=args.preferred_technician,
                preferred_date=args.preferred_date,
                required_skills=args.required_skills,
                max_workload=args.max_workload,
            )
            result = await dispatch_with_preferences(agent, args.job_uid, prefs)
            _print_result(f"Assignment for job {args.job_uid}", result.text)
        elif args.command == "chat":
            await _chat(agent)
    finally:
        await close_zuper_client()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(debug=args.debug)
    try:
        asyncio.run(run(args))
    except (ZuperError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Command %s failed", args.command)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
