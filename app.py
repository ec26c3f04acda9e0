"""
A★ Tutor - Socratic Study Assistant
Command Line Entry Point

Runs one tutoring turn from the terminal:

    python app.py --mode canvas --msg "What's due this week?"
    python app.py --check
    python app.py --list-integrations
"""

import argparse
import asyncio
import json
import logging
import sys

from config import GEMINI_MODEL, LOG_LEVEL, MODE_HINTS, DEFAULT_MODE

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BANNER = "=" * 60


async def list_integrations(test: bool) -> int:
    """Print the configured integrations (optionally testing them first)."""
    from services import get_integration_registry

    registry = get_integration_registry()
    if test:
        for result in await registry.test_all():
            status = "✅" if result.get("success") else "❌"
            detail = result.get("message") or result.get("error")
            print(f"{status} {result['name']} ({result['type']}): {detail}")

    print(BANNER)
    for instance in registry.list():
        print(json.dumps(instance.to_dict(), indent=2))
    print(json.dumps(registry.stats(), indent=2))
    print(BANNER)
    return 0


async def check() -> int:
    """LLM health check."""
    from ai import health_check

    status = await health_check()
    print(BANNER)
    for key, value in status.items():
        print(f"{key}: {value}")
    print(BANNER)
    return 0 if str(status.get("gemini_api", "")).startswith("✅") else 1


async def chat(message: str, mode: str, course_id, assignment_id, connect: bool) -> int:
    """Send one message to the tutor and print the answer."""
    from services import ChatService, get_integration_registry

    registry = get_integration_registry()
    if connect:
        await registry.test_all()

    service = ChatService(registry=registry)
    response = await service.process_message(
        message,
        mode=mode,
        course_id=course_id,
        assignment_id=assignment_id,
    )

    print(BANNER)
    print(response.message)
    print(BANNER)

    if response.tool_calls:
        tools = ", ".join(tc["tool"] for tc in response.tool_calls)
        print(f"🔧 Tools used: {tools}")
    if not response.success:
        print(f"❌ {response.metadata.get('error_type')}: {response.metadata.get('error')}")
        return 1
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=f"A★ Tutor ({GEMINI_MODEL})")
    parser.add_argument(
        "--mode",
        default=DEFAULT_MODE,
        choices=sorted(MODE_HINTS.keys()),
        help="Study mode (default: %(default)s)",
    )
    parser.add_argument("--msg", help="Message to send to the tutor")
    parser.add_argument("--course-id", type=int, help="Canvas course of the assignment in focus")
    parser.add_argument("--assignment-id", type=int, help="Canvas assignment in focus")
    parser.add_argument("--no-connect", action="store_true", help="Skip testing integrations before chatting")
    parser.add_argument("--check", action="store_true", help="Run an LLM health check and exit")
    parser.add_argument("--list-integrations", action="store_true", help="Test and list integrations, then exit")

    args = parser.parse_args(argv)

    if args.check:
        return asyncio.run(check())

    if args.list_integrations:
        return asyncio.run(list_integrations(test=not args.no_connect))

    if not args.msg:
        parser.error("--msg is required unless --check or --list-integrations is given")

    return asyncio.run(chat(
        args.msg,
        args.mode,
        args.course_id,
        args.assignment_id,
        connect=not args.no_connect,
    ))


if __name__ == "__main__":
    sys.exit(main())
