#!/usr/bin/env python3
"""
Run the guest automation pipeline for one sandbox session.

Reads DATABASE_URL and (optionally) OPENAI_API_KEY from the environment or
.env; without an OpenAI key the rule-based fallbacks are used.

Usage:
    python scripts/run_automation.py 6f1c2a9e-4b7d-4e0a-9c3f-2d8e5b1a7c40
    python scripts/run_automation.py 6f1c2a9e-4b7d-4e0a-9c3f-2d8e5b1a7c40 --account-id 7 --json-logs
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from uuid import UUID

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / '.env')

from guest_automation.errors import GuestAutomationError
from guest_automation.logging import configure_logging, get_logger
from guest_automation.pipeline import AutomationPipeline

logger = get_logger('run_automation')


async def run(session_id: UUID, account_id: int | None) -> int:
    try:
        pipeline = await AutomationPipeline.from_env()
    except GuestAutomationError as e:
        print(f"Could not start pipeline: {e}", file=sys.stderr)
        return 2

    try:
        result = await pipeline.run_full_automation(session_id, account_id)
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return 0
    except GuestAutomationError as e:
        print(f"Pipeline failed: {e}", file=sys.stderr)
        return 1
    finally:
        await pipeline.close()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Run guest automation for a sandbox session'
    )
    parser.add_argument('session_id', type=UUID, help='Sandbox session id (UUID)')
    parser.add_argument(
        '--account-id', '-a',
        type=int,
        help='Owning account id; the run is refused if the session belongs to another account'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit JSON logs instead of console output'
    )

    args = parser.parse_args()

    if args.json_logs:
        configure_logging(json_output=True)

    sys.exit(asyncio.run(run(args.session_id, args.account_id)))


if __name__ == '__main__':
    main()
