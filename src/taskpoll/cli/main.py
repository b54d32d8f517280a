# src/taskpoll/cli/main.py

"""
Demo entrypoint.

Initializes logging from settings, then polls a dice roll until it shows a six
or the retry budget runs out.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from collections.abc import Sequence

from ..config import get_settings
from ..core.ports import CancelFn, RetryCountFn
from ..logging_setup import setup_logging
from ..poller import Poller

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="taskpoll-demo", description="Roll a die until it shows a six.")
    parser.add_argument("--interval", type=int, default=100, help="ms between rolls (default: 100)")
    parser.add_argument("--retry-limit", type=int, default=5, help="failed rolls allowed (default: 5)")
    parser.add_argument("--seed", type=int, default=None, help="random seed for a reproducible game")
    return parser.parse_args(argv)


def make_dice_task(rng: random.Random):
    def roll(cancel: CancelFn, get_retry_count: RetryCountFn) -> int:
        value = rng.randint(1, 6)
        if value != 6:
            raise ValueError(f"Got {value}. Did not win.")
        cancel(True, get_retry_count() + 1)
        return value

    return roll


async def play(*, interval: int, retry_limit: int, seed: int | None = None) -> int | None:
    """Return the number of rolls it took to win, or None if every roll failed."""
    poller = Poller({"interval": interval, "retry_limit": retry_limit})
    try:
        return await poller.submit(make_dice_task(random.Random(seed)), run_on_start=True)
    except ValueError as exc:
        logger.info("Last roll: %s", exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    args = _parse_args(argv)
    rolls = asyncio.run(play(interval=args.interval, retry_limit=args.retry_limit, seed=args.seed))

    if rolls is None:
        logger.info("You have tried %d times. You lost.", args.retry_limit)
        return 1
    logger.info("You won after %d roll(s)!", rolls)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
