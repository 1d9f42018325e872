"""Run retention sweeps once, outside the beat schedule."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Awaitable, Callable, Iterable

from app.monitoring.logging import configure_logging
from app.services.errors import EnumerationFailed
from app.services.jobs import FILES, PHOTOS, run_files_cleanup, run_photos_cleanup
from app.services.retention import SweepResult

RUNNERS: dict[str, Callable[[], Awaitable[SweepResult]]] = {
    FILES: run_files_cleanup,
    PHOTOS: run_photos_cleanup,
}


def _format_result(result: SweepResult) -> str:
    status = "✅" if not result.failed else "❌"
    return f"{status} {result.summary()}"


def print_results(results: Iterable[SweepResult]) -> None:
    for result in results:
        print(_format_result(result))
        for failure in result.failures:
            print(f"   {failure.item_id} [{failure.step.value}]: {failure.error}")


async def run(collections: list[str]) -> list[SweepResult]:
    return [await RUNNERS[name]() for name in collections]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "collection",
        nargs="?",
        default="all",
        choices=[*RUNNERS, "all"],
    )
    args = parser.parse_args(argv)
    collections = list(RUNNERS) if args.collection == "all" else [args.collection]

    configure_logging()
    try:
        results = asyncio.run(run(collections))
    except EnumerationFailed as exc:
        print(f"❌ {exc}")
        return 1
    print_results(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
