"""
Main entry point for the LifeOS calendar optimizer
"""

import asyncio
import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from lifeos import __version__
from lifeos.config import get_settings
from lifeos.optimization.context import OptimizationContext
from lifeos.utils import get_logger, setup_logging

if TYPE_CHECKING:
    from lifeos.optimization.models import OptimizationRun


def render_run(run: "OptimizationRun", console: Console) -> None:
    """Print a run as a table of ranked suggestions."""
    table = Table(title="Optimization suggestions")
    table.add_column("Score", justify="right")
    table.add_column("Type")
    table.add_column("Reason")
    table.add_column("Status")
    for suggestion in run.suggestions:
        if suggestion.id in run.auto_applied:
            status = "applied"
        elif suggestion.id in run.failed:
            status = "failed"
        else:
            status = "pending"
        table.add_row(
            f"{suggestion.score:.2f}", suggestion.type.value, suggestion.reason, status
        )
    console.print(table)
    console.print(run.summary)


async def main() -> None:
    """Run one optimization pass, then keep the monitor running with --monitor."""
    setup_logging()
    logger = get_logger("main")
    settings = get_settings()
    logger.info(
        "Starting LifeOS optimizer", version=__version__, mock_mode=settings.is_mock_mode
    )

    context = OptimizationContext(settings)
    try:
        run = await context.optimizer.run_full_optimization()
        render_run(run, Console())
        if "--monitor" in sys.argv[1:]:
            await context.start()
            await asyncio.Event().wait()
    finally:
        await context.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nOptimizer stopped by user")
        sys.exit(0)
