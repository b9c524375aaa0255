"""Command line entry points: the API server and a standalone clock process."""

import argparse
import asyncio
import logging
import os

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cirrus-server", description="Cirrus application lifecycle controller")
    parser.add_argument("--local", action="store_true", help="SQLite database, no Redis")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="run the HTTP API (default)")
    serve.add_argument("--host", help="bind host (default: CIRRUS_HOST)")
    serve.add_argument("--port", type=int, help="bind port (default: CIRRUS_PORT)")

    clock = commands.add_parser("clock", help="run periodic jobs without the HTTP API")
    clock.add_argument("--once", action="store_true", help="offer every job once and exit")
    return parser


async def run_clock_process(config, once: bool = False) -> list[str]:
    """Drive the clock jobs from a process of its own.

    Several clock processes may run against one database; the executor
    lets only one of them run a given job per interval.
    """
    from cirrus.clock.distributed_executor import DistributedExecutor
    from cirrus.clock.scheduler import default_jobs, run_clock_tick
    from cirrus.db.engine import create_db_engine, create_session_factory

    engine = create_db_engine(config.effective_database_url)
    if config.local_mode:
        from cirrus.db.base import Base
        import cirrus.db.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    executor = DistributedExecutor(create_session_factory(engine))
    jobs = default_jobs(config)
    try:
        while True:
            ran = await run_clock_tick(executor, jobs, config)
            if ran:
                logger.info("Clock ran jobs: %s", ", ".join(ran))
            if once:
                return ran
            await asyncio.sleep(config.clock_poll_interval)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    # Settings are read on first import, so the mode flag must land in the
    # environment before anything imports cirrus.config.
    if args.local:
        os.environ["CIRRUS_LOCAL_MODE"] = "1"

    from cirrus.config import Settings

    config = Settings()

    if args.command == "clock":
        from cirrus.logging_config import configure_logging

        configure_logging(log_level=config.log_level, json_output=not config.local_mode)
        asyncio.run(run_clock_process(config, once=args.once))
        return

    import uvicorn

    uvicorn.run(
        "cirrus.main:app",
        host=getattr(args, "host", None) or config.host,
        port=getattr(args, "port", None) or config.port,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
