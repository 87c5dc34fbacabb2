"""CLI entry points for the podtrunk API server and dispatcher worker."""

import argparse
import asyncio
import os


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="podtrunk-server",
        description="podtrunk API server",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite database",
    )
    parser.add_argument(
        "--no-dispatcher",
        action="store_true",
        help="Do not run the submission dispatcher inside the API process",
    )
    args = parser.parse_args(argv)

    if args.local:
        os.environ["PODTRUNK_LOCAL_MODE"] = "1"
    if args.no_dispatcher:
        os.environ["PODTRUNK_DISPATCHER_ENABLED"] = "0"

    import uvicorn

    uvicorn.run("podtrunk.main:app", host=args.host, port=args.port)


async def _run_worker(once: bool) -> int:
    from podtrunk.config import settings
    from podtrunk.db.engine import create_db_engine, create_session_factory
    from podtrunk.logging_config import configure_logging
    from podtrunk.main import build_pipeline
    from podtrunk.workers.scheduler import drain_queue, run_dispatcher

    configure_logging(log_level=settings.log_level, json_output=settings.json_logs and not settings.local_mode)

    engine = create_db_engine()
    session_factory = create_session_factory(engine)
    try:
        if once:
            return await drain_queue(session_factory, build_pipeline())
        await run_dispatcher(session_factory, build_pipeline())
        return 0
    finally:
        await engine.dispose()


def worker(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="podtrunk-worker",
        description="Run the submission dispatcher outside the API process",
    )
    parser.add_argument("--local", action="store_true", help="Local dev mode: SQLite database")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Dispatch until no job is runnable, then exit",
    )
    args = parser.parse_args(argv)

    if args.local:
        os.environ["PODTRUNK_LOCAL_MODE"] = "1"

    performed = asyncio.run(_run_worker(args.once))
    if args.once:
        print(f"Performed {performed} submission steps")


if __name__ == "__main__":
    main()
