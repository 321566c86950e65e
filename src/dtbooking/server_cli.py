"""``dtbooking-server``: run the booking API under uvicorn."""

import argparse
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dtbooking-server",
        description="DigitalTolk interpreter booking API",
    )
    parser.add_argument("--host", default=None, help="Bind host (default: DTBOOKING_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: DTBOOKING_PORT or 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="SQLite file database, tables created on startup, console logs",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Override DTBOOKING_LOG_LEVEL",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # Settings are read when dtbooking.main is imported, so set the env first
    if args.local:
        os.environ["DTBOOKING_LOCAL_MODE"] = "1"
        os.environ["DTBOOKING_LOCAL"] = "1"
    if args.log_level:
        os.environ["DTBOOKING_LOG_LEVEL"] = args.log_level

    import uvicorn

    from dtbooking.config import settings

    uvicorn.run(
        "dtbooking.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=args.log_level or settings.log_level,
    )


if __name__ == "__main__":
    main()
