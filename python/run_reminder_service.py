#!/usr/bin/env python3
"""
Launch the interview reminder service.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the interview reminder service.",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Service bind host.")
    parser.add_argument("--port", type=int, default=8780, help="Service bind port.")
    parser.add_argument(
        "--seed-roster",
        default=None,
        help="Optional path to a JSON list of candidates loaded at startup.",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between reminder checks (default: 5).",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Minutes ahead of an interview when reminders start (default: 30).",
    )
    parser.add_argument(
        "--bucket",
        type=int,
        default=None,
        help="Minutes between successive upcoming reminders (default: 5).",
    )
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    os.environ["SERVICE_HOST"] = args.host
    os.environ["SERVICE_PORT"] = str(args.port)
    if args.seed_roster:
        os.environ["SEED_ROSTER_PATH"] = str(Path(args.seed_roster).expanduser())
    if args.poll_interval is not None:
        os.environ["REMINDER_POLL_INTERVAL_SECONDS"] = str(args.poll_interval)
    if args.horizon is not None:
        os.environ["REMINDER_HORIZON_MINUTES"] = str(args.horizon)
    if args.bucket is not None:
        os.environ["REMINDER_BUCKET_MINUTES"] = str(args.bucket)

    from reminder_service import app  # Import after env config

    print(
        f"Starting interview reminder service bind=http://{args.host}:{args.port} "
        f"seed_roster={os.environ.get('SEED_ROSTER_PATH', 'none')}"
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
