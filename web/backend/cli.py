"""Local/dev runner for the MediaFlow web backend.

Run from `web/` with `python -m backend.cli`; flags default to the same
environment variables as `mediaflow serve`.
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="python -m backend.cli", add_help=True)
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    p.add_argument("--reload", action="store_true", help="Enable auto-reload (dev)")
    p.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "info"))
    p.add_argument("--flows-dir", default=os.getenv("MEDIAFLOW_FLOWS_DIR") or "", help="Directory of saved flows")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    if isinstance(args.flows_dir, str) and args.flows_dir.strip():
        os.environ["MEDIAFLOW_FLOWS_DIR"] = args.flows_dir.strip()

    logging.basicConfig(level=str(args.log_level).upper())
    uvicorn.run(
        "backend.main:app",
        host=str(args.host),
        port=int(args.port),
        reload=bool(args.reload),
        log_level=str(args.log_level),
    )


if __name__ == "__main__":
    main()
