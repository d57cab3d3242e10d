"""Command-line interface for MediaFlow.

Current implemented features:
- order:    print a workflow's execution order
- validate: report missing required inputs and incompatible edges
- export:   rewrite a workflow file in the editor's export format
- serve:    run the web backend (FastAPI)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .visual.executor import plan_visual_flow
from .visual.scheduler import CycleDetectedError, execution_order
from .workflow_io import WorkflowFormatError, load_workflow, save_workflow


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mediaflow", add_help=True)
    p.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "warning"))
    sub = p.add_subparsers(dest="command")

    order = sub.add_parser("order", help="Print node ids in execution order")
    order.add_argument("workflow", help="Path to a workflow JSON file")

    validate = sub.add_parser("validate", help="Check required inputs and edge types (JSON report)")
    validate.add_argument("workflow", help="Path to a workflow JSON file")

    export = sub.add_parser("export", help="Rewrite a workflow in the editor export format")
    export.add_argument("workflow", help="Path to a workflow JSON file")
    export.add_argument("--out", required=True, help="Output JSON path")

    serve = sub.add_parser("serve", help="Run the web backend (FastAPI)")
    serve.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (dev)")

    return p


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = _build_parser()
    ns = parser.parse_args(args)
    logging.basicConfig(level=str(ns.log_level).upper())

    if ns.command in ("order", "validate", "export"):
        try:
            flow = load_workflow(ns.workflow)
        except (OSError, WorkflowFormatError) as e:
            sys.stderr.write(f"Failed to load workflow: {e}\n")
            return 2

        if ns.command == "order":
            try:
                ordered = execution_order(flow)
            except CycleDetectedError as e:
                sys.stderr.write(f"{e}\n")
                return 1
            for node in ordered:
                sys.stdout.write(node.id + "\n")
            return 0

        if ns.command == "validate":
            plan = plan_visual_flow(flow)
            report = plan.model_dump(mode="json")
            report["ready"] = plan.ready
            sys.stdout.write(json.dumps(report, indent=2, ensure_ascii=False) + "\n")
            return 0 if plan.ready else 1

        out = save_workflow(flow, ns.out)
        sys.stdout.write(str(out) + "\n")
        return 0

    if ns.command == "serve":
        try:
            import uvicorn  # type: ignore
        except Exception:
            sys.stderr.write(
                "Server dependencies are not installed.\n"
                "Install with: pip install \"mediaflow[server]\"\n"
            )
            return 2

        uvicorn.run(
            "web.backend.main:app",
            host=str(ns.host),
            port=int(ns.port),
            reload=bool(ns.reload),
            log_level=str(ns.log_level).lower(),
        )
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
