from __future__ import annotations

import argparse
import os

from taskboard.config import load_config


def serve(host: str, port: int, *, reload: bool = False, memory: bool = False) -> None:
    """Run the web app under uvicorn."""
    import uvicorn  # defer import so `--help` stays fast

    if memory:
        # asgi.py reads the store choice from the environment at import time
        os.environ["TASKS_STORE"] = "memory"
    uvicorn.run(
        "taskboard.web.asgi:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


def build_parser() -> argparse.ArgumentParser:
    cfg = load_config()
    parser = argparse.ArgumentParser("taskboard")
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Serve the task board over HTTP")
    p_serve.add_argument("--host", default=cfg.host)
    p_serve.add_argument("--port", type=int, default=cfg.port)
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes (dev)")
    p_serve.add_argument(
        "--memory", action="store_true", help="Keep tasks in process memory instead of Redis"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    cmd = str(getattr(args, "cmd", None) or "")

    if cmd == "serve":
        serve(args.host, args.port, reload=args.reload, memory=args.memory)
        return

    # Default to help if unknown
    parser.print_help()


if __name__ == "__main__":
    main()
