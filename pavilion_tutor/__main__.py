"""Command line entry point: ``pavilion-tutor serve`` or ``pavilion-tutor passages``."""
from __future__ import annotations

import argparse
import sys

from pavilion_tutor.config import Settings, load_settings
from pavilion_tutor.content import load_content

PREVIEW_CHARS = 40


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pavilion-tutor",
        description="Reading companion for 滕王阁序: explanations, narration, tutor chat and a quiz",
    )
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", help="Bind address (settings: host)")
    serve.add_argument("--port", type=int, help="Port (settings: port)")

    commands.add_parser("passages", help="List the loaded passages and quiz size")
    return parser


def serve(settings: Settings, host: str | None = None, port: int | None = None) -> None:
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    print(f"Starting Pavilion Tutor on http://{host}:{port}")
    uvicorn.run("pavilion_tutor.app:app", host=host, port=port, timeout_graceful_shutdown=5)


def list_passages(settings: Settings) -> None:
    content = load_content(settings.content_full_path)
    for p in content.passages:
        preview = p.content
        if len(preview) > PREVIEW_CHARS:
            preview = preview[:PREVIEW_CHARS] + "…"
        print(f"  [{p.id}] {preview}")
    print(f"\n{len(content.passages)} passages, {len(content.questions)} quiz questions")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()

    if args.command == "passages":
        try:
            list_passages(settings)
        except (OSError, KeyError, ValueError) as e:
            print(f"Cannot load {settings.content_full_path}: {e}", file=sys.stderr)
            return 1
        return 0

    serve(settings, getattr(args, "host", None), getattr(args, "port", None))
    return 0


if __name__ == "__main__":
    sys.exit(main())
