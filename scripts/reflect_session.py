#!/usr/bin/env python3
import argparse
import asyncio
import logging

from reflector.config import get_settings
from reflector.openrouter_client import OpenRouterClient
from reflector.reflector import Reflector, resolve_config
from reflector.workspace import WorkspaceResolver


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    env = {}
    if args.summary_model:
        env["REFLECTOR_SUMMARY_MODEL"] = args.summary_model
    if args.slug_model:
        env["REFLECTOR_SLUG_MODEL"] = args.slug_model
    config = resolve_config(settings, env)

    workspace = WorkspaceResolver(workspace_root=args.workspace_root)
    reflector = Reflector(OpenRouterClient(), workspace=workspace, settings=settings)

    processed = 0
    saved = 0
    skipped = 0
    for session_file in args.session_files:
        if args.dry_run:
            transcript = await reflector.load_transcript(session_file, config.maxChars)
            if transcript is None:
                skipped += 1
            else:
                processed += 1
            continue

        path = await reflector.reflect_file(session_file, config=config, agent_id=args.agent_id)
        processed += 1
        if path:
            saved += 1
            print(f"{session_file} -> {path}")
        else:
            skipped += 1

    print(f"reflect: processed={processed} saved={saved} skipped={skipped} dry_run={args.dry_run}")
    return 0 if saved or args.dry_run else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Summarize session logs into the agent memory directory.")
    parser.add_argument("session_files", nargs="+", help="Session JSONL files")
    parser.add_argument("--agent-id")
    parser.add_argument("--workspace-root", help="Override REFLECTOR_WORKSPACE_ROOT")
    parser.add_argument("--summary-model")
    parser.add_argument("--slug-model")
    parser.add_argument("--dry-run", action="store_true", help="Only build and validate transcripts")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
