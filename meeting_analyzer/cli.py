"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from .config import get_settings
from .errors import AnalyzerError
from .llm import GeminiLanguageModel
from .logging_setup import configure_logging
from .schemas.analyze import AnalyzeResponse
from .services.analysis_service import (
    analyze_media,
    analyze_transcript,
    check_upload_name,
    check_upload_size,
    resolve_model,
    run_with_timeout,
)
from .speakers.rename import parse_name_assignments
from .state import (
    AppState,
    analysis_failed,
    analysis_succeeded,
    display_analysis,
    display_transcript,
    edit_transcript,
    rename_speaker,
    select_file,
    start_analysis,
)
from .transcription import AssemblyAIEngine
from .views import render_text, render_transcript

logger = logging.getLogger(__name__)


async def _run_analysis(state: AppState) -> AppState:
    settings = get_settings()
    state = start_analysis(state)
    try:
        model = resolve_model(state.model, settings)
        llm = GeminiLanguageModel.from_settings(settings)
        if state.mode == "file":
            path = state.file_name or ""
            check_upload_name(path, settings)
            with open(path, "rb") as f:
                media = f.read()
            check_upload_size(len(media), settings)
            analysis, labeled = await run_with_timeout(
                analyze_media(media, os.path.basename(path), model, AssemblyAIEngine.from_settings(settings), llm),
                settings.ANALYZE_TIMEOUT_SECONDS,
            )
            return analysis_succeeded(state, analysis, labeled)
        analysis = await run_with_timeout(
            analyze_transcript(state.transcript, model, llm),
            settings.ANALYZE_TIMEOUT_SECONDS,
        )
        return analysis_succeeded(state, analysis)
    except AnalyzerError as e:
        return analysis_failed(state, e.message)


def _apply_names(state: AppState, assignments: Optional[List[str]]) -> AppState:
    for label, name in parse_name_assignments(assignments or []).items():
        state = rename_speaker(state, label, name)
    return state


def _print_result(state: AppState, as_json: bool) -> None:
    analysis = display_analysis(state)
    labeled = display_transcript(state)
    if analysis is None:
        return
    if as_json:
        body = AnalyzeResponse(analysis=analysis, labeled_transcript=labeled)
        print(body.model_dump_json(by_alias=True, exclude_none=True, indent=2))
        return
    print(render_text(analysis))
    if labeled is not None:
        print()
        print(render_transcript(labeled))


def _load_response(path: str) -> AnalyzeResponse:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and "analysis" not in data:
        data = {"analysis": data}
    return AnalyzeResponse.model_validate(data)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="meeting-analyzer")
    sub = parser.add_subparsers(dest="command")

    serve_cmd = sub.add_parser("serve", help="Run the web app.")
    serve_cmd.add_argument("--host", default="127.0.0.1", help="Bind address.")
    serve_cmd.add_argument("--port", type=int, default=8000, help="Port.")

    analyze_cmd = sub.add_parser("analyze", help="Analyze a transcript or recording.")
    source = analyze_cmd.add_mutually_exclusive_group(required=True)
    source.add_argument("--transcript", help="Path to a speaker-labeled transcript ('-' for stdin).")
    source.add_argument("--media", help="Path to an audio/video recording.")
    analyze_cmd.add_argument("--model", help="Model id (default from settings).")
    analyze_cmd.add_argument(
        "--name",
        action="append",
        metavar="LABEL=NAME",
        help="Display name for a speaker label, e.g. 'Speaker A=Sarah'. Repeatable.",
    )
    analyze_cmd.add_argument("--json", action="store_true", help="Print JSON instead of cards.")

    render_cmd = sub.add_parser("render", help="Render a saved /api/analyze response.")
    render_cmd.add_argument("path", help="Path to the saved JSON response.")
    render_cmd.add_argument("--name", action="append", metavar="LABEL=NAME", help="Speaker display name.")
    render_cmd.add_argument("--json", action="store_true", help="Print JSON instead of cards.")

    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "serve":
        import uvicorn

        configure_logging(settings)
        uvicorn.run("meeting_analyzer.main:app", host=args.host, port=args.port)
        return 0

    if args.command == "analyze":
        configure_logging(settings)
        state = AppState(model=args.model or settings.DEFAULT_MODEL)
        if args.media:
            state = select_file(state, args.media)
        elif args.transcript == "-":
            state = edit_transcript(state, sys.stdin.read())
        else:
            with open(args.transcript, "r", encoding="utf-8") as f:
                state = edit_transcript(state, f.read())
        try:
            state = asyncio.run(_run_analysis(state))
            state = _apply_names(state, args.name)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if state.error:
            print(f"Error: {state.error}", file=sys.stderr)
            return 1
        _print_result(state, args.json)
        return 0

    if args.command == "render":
        try:
            response = _load_response(args.path)
            state = analysis_succeeded(AppState(), response.analysis, response.labeled_transcript)
            state = _apply_names(state, args.name)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        _print_result(state, args.json)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
