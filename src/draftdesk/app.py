"""Command line entry point for the draftdesk authoring client."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, TextIO

from .services.errors import DraftDeskError, OperationCanceled
from .services.settings import Settings, SettingsStore, parse_bool, parse_setting, redact_secret
from .ui.bootstrap import ClientContext, create_client_context
from .ui.infrastructure import LoggingNotifier
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

Command = Callable[[ClientContext, argparse.Namespace, TextIO], Awaitable[int]]


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure logging; without ``--debug`` the level comes from ``DRAFTDESK_LOG_LEVEL``."""

    level = logging.DEBUG if debug else None
    log_path = logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (log file %s)", log_path)


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def main(argv: Sequence[str] | None = None, *, stream: TextIO | None = None) -> int:
    """Entry point invoked by the `draftdesk` console script."""

    destination = stream or sys.stdout
    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or _env_flag("DRAFTDESK_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("DRAFTDESK_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_USAGE

    overrides_mapping: Dict[str, Any] | None = cli_overrides or None
    settings = load_settings(resolved_path, store=settings_store, overrides=overrides_mapping)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides, stream=destination)
        return EXIT_OK

    command: Command | None = getattr(args, "handler", None)
    if command is None:
        parser.print_help(destination)
        return EXIT_USAGE

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    try:
        return asyncio.run(_run_command(command, settings, args, destination))
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Interrupted by user.")
        return EXIT_INTERRUPTED


async def _run_command(
    command: Command,
    settings: Settings,
    args: argparse.Namespace,
    stream: TextIO,
) -> int:
    context = create_client_context(settings, notifier=LoggingNotifier())
    try:
        return await command(context, args, stream)
    except OperationCanceled:
        _LOGGER.info("Request cancelled.")
        return EXIT_INTERRUPTED
    except DraftDeskError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        await context.aclose()


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


async def _cmd_draft_show(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    record = context.draft_store.load()
    if record is None:
        stream.write("No saved draft.\n")
        return EXIT_OK
    _write_json(record.to_payload(), stream)
    return EXIT_OK


async def _cmd_draft_clear(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    context.draft_store.clear()
    stream.write("Draft cleared.\n")
    return EXIT_OK


async def _cmd_analyze(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    result = await context.generation.analyze_prompt(args.prompt)
    _write_json(result, stream)
    return EXIT_OK


async def _cmd_generate(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    analysis = _parse_json_object(args.analysis_json, "--analysis-json") if args.analysis_json else None
    result = await context.generation.generate_blog(args.prompt, analysis)
    _write_json(result, stream)
    return EXIT_OK


async def _cmd_review(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    payload: Dict[str, Any] = {}
    for key in ("title", "content", "excerpt", "category"):
        value = getattr(args, key, None)
        if value is not None:
            payload[key] = value
    result = await context.review.review(args.content_id, payload or None)
    _write_json(result, stream)
    return EXIT_OK


async def _cmd_apply_review(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    payload: Dict[str, Any] = {}
    if args.suggestions:
        payload["suggestions"] = list(args.suggestions)
    for key in ("improved_content", "improved_title", "improved_excerpt"):
        value = getattr(args, key, None)
        if value is not None:
            payload[key] = value
    result = await context.review.apply_review(args.content_id, payload)
    _write_json(result, stream)
    return EXIT_OK


async def _cmd_restore_version(context: ClientContext, args: argparse.Namespace, stream: TextIO) -> int:
    result = await context.review.restore_version(args.content_id, args.version)
    _write_json(result, stream)
    return EXIT_OK


# ----------------------------------------------------------------------
# Argument parsing
# ----------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="draftdesk",
        add_help=True,
        description="Drive the blog authoring client: drafts, AI generation and reviews.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.draftdesk/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this invocation (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    draft = commands.add_parser("draft", help="Inspect or clear the saved draft.")
    draft_commands = draft.add_subparsers(dest="draft_command", metavar="ACTION", required=True)
    draft_commands.add_parser("show", help="Print the saved draft, if still valid.").set_defaults(
        handler=_cmd_draft_show
    )
    draft_commands.add_parser("clear", help="Delete the saved draft.").set_defaults(
        handler=_cmd_draft_clear
    )

    analyze = commands.add_parser("analyze", help="Analyze a generation prompt.")
    analyze.add_argument("prompt")
    analyze.set_defaults(handler=_cmd_analyze)

    generate = commands.add_parser("generate", help="Generate blog content from a prompt.")
    generate.add_argument("prompt")
    generate.add_argument(
        "--analysis-json",
        metavar="JSON",
        help="Prompt analysis object to send along with the prompt.",
    )
    generate.set_defaults(handler=_cmd_generate)

    review = commands.add_parser("review", help="Request an AI review of a post.")
    review.add_argument("--id", dest="content_id", help="Review a stored post by id.")
    review.add_argument("--title")
    review.add_argument("--content")
    review.add_argument("--excerpt")
    review.add_argument("--category")
    review.set_defaults(handler=_cmd_review)

    apply_review = commands.add_parser("apply-review", help="Apply review suggestions to a post.")
    apply_review.add_argument("content_id", metavar="ID")
    apply_review.add_argument(
        "--suggestion",
        dest="suggestions",
        action="append",
        default=[],
        help="Suggestion id or index to apply (repeatable).",
    )
    apply_review.add_argument("--improved-content")
    apply_review.add_argument("--improved-title")
    apply_review.add_argument("--improved-excerpt")
    apply_review.set_defaults(handler=_cmd_apply_review)

    restore = commands.add_parser("restore-version", help="Restore a previous version of a post.")
    restore.add_argument("content_id", metavar="ID")
    restore.add_argument("version", type=int)
    restore.set_defaults(handler=_cmd_restore_version)

    return parser


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return parse_bool(value)
    except ValueError:
        return default


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``--set KEY=VALUE`` entries into typed settings overrides."""

    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if not key:
            raise ValueError("Override is missing a field name.")
        overrides[key] = parse_setting(key, raw_value)
    return overrides



def _parse_json_object(raw: str, option: str) -> Dict[str, Any]:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"{option} must be valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise SystemExit(f"{option} must be a JSON object")
    return value


def _write_json(payload: Any, stream: TextIO) -> None:
    json.dump(payload, stream, indent=2, ensure_ascii=False)
    stream.write("\n")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    token = payload.get("access_token", "")
    if isinstance(token, str):
        payload["access_token"] = redact_secret(token)
    metadata = {
        "path": str(store.path),
        "secret_backend": getattr(store.vault, "strategy", "unknown"),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": payload, "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("DRAFTDESK_"))


if __name__ == "__main__":  # pragma: no cover - module execution
    sys.exit(main())
