"""Command-line entry point for DynaMaze releases."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .errors import ReleaseError
from .pipelines import PipelineContext, PipelineError, list_pipelines, run_pipeline
from .secrets import describe_secret, list_secrets, use_dotenv
from .settings import load_settings
from .utils import resolve_path, write_json

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command == "native":
        return _handle_release("native-release", args)
    if args.command == "web":
        return _handle_release("web-release", args)
    if args.command == "pipelines":
        _print_json({"pipelines": [spec.to_dict() for spec in list_pipelines()]})
        return 0
    if args.command == "secrets-list":
        return _handle_secrets_list(args)

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dynamaze-release", description="Build, stage and push DynaMaze to itch.io.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subparsers = parser.add_subparsers(dest="command", required=True)

    native = subparsers.add_parser("native", help="Release the native build for the current OS channel.")
    native.add_argument("--channel", help="Channel override (defaults to $TRAVIS_OS_NAME or the host OS).")
    _add_release_arguments(native)

    web = subparsers.add_parser("web", help="Release the pre-built web bundle.")
    _add_release_arguments(web)

    subparsers.add_parser("pipelines", help="List available release pipelines.")

    secrets = subparsers.add_parser("secrets-list", help="Describe publishing secrets without printing values.")
    secrets.add_argument("--workspace-root")

    return parser


def _add_release_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Release config (defaults to release.yaml in the workspace root).")
    parser.add_argument("--namespace", help="itch.io namespace override, e.g. user/game.")
    parser.add_argument("--workspace-root")
    parser.add_argument("--dry-run", action="store_true", help="Run every step except the final push.")
    parser.add_argument("--clean", action="store_true", help="Replace an existing staging directory.")
    parser.add_argument("--receipt", help="Also write the JSON result to this path.")


def _handle_release(slug: str, args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    use_dotenv(workspace / ".env")

    try:
        settings = load_settings(
            resolve_path(args.config, workspace) if args.config else None,
            workspace_root=workspace,
        )
    except ReleaseError as exc:
        logger.error("%s", exc)
        return exc.exit_code
    if args.namespace:
        settings = settings.model_copy(update={"namespace": args.namespace})

    context = PipelineContext(
        workspace_root=workspace,
        settings=settings,
        channel=getattr(args, "channel", None),
        dry_run=args.dry_run,
        clean=args.clean,
    )

    try:
        result = run_pipeline(slug, context)
    except PipelineError as exc:
        _emit(exc.result.to_dict(), args.receipt, workspace)
        return exc.exit_code
    except ReleaseError as exc:
        logger.error("%s", exc)
        return exc.exit_code

    _emit(result.to_dict(), args.receipt, workspace)
    logger.info("Release %s finished for %s.", slug, result.target)
    return 0


def _handle_secrets_list(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    use_dotenv(workspace / ".env")
    _print_json({"secrets": [describe_secret(spec.name) for spec in list_secrets()]})
    return 0


def _emit(payload: Mapping[str, object], receipt: Optional[str], workspace: Path) -> None:
    _print_json(payload)
    if receipt:
        write_json(payload, resolve_path(receipt, workspace))


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
