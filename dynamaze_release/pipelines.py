"""Native and web release pipelines."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from requests import Session

from .build import built_binary_path, run_release_build
from .butler import ButlerTool, fetch_butler
from .errors import ReleaseError
from .models import PipelineResult, StepReceipt
from .platforms import executable_suffix, host_channel, push_target, resolve_channel
from .settings import ReleaseSettings
from .staging import create_staging_dir, stage_native, stage_web, verify_layout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineError(ReleaseError):
    """Raised when a pipeline step fails; carries the partial result."""

    def __init__(self, message: str, result: PipelineResult) -> None:
        super().__init__(message)
        self.result = result

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        cause = self.__cause__
        if isinstance(cause, ReleaseError):
            return cause.exit_code
        return 1


@dataclass
class PipelineContext:
    workspace_root: Path
    settings: ReleaseSettings = field(default_factory=ReleaseSettings)
    channel: Optional[str] = None
    dry_run: bool = False
    clean: bool = False
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    session: Optional[Session] = None

    @property
    def staging_dir(self) -> Path:
        return self.workspace_root / self.settings.staging_dir


@dataclass(frozen=True)
class PipelineSpec:
    slug: str
    description: str
    runner: Callable[[PipelineContext], PipelineResult]
    steps: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "slug": self.slug,
            "description": self.description,
            "steps": list(self.steps),
        }


_PIPELINES: Dict[str, PipelineSpec] = {}


def register_pipeline(spec: PipelineSpec) -> None:
    if spec.slug in _PIPELINES:
        raise ValueError(f"Pipeline '{spec.slug}' already registered.")
    _PIPELINES[spec.slug] = spec


def get_pipeline(slug: str) -> PipelineSpec:
    try:
        return _PIPELINES[slug]
    except KeyError as exc:
        available = ", ".join(sorted(_PIPELINES))
        raise KeyError(f"Unknown pipeline slug '{slug}'. Available pipelines: {available}.") from exc


def list_pipelines() -> Iterable[PipelineSpec]:
    return _PIPELINES.values()


def run_pipeline(slug: str, context: PipelineContext) -> PipelineResult:
    return get_pipeline(slug).runner(context)


def _run_step(result: PipelineResult, step: str, action: Callable[[StepReceipt], T]) -> T:
    receipt = result.record(StepReceipt(step=step))
    try:
        value = action(receipt)
    except ReleaseError as exc:
        receipt.status = "failed"
        receipt.details.setdefault("error", str(exc))
        result.status = "failed"
        result.logs.append(f"{step} failed: {exc}")
        logger.error("Step '%s' failed: %s", step, exc)
        raise PipelineError(f"Pipeline '{result.pipeline}' failed at step '{step}': {exc}", result) from exc
    result.logs.append(f"{step} ok")
    return value


def _publish(
    context: PipelineContext,
    result: PipelineResult,
    tool_channel: str,
    expected_layout: List[str],
) -> None:
    settings = context.settings
    staging_dir = context.staging_dir

    def _verify(receipt: StepReceipt) -> None:
        receipt.details["entries"] = verify_layout(staging_dir, expected_layout)

    _run_step(result, "verify", _verify)

    tool: ButlerTool = _run_step(
        result,
        "butler-fetch",
        lambda receipt: fetch_butler(
            settings,
            context.workspace_root,
            tool_channel,
            session=context.session,
            receipt=receipt,
        ),
    )
    _run_step(result, "butler-probe", lambda receipt: tool.probe(receipt=receipt))

    if context.dry_run:
        receipt = result.record(StepReceipt(step="push", status="skipped"))
        receipt.details["target"] = result.target
        result.logs.append(f"Dry run enabled; push of {staging_dir} to {result.target} skipped.")
        return

    _run_step(
        result,
        "push",
        lambda receipt: tool.push(
            staging_dir,
            result.target,
            api_key_env=settings.butler_api_key_env,
            receipt=receipt,
        ),
    )


def native_release(context: PipelineContext) -> PipelineResult:
    """Build the game, stage binary and assets, and push to the OS channel."""

    settings = context.settings
    channel = resolve_channel(context.channel, context.env, settings.channel_env)
    suffix = executable_suffix(channel)
    result = PipelineResult(
        pipeline="native-release",
        channel=channel,
        target=push_target(settings.namespace, channel),
        dry_run=context.dry_run,
        staging_dir=str(context.staging_dir),
    )
    logger.info("Releasing native build for channel '%s' to %s.", channel, result.target)

    _run_step(result, "build", lambda receipt: run_release_build(settings, context.workspace_root, receipt))

    binary = built_binary_path(settings, context.workspace_root, suffix)

    def _stage(receipt: StepReceipt) -> None:
        create_staging_dir(context.staging_dir, clean=context.clean)
        result.staged = stage_native(context.workspace_root, context.staging_dir, settings.native_sources, binary)
        receipt.details["entries"] = list(result.staged)

    _run_step(result, "stage", _stage)

    expected = [Path(source).name for source in settings.native_sources] + [binary.name]
    _publish(context, result, channel, expected)
    return result


def web_release(context: PipelineContext) -> PipelineResult:
    """Stage the pre-built web bundle and push it to the web channel."""

    settings = context.settings
    channel = settings.web_channel
    # butler itself runs on the CI host, so its download follows the host OS.
    tool_channel = context.env.get(settings.channel_env) or host_channel()
    result = PipelineResult(
        pipeline="web-release",
        channel=channel,
        target=push_target(settings.namespace, channel),
        dry_run=context.dry_run,
        staging_dir=str(context.staging_dir),
    )
    logger.info("Releasing web bundle to %s.", result.target)

    def _stage(receipt: StepReceipt) -> None:
        create_staging_dir(context.staging_dir, clean=context.clean)
        result.staged = stage_web(context.workspace_root, context.staging_dir, settings.web_sources)
        receipt.details["entries"] = list(result.staged)

    _run_step(result, "stage", _stage)

    expected = [Path(source).name for source in settings.web_sources]
    _publish(context, result, tool_channel, expected)
    return result


def _register_builtin_pipelines() -> None:
    register_pipeline(
        PipelineSpec(
            slug="native-release",
            description="Build the release binary, stage it with assets and push to the OS channel.",
            runner=native_release,
            steps=["build", "stage", "verify", "butler-fetch", "butler-probe", "push"],
        )
    )
    register_pipeline(
        PipelineSpec(
            slug="web-release",
            description="Stage assets, pkg/ and index.html and push to the web channel.",
            runner=web_release,
            steps=["stage", "verify", "butler-fetch", "butler-probe", "push"],
        )
    )


_register_builtin_pipelines()
