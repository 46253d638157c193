"""Release tooling for shipping DynaMaze builds to itch.io."""

__version__ = "0.1.0"
from .butler import ButlerTool, butler_download_url, fetch_butler
from .errors import (
    ButlerError,
    ChannelError,
    CommandError,
    ReleaseError,
    SettingsError,
    StagingError,
)
from .models import PipelineResult, StepReceipt
from .pipelines import (
    PipelineContext,
    PipelineError,
    PipelineSpec,
    get_pipeline,
    list_pipelines,
    native_release,
    run_pipeline,
    web_release,
)
from .platforms import butler_platform_tag, executable_suffix, push_target, resolve_channel
from .settings import ReleaseSettings, load_settings

__all__ = [
    "__version__",
    "ButlerTool",
    "butler_download_url",
    "fetch_butler",
    "ButlerError",
    "ChannelError",
    "CommandError",
    "ReleaseError",
    "SettingsError",
    "StagingError",
    "PipelineResult",
    "StepReceipt",
    "PipelineContext",
    "PipelineError",
    "PipelineSpec",
    "get_pipeline",
    "list_pipelines",
    "native_release",
    "run_pipeline",
    "web_release",
    "butler_platform_tag",
    "executable_suffix",
    "push_target",
    "resolve_channel",
    "ReleaseSettings",
    "load_settings",
]
