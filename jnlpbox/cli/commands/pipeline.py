"""Pipeline stage commands: normalize, sign and pack."""

from collections.abc import Sequence

import typer

from jnlpbox.adapters import create_jarsigner_adapter
from jnlpbox.cli.app import AppContext
from jnlpbox.cli.decorators import handle_errors
from jnlpbox.cli.helpers.output import (
    get_console,
    print_batch_result,
    print_success_message,
)
from jnlpbox.cli.helpers.parameters import (
    ArtifactsOption,
    DeleteUnpackedOption,
    TargetArgument,
    WorkersOption,
    resolve_artifacts,
)
from jnlpbox.config.models import JnlpboxSettings
from jnlpbox.core.errors import BatchFailedError
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.artifact import Artifact
from jnlpbox.models.results import BatchResult
from jnlpbox.pipeline import (
    Stage,
    StageContext,
    create_descriptor_builder,
    create_orchestrator,
    create_platform_table,
)
from jnlpbox.protocols import SignerProtocol


logger = get_struct_logger(__name__)


def _stage_context(
    settings: JnlpboxSettings,
    artifacts: Sequence[Artifact],
    signer: SignerProtocol | None = None,
    with_descriptor: bool = True,
    delete_unpacked: bool | None = None,
) -> StageContext:
    descriptor = None
    if with_descriptor:
        platforms = create_platform_table(settings.environments)
        descriptor = create_descriptor_builder(
            settings.descriptor, artifacts, platforms
        )
    if delete_unpacked is None:
        delete_unpacked = settings.pack.delete_unpacked_jars
    return StageContext(
        security=settings.security,
        packer=settings.packer,
        delete_unpacked_jars=delete_unpacked,
        signer=signer,
        descriptor=descriptor,
    )


def _run_stage(
    stage: Stage,
    context: StageContext,
    artifacts: Sequence[Artifact],
    workers: int,
) -> BatchResult:
    """Run ``stage`` and print the per-artifact table, also when it failed."""
    orchestrator = create_orchestrator(context, workers)
    console = get_console()
    try:
        result = orchestrator.run(stage, artifacts)
    except BatchFailedError as e:
        print_batch_result(e.result, console)
        raise
    print_batch_result(result, console)
    return result


@handle_errors
def normalize(
    ctx: typer.Context,
    target: TargetArgument,
    artifacts_file: ArtifactsOption = None,
    workers: WorkersOption = None,
) -> None:
    """Strip stale signatures, add security attributes and pack-normalize jars.

    Run this before signing. Features only receive their manifest
    attributes; plugins marked shouldPack are also normalized.
    """
    app_ctx: AppContext = ctx.obj
    settings = app_ctx.settings
    artifacts = resolve_artifacts(target, artifacts_file)

    context = _stage_context(settings, artifacts)
    _run_stage(Stage.NORMALIZE, context, artifacts, workers or settings.workers)


@handle_errors
def sign(
    ctx: typer.Context,
    target: TargetArgument,
    artifacts_file: ArtifactsOption = None,
    workers: WorkersOption = None,
) -> None:
    """Sign every jar with jarsigner."""
    app_ctx: AppContext = ctx.obj
    settings = app_ctx.settings
    if settings.signing.skip:
        logger.info("signing_skipped")
        print_success_message("Signing skipped (signing.skip is set)")
        return

    artifacts = resolve_artifacts(target, artifacts_file)
    signer = create_jarsigner_adapter(settings.signing)
    context = _stage_context(settings, artifacts, signer=signer)
    _run_stage(Stage.SIGN, context, artifacts, workers or settings.workers)


@handle_errors
def pack(
    ctx: typer.Context,
    target: TargetArgument,
    artifacts_file: ArtifactsOption = None,
    workers: WorkersOption = None,
    delete_unpacked: DeleteUnpackedOption = None,
) -> None:
    """Write a .pack.gz next to every normalized plugin jar."""
    app_ctx: AppContext = ctx.obj
    settings = app_ctx.settings
    artifacts = resolve_artifacts(target, artifacts_file)

    context = _stage_context(
        settings,
        artifacts,
        with_descriptor=False,
        delete_unpacked=delete_unpacked,
    )
    _run_stage(Stage.PACK, context, artifacts, workers or settings.workers)


def register_commands(app: typer.Typer) -> None:
    """Register pipeline commands with the main app.

    Args:
        app: The main Typer app
    """
    app.command(name="normalize")(normalize)
    app.command(name="sign")(sign)
    app.command(name="pack")(pack)
