# main.py
import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from genctl.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from genctl.adapters.artifact_sink_inmemory import InMemoryArtifactSink
from genctl.app_factory import create_controller
from genctl.core.config import JobControllerConfig
from genctl.core.exceptions import ValidationError
from genctl.core.logging_config import configure_logging
from genctl.core.models.job import ERROR_ACTIONS, ErrorInfo, JobInput, JobResult, JobState
from genctl.core.settings import app_settings, logger


# main lives at the outermost layer (not in core)
# Instantiates the concrete adapters
# Wires dependencies together
# Runs a single generation job


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run one generation job and wait for its artifact")
    parser.add_argument("source", help="Source image URL or uploaded file reference")
    parser.add_argument("--tool", default=None, help="Editing tool or model path (default: configured model)")
    parser.add_argument("--prompt", default=None, help="Text prompt passed to the model")
    parser.add_argument("--mask", default=None, help="Mask image URL for inpainting tools")
    parser.add_argument("--kind", choices=("image", "video"), default="image", help="Expected artifact kind")
    parser.add_argument("--label", default=None, help="Label stored with the artifact")
    parser.add_argument(
        "--simulate", action="store_true", help="Use the local simulator instead of the remote backend"
    )
    parser.add_argument("--poll-interval-ms", type=int, default=None, help="Override GENCTL_POLL_INTERVAL_MS")
    parser.add_argument("--max-attempts", type=int, default=None, help="Override GENCTL_MAX_ATTEMPTS")
    return parser


def build_config(args: argparse.Namespace) -> JobControllerConfig:
    config = JobControllerConfig.from_app_settings(app_settings)
    overrides = {}
    if args.simulate:
        overrides["use_simulated_backend"] = True
    if args.poll_interval_ms is not None:
        overrides["poll_interval_ms"] = args.poll_interval_ms
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if not overrides:
        return config
    # re-validate so CLI overrides obey the same bounds as settings
    return JobControllerConfig.model_validate({**config.model_dump(), **overrides})


async def run_job(args: argparse.Namespace, console: Console) -> int:
    config = build_config(args)
    sink = InMemoryArtifactSink()
    job_input = JobInput(
        source=args.source,
        mask=args.mask,
        prompt=args.prompt,
        tool=args.tool,
        kind=args.kind,
        label=args.label,
    )

    async def drive(http_client: Optional[AioHttpClientAdapter]) -> int:
        controller = create_controller(config=config, sink=sink, http_client=http_client)
        outcome: dict = {}

        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task("generating", total=100)

            controller.on_progress(lambda value: progress.update(task_id, completed=value))
            controller.on_warning(lambda message: console.print(f"[yellow]warning:[/yellow] {message}"))

            def completed(result: JobResult) -> None:
                outcome["result"] = result

            def failed(error: ErrorInfo) -> None:
                outcome["error"] = error

            controller.on_complete(completed)
            controller.on_error(failed)

            try:
                controller.start(job_input)
            except ValidationError as exc:
                info = exc.to_error_info()
                console.print(f"[red]{info.message}[/red]\n{info.action}")
                return 2

            try:
                state = await controller.wait()
            except asyncio.CancelledError:
                await controller.dispose()
                raise

        if "result" in outcome:
            result: JobResult = outcome["result"]
            console.print(f"[green]{result.kind} ready:[/green] {result.artifact_url}")
            return 0

        error: Optional[ErrorInfo] = outcome.get("error") or state.error
        if error is not None:
            console.print(f"[red]{error.kind}:[/red] {error.message}")
            if error.diagnostic:
                console.print(f"[dim]{error.diagnostic}[/dim]")
            console.print(error.action or ERROR_ACTIONS[error.kind])
        elif state.status == JobState.cancelled:
            console.print("[yellow]job cancelled[/yellow]")
        return 1

    if config.use_simulated_backend:
        return await drive(None)
    async with AioHttpClientAdapter(default_timeout=app_settings.GENCTL_REQUEST_TIMEOUT) as client:
        return await drive(client)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    # Central logging configuration before anything logs
    configure_logging(app_settings.GENCTL_LOG_LEVEL)
    app_settings.print_settings(logger)

    console = Console()
    try:
        exit_code = asyncio.run(run_job(args, console))
    except KeyboardInterrupt:
        console.print("[yellow]interrupted[/yellow]")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
