"""CLI commands for persona runs and service repository provisioning."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import DEFAULT_CONFIG_NAME, ConfigurationError, Settings, load_config, write_default_config
from .control_plane import ControlPlane, DryRunControlPlane, GitHubControlPlane
from .defaults import features_from_config, labels_from_config
from .extraction import DirectiveExtractor, ExtractionError
from .models import AnthropicClient, ModelClient
from .orchestrator import Orchestrator, RunAction, RunSummary
from .personas import PersonaRole, resolve_role
from .planning.executor import ProvisioningExecutor, ProvisioningResult
from .planning.planner import ProvisioningPlanner
from .planning.schemas import is_valid_repository_name
from .planning.steps import ProvisioningStep
from .templates import load_workflow_templates

APP_HELP = "Persona-driven service repository provisioning."

EXIT_ABORTED = 1
EXIT_PARTIAL_FAILURE = 3

app = typer.Typer(help=APP_HELP)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_settings(config_path: Optional[Path]) -> Settings:
    if config_path is None:
        default_path = Path(DEFAULT_CONFIG_NAME)
        config_path = default_path if default_path.exists() else None
    try:
        return Settings.from_config(load_config(config_path))
    except ConfigurationError as error:
        typer.echo(f"Configuration error: {error}")
        raise typer.Exit(code=1) from error


def _build_model_client(settings: Settings) -> ModelClient:
    return AnthropicClient(
        api_key=settings.require_model_credentials(),
        base_url=settings.model_endpoint,
        model=settings.model_name,
        api_version=settings.model_api_version,
        max_tokens=settings.max_tokens,
        timeout=settings.model_timeout,
    )


def _build_control_plane(settings: Settings, *, dry_run: bool) -> ControlPlane:
    if dry_run:
        return DryRunControlPlane()
    return GitHubControlPlane(
        token=settings.require_github_token(),
        api_url=settings.github_api_url,
        timeout=settings.github_timeout,
    )


def _build_planner(settings: Settings) -> ProvisioningPlanner:
    try:
        labels = labels_from_config(settings.label_overrides)
    except ValueError as error:
        raise ConfigurationError(f"Invalid label override: {error}") from error
    return ProvisioningPlanner(
        workflows=load_workflow_templates(settings.workflow_paths),
        labels=labels,
    )


def _build_extractor(settings: Settings) -> DirectiveExtractor:
    try:
        baseline = features_from_config(settings.feature_overrides)
    except ValidationError as error:
        raise ConfigurationError(f"Invalid feature override: {error}") from error
    return DirectiveExtractor(baseline_features=baseline)


def _parse_persona(value: str) -> PersonaRole:
    try:
        return resolve_role(value)
    except ValueError as error:
        raise typer.BadParameter(str(error), param_hint="PERSONA") from error


def _parse_action(value: str) -> RunAction:
    try:
        return RunAction(value.strip().lower())
    except ValueError as error:
        choices = ", ".join(action.value for action in RunAction)
        raise typer.BadParameter(f"Unknown action '{value}'. Expected one of: {choices}.", param_hint="ACTION") from error


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as error:
        typer.echo(f"Unable to read {what} {path}: {error}")
        raise typer.Exit(code=1) from error


def _render_steps(steps: list[ProvisioningStep]) -> None:
    for index, step in enumerate(steps, start=1):
        typer.echo(f"  {index:>2}. {step.kind.value:<17} {step.target} [{step.policy.value}]")


def _render_result(result: ProvisioningResult) -> None:
    for entry in result.entries:
        line = f"- {entry.step.target}: {entry.outcome.value}"
        if entry.reason:
            line = f"{line} ({entry.reason})"
        typer.echo(line)
    if result.aborted:
        typer.echo("Remaining steps were not attempted.")
    typer.echo(f"Provisioning status: {result.status.value}")


def _render_summary(summary: RunSummary) -> None:
    """Print a human-readable account of the run."""
    typer.echo("Run summary:")
    typer.echo(f"- Persona: {summary.persona.value}")
    typer.echo(f"- Action: {summary.action.value}")
    typer.echo(f"- State: {summary.state.value}")
    if summary.scratch_path:
        typer.echo(f"- Response saved to: {summary.scratch_path.as_posix()}")
    if summary.directive and summary.directive.service_name:
        typer.echo(f"- Service: {summary.directive.service_name}")
        typer.echo(f"- Tech stack: {', '.join(summary.directive.tech_stack)}")
    if summary.result is not None:
        created = [entry.step.target for entry in summary.result.succeeded]
        if created:
            typer.echo("Created resources:")
            for target in created:
                typer.echo(f"  - {target}")
        failures = summary.result.failures
        if failures:
            typer.echo("Failed steps:")
            for entry in failures:
                typer.echo(f"  ! {entry.reason}")
        typer.echo(f"Provisioning status: {summary.result.status.value}")
    if summary.error:
        typer.echo(f"Error ({summary.error_kind}): {summary.error}")
    if summary.log_path:
        typer.echo(f"- Run log: {summary.log_path.as_posix()}")


@app.command()
def run(
    persona: str = typer.Argument(..., help="Persona: architect, developer or qa."),
    prompt_file: Path = typer.Argument(..., help="File containing the user prompt."),
    action: str = typer.Argument(RunAction.ANALYZE.value, help="analyze or create-service."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the YAML configuration file."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Record control-plane calls instead of sending them."),
    scratch: Optional[Path] = typer.Option(None, "--scratch", help="Where to write the raw model response."),
) -> None:
    """Run a persona against a prompt and optionally provision the service it describes."""
    role = _parse_persona(persona)
    run_action = _parse_action(action)
    if run_action is RunAction.CREATE_SERVICE and role is not PersonaRole.ARCHITECT:
        raise typer.BadParameter("create-service requires the architect persona.", param_hint="ACTION")

    settings = _load_settings(config)
    prompt = _read_text(prompt_file, "prompt file")

    try:
        client = _build_model_client(settings)
        control_plane = _build_control_plane(
            settings,
            dry_run=dry_run or run_action is RunAction.ANALYZE,
        )
        orchestrator = Orchestrator(
            client=client,
            control_plane=control_plane,
            owner=settings.org,
            extractor=_build_extractor(settings),
            planner=_build_planner(settings),
            scratch_path=scratch or settings.scratch_path,
            logs_dir=settings.logs_dir,
        )
    except ConfigurationError as error:
        typer.echo(f"Configuration error: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Running seedkit with {role.value} persona...")
    summary = orchestrator.run(role, prompt, run_action)
    if summary.response_text is not None:
        typer.echo("Model response:")
        typer.echo(summary.response_text)
    _render_summary(summary)

    if summary.aborted:
        raise typer.Exit(code=EXIT_ABORTED)
    if summary.partial_failure:
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE)


@app.command("create-repo")
def create_repo(
    name: str = typer.Argument(..., help="Repository name."),
    description: str = typer.Argument("Service repository", help="Repository description."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the YAML configuration file."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Record control-plane calls instead of sending them."),
) -> None:
    """Create a repository with the workflow templates and label set, without a model call."""
    if not is_valid_repository_name(name):
        raise typer.BadParameter(f"'{name}' is not a valid repository name.", param_hint="NAME")

    settings = _load_settings(config)
    try:
        control_plane = _build_control_plane(settings, dry_run=dry_run)
        planner = _build_planner(settings)
    except ConfigurationError as error:
        typer.echo(f"Configuration error: {error}")
        raise typer.Exit(code=1) from error

    steps = planner.plan_repository_setup(name, description)
    result = ProvisioningExecutor(settings.org).execute(steps, control_plane)
    _render_result(result)
    if result.aborted:
        raise typer.Exit(code=EXIT_ABORTED)
    if result.failures:
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE)
    typer.echo(f"Repository creation complete: {settings.org}/{name}")


@app.command()
def plan(
    response_file: Path = typer.Argument(..., help="Saved model response to interpret."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the YAML configuration file."),
) -> None:
    """Show the steps a saved model response would provision, without executing them."""
    settings = _load_settings(config)
    text = _read_text(response_file, "response file")
    try:
        extractor = _build_extractor(settings)
        planner = _build_planner(settings)
    except ConfigurationError as error:
        typer.echo(f"Configuration error: {error}")
        raise typer.Exit(code=1) from error

    try:
        directive = extractor.extract(text)
        steps = planner.plan(directive)
    except ExtractionError as error:
        typer.echo(f"Extraction failed: {error}")
        raise typer.Exit(code=EXIT_ABORTED) from error

    typer.echo(f"Service: {directive.service_name}")
    typer.echo(f"Tech stack: {', '.join(directive.tech_stack)}")
    typer.echo(f"Planned steps for {settings.org}/{directive.service_name}:")
    _render_steps(steps)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path(DEFAULT_CONFIG_NAME), help="Where to write the configuration."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Write the default YAML configuration."""
    if path.exists() and not force:
        typer.echo(f"{path} already exists; pass --force to overwrite.")
        raise typer.Exit(code=1)
    write_default_config(path)
    typer.echo(f"Wrote default configuration to {path}")


if __name__ == "__main__":
    app()
