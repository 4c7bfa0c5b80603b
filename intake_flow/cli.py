"""CLI for intake-flow questionnaire engine."""

import json
import logging
from pathlib import Path
from typing import Annotated

import jsonschema
import pydantic
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from intake_flow import __version__
from intake_flow.config import STORE_ENV_VAR, get_store_path, load_global_config
from intake_flow.core.errors import IntakeFlowError
from intake_flow.graph import StepGraph
from intake_flow.io import load_answers
from intake_flow.pipeline import EngineConfig, FlowEngine
from intake_flow.registry.models import TemplateAssignment, TemplateSpec
from intake_flow.registry.store import read_document
from intake_flow.risk import Disposition

app = typer.Typer(
    name="intake-flow",
    help="Questionnaire flow engine for patient intake.",
    no_args_is_help=True,
)
console = Console()

SCHEMA_DIR = Path("schemas")
DEFAULT_SCHEMAS = {
    "template": SCHEMA_DIR / "template_spec.schema.json",
    "assignment": SCHEMA_DIR / "template_assignment.schema.json",
}

DISPOSITION_STYLES = {
    Disposition.SAFE: "green",
    Disposition.REVIEW: "yellow",
    Disposition.REJECT: "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through a Rich handler."""
    handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"intake-flow version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging"),
    ] = False,
) -> None:
    """intake-flow: Questionnaire flow engine for patient intake."""
    setup_logging(verbose)


def _build_engine(store: Path | None) -> FlowEngine:
    try:
        store_path = get_store_path(store)
        global_config = load_global_config()
    except IntakeFlowError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not store_path.exists():
        console.print(f"[red]Error:[/red] Template store not found: {store_path}")
        raise typer.Exit(1)

    template_schema = Path(global_config.template_schema_path or DEFAULT_SCHEMAS["template"])
    assignment_schema = Path(
        global_config.assignment_schema_path or DEFAULT_SCHEMAS["assignment"]
    )
    config = EngineConfig(
        store_path=store_path,
        template_schema_path=template_schema if template_schema.exists() else None,
        assignment_schema_path=assignment_schema if assignment_schema.exists() else None,
    )
    return FlowEngine(config)


@app.command()
def compose(
    tenant: Annotated[str, typer.Option("--tenant", "-t", help="Tenant ID")],
    treatment: Annotated[str, typer.Option("--treatment", "-r", help="Treatment ID")],
    store: Annotated[
        Path | None,
        typer.Option("--store", "-s", envvar=STORE_ENV_VAR, help="Path to template store"),
    ] = None,
) -> None:
    """Compose a treatment's questionnaire and print its steps."""
    engine = _build_engine(store)
    try:
        questionnaire = engine.compose(tenant, treatment)
    except IntakeFlowError as e:
        console.print(f"[red]Error composing questionnaire:[/red] {e}")
        raise typer.Exit(1)

    layout = questionnaire.layout
    console.print(f"[bold]{tenant}/{treatment}[/bold] ({layout.value}: {layout.display_name})")
    for ref in questionnaire.templates:
        scope = "global" if ref.is_global else "tenant"
        console.print(f"  {ref.section_type.value}: {ref.template_id} v{ref.version} ({scope})")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Section")
    table.add_column("Required")
    table.add_column("Dead-end")
    table.add_column("Conditional")
    table.add_column("Options", justify="right")
    for step in questionnaire.graph:
        table.add_row(
            str(step.position),
            step.id,
            step.section_type.value,
            "yes" if step.required else "no",
            "[red]yes[/red]" if step.is_dead_end else "no",
            "yes" if step.condition is not None else "-",
            str(len(step.options)),
        )
    console.print(table)

    for warning in questionnaire.graph.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning.code}: {warning.message}")


@app.command()
def validate(
    spec_type: Annotated[
        str,
        typer.Argument(help="Type of spec to validate: template, assignment"),
    ],
    spec_path: Annotated[
        Path,
        typer.Argument(help="Path to the spec file"),
    ],
    schema_path: Annotated[
        Path | None,
        typer.Option("--schema", help="Path to the schema file"),
    ] = None,
) -> None:
    """Validate a template or assignment document."""
    if spec_type not in DEFAULT_SCHEMAS:
        console.print(f"[red]Error:[/red] Unknown spec type: {spec_type}")
        raise typer.Exit(1)

    if not spec_path.exists():
        console.print(f"[red]Error:[/red] Spec file not found: {spec_path}")
        raise typer.Exit(1)

    try:
        data = read_document(spec_path)
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid:[/red] Could not parse {spec_path}: {e}")
        raise typer.Exit(1)

    if schema_path is None:
        schema_path = DEFAULT_SCHEMAS[spec_type]
    if schema_path.exists():
        with open(schema_path) as f:
            schema = json.load(f)
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            console.print(f"[red]Invalid:[/red] {e.message}")
            raise typer.Exit(1)
    else:
        console.print(f"[yellow]Warning:[/yellow] Schema file not found: {schema_path}")

    try:
        if spec_type == "template":
            template = TemplateSpec.model_validate(data)
            graph = StepGraph(template.steps)
            for warning in graph.warnings:
                console.print(f"[yellow]Warning:[/yellow] {warning.code}: {warning.message}")
        else:
            if not isinstance(data, dict):
                console.print("[red]Invalid:[/red] Assignment must be a mapping")
                raise typer.Exit(1)
            # Stored assignments take tenant and treatment from their path
            data.setdefault("tenant_id", spec_path.parent.name)
            data.setdefault("treatment_id", spec_path.stem)
            TemplateAssignment.model_validate(data)
    except (pydantic.ValidationError, IntakeFlowError) as e:
        console.print(f"[red]Invalid:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Valid:[/green] {spec_path}")


@app.command()
def assess(
    tenant: Annotated[str, typer.Option("--tenant", "-t", help="Tenant ID")],
    treatment: Annotated[str, typer.Option("--treatment", "-r", help="Treatment ID")],
    answers_path: Annotated[
        Path,
        typer.Option("--answers", "-a", help="Answers file (JSON, JSONL or YAML)"),
    ],
    store: Annotated[
        Path | None,
        typer.Option("--store", "-s", envvar=STORE_ENV_VAR, help="Path to template store"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON"),
    ] = False,
) -> None:
    """Replay recorded answers and report the flow status and disposition."""
    if not answers_path.exists():
        console.print(f"[red]Error:[/red] Answers file not found: {answers_path}")
        raise typer.Exit(1)

    engine = _build_engine(store)
    try:
        answers = load_answers(answers_path)
        session, assessment = engine.replay(tenant, treatment, answers)
    except (IntakeFlowError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        result = {
            "status": session.status.value,
            "current_step_id": session.state.current_step_id,
            "disposition": assessment.disposition.value,
            "flags": [flag.model_dump(mode="json") for flag in assessment.flags],
        }
        console.print_json(json.dumps(result))
        return

    console.print(f"[bold]Status:[/bold] {session.status.value}")
    if session.state.current_step_id:
        console.print(f"[bold]Current step:[/bold] {session.state.current_step_id}")
    style = DISPOSITION_STYLES[assessment.disposition]
    console.print(f"[bold]Disposition:[/bold] [{style}]{assessment.disposition.value}[/{style}]")
    for flag in assessment.flags:
        console.print(f"  {flag.step_id}: {flag.label} ({flag.risk_level.value})")


if __name__ == "__main__":
    app()
