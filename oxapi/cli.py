import json
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from oxapi.codegen.codegen import Codegen, build_model
from oxapi.codegen.docs import model_docs
from oxapi.codegen.model import Model
from oxapi.codegen.schema import SchemaLoader
from oxapi.config import BuildOptions, NamingRules, get_config
from oxapi.exceptions import OxapiError

console = Console()
app = typer.Typer(
    name='oxapi',
    help='Build typed client models from OpenAPI specifications',
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Show debug logging')
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def build(
    config: Annotated[
        str | None,
        typer.Option(
            '--config', '-c', help='Path to configuration file (YAML or JSON)'
        ),
    ] = None,
) -> None:
    """Build the model of every configured document.

    If no config file is specified, will look for default config files
    in the current directory or a [tool.oxapi] table in pyproject.toml.

    Examples:
        oxapi build
        oxapi build --config my-config.yaml
        oxapi build -c config.json
    """
    try:
        codegen_config = get_config(config)

        for document_config in codegen_config.documents:
            with Progress(
                SpinnerColumn(),
                TextColumn('[progress.description]{task.description}'),
                console=console,
            ) as progress:
                task = progress.add_task(
                    f'Building model for {document_config.source}...', total=None
                )

                codegen = Codegen(document_config)
                model = codegen.build()
                output = codegen.export(model)

                progress.update(
                    task, description=f'Model built for {document_config.source}!'
                )

            console.print(
                f'[green]{model.api.client_name}[/green]: {len(model.types)} types, '
                f'{len(model.aggregates)} aggregates, {len(model.operations)} operations'
            )
            if output:
                console.print(f'  - {output}')

    except OxapiError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)


@app.command()
def inspect(
    source: Annotated[str, typer.Argument(help='Path or URL of an OpenAPI document')],
    aggregates: Annotated[
        bool,
        typer.Option('--aggregates', help='Use parameter aggregate signatures'),
    ] = False,
    naming: Annotated[
        str, typer.Option('--naming', help='Naming preset (rust or python)')
    ] = 'rust',
    as_json: Annotated[
        bool, typer.Option('--json', help='Print the model as JSON')
    ] = False,
) -> None:
    """Build the model of one document and print it.

    Examples:
        oxapi inspect ./api.yaml
        oxapi inspect ./api.yaml --aggregates
        oxapi inspect https://api.example.com/openapi.json --json
    """
    try:
        options = BuildOptions(
            naming=NamingRules.preset(naming), use_parameter_aggregates=aggregates
        )
        document = SchemaLoader().load(source)
        model = build_model(document, options)
    except (ValueError, OxapiError) as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)

    if as_json:
        content = {'model': model.to_dict(), 'docs': model_docs(model)}
        typer.echo(json.dumps(content, indent=2, default=str))
        return

    _print_model(model)


def _print_model(model: Model) -> None:
    console.print(
        f'[bold]{model.api.client_name}[/bold] '
        f'({model.api.title} {model.api.version})'
    )

    types = Table(title='Types')
    types.add_column('Name')
    types.add_column('Kind')
    types.add_column('Origin')
    for descriptor in model.types:
        kind = type(descriptor.node).__name__.removesuffix('Node').lower()
        types.add_row(descriptor.name, kind, descriptor.origin)
    console.print(types)

    operations = Table(title='Operations')
    operations.add_column('Method')
    operations.add_column('Path')
    operations.add_column('Name')
    operations.add_column('Signature')
    operations.add_column('Returns')
    for operation in model.operations:
        signature = ', '.join(
            f'{argument.name}: {model.resolve_ref_name(argument.type)}'
            + ('' if argument.required else '?')
            for argument in operation.signature
        )
        operations.add_row(
            operation.http_method.upper(),
            operation.path,
            operation.name,
            signature,
            model.resolve_ref_name(operation.returns.type),
        )
    console.print(operations)

    for aggregate in model.aggregates:
        required = ', '.join(p.name for p in aggregate.constructor.parameters)
        mutators = ', '.join(m.name for m in aggregate.mutators) or '-'
        console.print(
            f'[cyan]{aggregate.name}[/cyan]::{aggregate.constructor.name}({required}) '
            f'mutators: {mutators}'
        )

    if model.cycles:
        console.print(f'[dim]{len(model.cycles)} cyclic references[/dim]')


@app.command()
def version() -> None:
    """Show the version of oxapi."""
    from oxapi import __version__

    console.print(f'oxapi version: {__version__}')


if __name__ == '__main__':
    app()
