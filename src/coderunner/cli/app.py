from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from .. import __version__
from ..domain.errors import RunnerError
from ..services.llm.factory import available_models
from ..workflow.orchestrator import ScopeOrchestrator

app = typer.Typer(add_completion=False, help="A context-aware code extraction tool to run LLMs in your codebase.")
scope_app = typer.Typer(add_completion=False, help="Manage scopes of a codebase.")
llm_app = typer.Typer(add_completion=False, help="Call a LLM on each file of a scope.")
app.add_typer(scope_app, name="scope")
app.add_typer(llm_app, name="llm")

console = Console()
err_console = Console(stderr=True)


def _fail(exc: RunnerError) -> NoReturn:
    err_console.print(f"[red]{escape(exc.message)}[/]")
    if exc.is_internal and exc.__cause__ is not None:
        err_console.print(f"[dim]{type(exc.__cause__).__name__}: {escape(str(exc.__cause__))}[/]")
    raise typer.Exit(code=1)


def _get_orchestrator() -> ScopeOrchestrator:
    orchestrator = ScopeOrchestrator(repo_path=Path("."))
    try:
        orchestrator.initialize()
    except RunnerError as exc:
        _fail(exc)
    return orchestrator


def _split_extensions(values: Optional[List[str]]) -> List[str]:
    extensions: List[str] = []
    for value in values or []:
        extensions.extend(part.strip() for part in value.split(",") if part.strip())
    return extensions


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"coderunner {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


# ---------------------------------------------------------------------- scope
@scope_app.command("list")
def list_scopes() -> None:
    """
    List scopes saved for the current commit.
    """
    orchestrator = _get_orchestrator()
    try:
        names = orchestrator.list_scopes()
    except RunnerError as exc:
        _fail(exc)

    if not names:
        console.print("[yellow]No scopes for this commit found[/]")
        return

    table = Table(title="Scopes")
    table.add_column("Name", style="bold")
    for name in names:
        table.add_row(escape(name))
    console.print(table)


@scope_app.command("create")
def create_scope(
    scope: str = typer.Option(..., "--scope", "-s", "-n", help="Name of the scope."),
    base: Optional[str] = typer.Option(None, "--base", "-t", help="Commit or branch to diff against."),
    target: str = typer.Option("", "--target", help="Diff target (defaults to the working tree)."),
    extensions: Optional[List[str]] = typer.Option(
        None, "--extensions", "-e", "--ext", help="File extensions to include, e.g. .go,.ts"
    ),
) -> None:
    """
    Create a new scope from the working tree, or from a git diff with --base.
    """
    orchestrator = _get_orchestrator()
    try:
        created, path = orchestrator.create_scope(
            scope, base=base, target=target, extensions=_split_extensions(extensions)
        )
    except RunnerError as exc:
        _fail(exc)

    console.print(
        f"[bold green]Created scope file[/] {escape(str(path))} ({len(created.tree)} files). "
        "You can edit the file to change the scope."
    )


@scope_app.command("selected")
def selected_scope() -> None:
    """
    Show the selected scope.
    """
    orchestrator = _get_orchestrator()
    try:
        console.print(orchestrator.selected_scope_name())
    except RunnerError:
        console.print("[yellow]No selected scope[/]")


@scope_app.command("select")
def select_scope(scope: str = typer.Option(..., "--scope", "-s", "-n", help="Name of the scope.")) -> None:
    """
    Select a scope.
    """
    orchestrator = _get_orchestrator()
    try:
        orchestrator.select_scope(scope)
    except RunnerError as exc:
        _fail(exc)
    console.print(f"Selected scope [bold]{escape(scope)}[/]")


@scope_app.command("copy")
def copy_scope(copy: str = typer.Option(..., "--copy", "-o", "-c", help="Name of the scope copy.")) -> None:
    """
    Copy the selected scope under a new name.
    """
    orchestrator = _get_orchestrator()
    try:
        path = orchestrator.copy_selected_scope(copy)
    except RunnerError as exc:
        _fail(exc)
    console.print(f"Copied scope file to {escape(str(path))}")


@scope_app.command("edit")
def edit_scope(editor: Optional[str] = typer.Option(None, "--editor", "-e", help="Editor to open the file.")) -> None:
    """
    Open the selected scope file in an editor.
    """
    orchestrator = _get_orchestrator()
    try:
        orchestrator.edit_selected_scope(editor)
    except RunnerError as exc:
        _fail(exc)


@scope_app.command("delete")
def delete_scope(scope: str = typer.Option(..., "--scope", "-s", "-n", help="Name of the scope.")) -> None:
    """
    Delete a scope.
    """
    orchestrator = _get_orchestrator()
    try:
        path = orchestrator.delete_scope(scope)
    except RunnerError as exc:
        _fail(exc)
    console.print(f"Deleted scope file {escape(str(path))}")


@scope_app.command("tree")
def tree_scope() -> None:
    """
    Display the tree of the files in scope.
    """
    orchestrator = _get_orchestrator()
    try:
        lines = orchestrator.render_scope()
    except RunnerError as exc:
        _fail(exc)
    for line in lines:
        console.print(line, markup=False, highlight=False)


@scope_app.command("print")
def print_scope() -> None:
    """
    Print the content of every file in the selected scope.
    """
    orchestrator = _get_orchestrator()
    try:
        contents = orchestrator.files_content()
    except RunnerError as exc:
        _fail(exc)
    for path, content in contents.items():
        console.print(f"File: {path}\nContent: {content}", markup=False, highlight=False)


# ---------------------------------------------------------------------- llm
@llm_app.command("prompt")
def prompt_scope(
    prompt: str = typer.Option(..., "--prompt", "-p", help="The actual prompt."),
    scope: Optional[str] = typer.Option(None, "--scope", "-s", "-n", help="Scope name (defaults to the selected one)."),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help=f"The model to use ({', '.join(available_models())})."
    ),
    save: bool = typer.Option(False, "--save", help="Save each response next to its file as <file>.llm.md."),
) -> None:
    """
    Run a prompt on each file of a scope.
    """
    orchestrator = _get_orchestrator()

    def _print_response(path: str, response: str) -> None:
        tree = Tree(Text(path, style="bold cyan"))
        tree.add(Text(response))
        console.print(tree)

    callback = orchestrator.save_response_callback() if save else _print_response

    try:
        with console.status("Calling LLM..."):
            report = orchestrator.run_prompt(prompt, callback, scope_name=scope, model=model)
    except RunnerError as exc:
        _fail(exc)

    console.print(
        f"[green]Processed {len(report.processed)} files[/] "
        f"[dim](binary skipped: {len(report.skipped_binary)}, missing skipped: {len(report.skipped_missing)})[/]"
    )


def main() -> None:
    app()
