"""CLI interface for kinship administration."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import KinshipConfig
from .models.person import Gender, Person, Role
from .models.result import ActionResult
from .store.base import ListOrder

app = typer.Typer(
    name="kinship",
    help="Family tree records and relationship browser",
    add_completion=False,
)
console = Console()


def get_config() -> KinshipConfig:
    """Load configuration from the environment and a `.env` in the working directory.

    Variables already set in the environment win over the `.env` file.
    """
    import os

    from dotenv import dotenv_values, find_dotenv

    path = find_dotenv(usecwd=True)
    file_values = {k: v for k, v in dotenv_values(path).items() if v is not None} if path else {}
    return KinshipConfig.from_env({**file_values, **os.environ})


def _open(db: Path | None):
    from .integrity.manager import LinkIntegrityManager
    from .query import PersonQuery
    from .store.sqlite_store import SQLitePersonStore

    config = get_config()
    store = SQLitePersonStore(db or config.db_path)
    return PersonQuery(store, page_size=config.page_size), LinkIntegrityManager(store, config=config)


def _report(result: ActionResult) -> None:
    if result.success:
        console.print(f"[green]{result.message}[/green]")
        return
    console.print(f"[red]{result.message}[/red]")
    raise typer.Exit(1)


def _label(person: Person | None) -> str:
    if person is None:
        return "-"
    return f"{person.full_name} ({person.id})"


DbOption = typer.Option(None, "--db", help="SQLite database path (default: KINSHIP_DB_PATH)")


@app.command("list")
def list_persons(
    page: int = typer.Option(1, "--page", "-p", help="Page number (1-based)"),
    page_size: int = typer.Option(None, "--page-size", help="Persons per page (default: KINSHIP_PAGE_SIZE)"),
    newest: bool = typer.Option(False, "--newest", help="Newest first instead of by name"),
    db: Path = DbOption,
):
    """List persons one page at a time."""
    query, _ = _open(db)
    result = query.page(page, page_size, ListOrder.NEWEST if newest else ListOrder.NAME)

    table = Table(title=f"Persons (page {result.page} of {max(result.pages, 1)}, {result.total} total)")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Gender")
    table.add_column("Born")
    table.add_column("Spouse")
    for person in result.persons:
        born = " ".join(str(p) for p in (person.birth_month, person.birth_year) if p)
        table.add_row(person.id, person.full_name, person.gender.value, born, person.spouse_id or "")
    console.print(table)


@app.command()
def show(
    person_id: str = typer.Argument(..., help="Person ID"),
    db: Path = DbOption,
):
    """Show a person's derived family relationships."""
    from .resolver import honorifics

    query, _ = _open(db)
    view = query.family_view(person_id.upper())
    if view is None:
        console.print(f"[red]No person with id {person_id}[/red]")
        raise typer.Exit(1)

    person = view.person
    status = "Deceased" if person.is_deceased else (person.description or "Community Member")
    console.print(Panel(f"[bold]{person.full_name}[/bold]\n{status}", title=person.id))

    table = Table(show_header=True)
    table.add_column("Relationship", style="bold")
    table.add_column("Person")

    def row(label: str, relative: Person | None) -> None:
        if relative is not None:
            table.add_row(label, _label(relative))

    row(honorifics.FATHER, view.father)
    row(honorifics.MOTHER, view.mother)
    if view.spouse:
        row(honorifics.spouse_label(view.spouse), view.spouse)
    gp = view.grandparents
    row(honorifics.PATERNAL_GRANDFATHER, gp.paternal_grandfather)
    row(honorifics.PATERNAL_GRANDMOTHER, gp.paternal_grandmother)
    row(honorifics.MATERNAL_GRANDFATHER, gp.maternal_grandfather)
    row(honorifics.MATERNAL_GRANDMOTHER, gp.maternal_grandmother)
    row(honorifics.FATHER_IN_LAW, view.father_in_law)
    row(honorifics.MOTHER_IN_LAW, view.mother_in_law)
    def pair(labels: tuple[str, str], relative: Person) -> None:
        # The relative, then their spouse under the paired term
        row(labels[0], relative)
        row(f"  {labels[1]}", view.spouse_of(relative))

    for sibling in view.siblings:
        pair((honorifics.sibling_label(sibling), honorifics.sibling_spouse_label(person, sibling)), sibling)
    for child in view.children:
        pair((honorifics.child_label(child), honorifics.child_spouse_label(child)), child)
    for uncle in view.paternal.uncles:
        pair(honorifics.paternal_uncle_labels(view.father, uncle), uncle)
    for aunt in view.paternal.aunts:
        pair(honorifics.paternal_aunt_labels(), aunt)
    for uncle in view.maternal.uncles:
        pair(honorifics.maternal_uncle_labels(), uncle)
    for aunt in view.maternal.aunts:
        pair(honorifics.maternal_aunt_labels(), aunt)
    for brother in view.husband_brothers:
        pair(honorifics.husband_brother_labels(view.spouse, brother), brother)
    for sister in view.husband_sisters:
        pair(honorifics.husband_sister_labels(), sister)
    for sibling in view.wife_brothers + view.wife_sisters:
        row(honorifics.wife_sibling_label(sibling), sibling)

    if table.row_count:
        console.print(table)
    else:
        console.print("[dim]No relatives found.[/dim]")


@app.command()
def add(
    name: str = typer.Option(..., "--name", help="Given name"),
    gender: Gender = typer.Option(..., "--gender", case_sensitive=False),
    surname: str = typer.Option("", "--surname"),
    maiden_name: str = typer.Option("", "--maiden-name"),
    father: str = typer.Option(None, "--father", help="Father's person ID"),
    mother: str = typer.Option(None, "--mother", help="Mother's person ID"),
    spouse: str = typer.Option(None, "--spouse", help="Spouse's person ID"),
    father_name: str = typer.Option(None, "--father-name", help="Father's name if unregistered"),
    mother_name: str = typer.Option(None, "--mother-name", help="Mother's name if unregistered"),
    birth_month: str = typer.Option(None, "--birth-month"),
    birth_year: int = typer.Option(None, "--birth-year"),
    description: str = typer.Option(None, "--description"),
    db: Path = DbOption,
):
    """Register a new person."""
    _, manager = _open(db)
    result = manager.create_person({
        "name": name,
        "gender": gender,
        "surname": surname,
        "maiden_name": maiden_name,
        "father_id": father,
        "mother_id": mother,
        "spouse_id": spouse,
        "father_name": father_name,
        "mother_name": mother_name,
        "birth_month": birth_month,
        "birth_year": birth_year,
        "description": description,
    })
    if result.success:
        console.print(f"[bold]ID:[/bold] {result.person_id}")
    _report(result)


@app.command()
def link(
    person_id_1: str = typer.Argument(..., help="First person ID"),
    person_id_2: str = typer.Argument(..., help="Second person ID"),
    db: Path = DbOption,
):
    """Link two persons as spouses."""
    _, manager = _open(db)
    _report(manager.link_spouses(person_id_1.upper(), person_id_2.upper()))


@app.command()
def unlink(
    person_id: str = typer.Argument(..., help="Person ID"),
    db: Path = DbOption,
):
    """Remove a person's spouse link on both sides."""
    _, manager = _open(db)
    _report(manager.unlink_spouses(person_id.upper()))


@app.command("clear-relation")
def clear_relation(
    person_id: str = typer.Argument(..., help="Person ID"),
    role: Role = typer.Argument(..., help="father or mother", case_sensitive=False),
    db: Path = DbOption,
):
    """Clear a person's father or mother."""
    _, manager = _open(db)
    _report(manager.clear_relation(person_id.upper(), role))


@app.command()
def delete(
    person_id: str = typer.Argument(..., help="Person ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    db: Path = DbOption,
):
    """Delete a person and every link pointing at them."""
    if not yes:
        typer.confirm(f"Delete {person_id}?", abort=True)
    _, manager = _open(db)
    _report(manager.delete_person(person_id.upper()))


@app.command("bulk-delete")
def bulk_delete(
    person_ids: list[str] = typer.Argument(..., help="Person IDs"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    db: Path = DbOption,
):
    """Delete several persons at once."""
    if not yes:
        typer.confirm(f"Delete {len(person_ids)} persons?", abort=True)
    _, manager = _open(db)
    _report(manager.bulk_delete(p.upper() for p in person_ids))


@app.command("set-deceased")
def set_deceased(
    person_ids: list[str] = typer.Argument(..., help="Person IDs"),
    deceased: bool = typer.Option(True, "--deceased/--living", help="Mark deceased or living"),
    db: Path = DbOption,
):
    """Set the deceased flag on several persons."""
    _, manager = _open(db)
    _report(manager.update_deceased_status([p.upper() for p in person_ids], deceased))


@app.command()
def export(
    output: Path = typer.Argument(..., help="Output file (or directory for CSV)"),
    fmt: str = typer.Option("csv", "--format", "-f", help="csv or json"),
    db: Path = DbOption,
):
    """Export all persons."""
    from .export import export_json, export_table

    query, _ = _open(db)
    snapshot = query.snapshot()
    if fmt == "json":
        path = export_json(snapshot, output)
    elif fmt == "csv":
        path = export_table(snapshot.values(), output)
    else:
        console.print(f"[red]Unknown format: {fmt}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Exported {len(snapshot)} persons to {path}[/green]")


def main():
    """Main entry point."""
    from .logging import configure_logging

    configure_logging(get_config().log_level)
    app()


if __name__ == "__main__":
    main()
