"""Content inspection CLI commands."""

import typer
from rich.tree import Tree

from src.cms.core.services import CategoryService, FolderNode, FolderService
from src.cms.entities.content.category import Category

from .utils import console, open_unit_of_work

content_app = typer.Typer(help="📚 Content commands")


def _add_categories(branch: Tree, categories: list[Category]) -> None:
    for category in categories:
        style = "" if category.is_active else "dim"
        node = branch.add(f"[{style or 'bold'}]{category.name}[/] [dim]/{category.slug}[/dim]")
        _add_categories(node, category.sub_categories)


def _add_folders(branch: Tree, nodes: list[FolderNode]) -> None:
    for node in nodes:
        folder = node.folder
        label = f"📁 {folder.name}" + (" [green](public)[/green]" if folder.is_public else "")
        _add_folders(branch.add(label), node.children)


@content_app.command("category-tree")
def category_tree() -> None:
    """Print the live category hierarchy."""
    with open_unit_of_work() as uow:
        roots = CategoryService(uow).get_category_tree()
    if not roots:
        console.print("[yellow]No categories found[/yellow]")
        return
    tree = Tree("[bold]Categories[/bold]")
    _add_categories(tree, roots)
    console.print(tree)


@content_app.command("folder-tree")
def folder_tree() -> None:
    """Print the media library folder hierarchy."""
    with open_unit_of_work() as uow:
        roots = FolderService(uow).get_folder_tree()
    if not roots:
        console.print("[yellow]No folders found[/yellow]")
        return
    tree = Tree("[bold]/[/bold]")
    _add_folders(tree, roots)
    console.print(tree)
