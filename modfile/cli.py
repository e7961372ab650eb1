"""Command-line interface for packing and unpacking modfiles."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

import click
from lark.exceptions import UnexpectedInput
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from modfile import __version__
from modfile.proto import (
    INSTANCE_ID_TAG,
    DecodeError,
    Packager,
    PackagingError,
    SerializationError,
    rebuild_scene,
)
from modfile.scene import SceneError, parse, render

if TYPE_CHECKING:
    from modfile.proto import Modfile
    from modfile.scene import SceneNode


@click.group()
@click.version_option(__version__, prog_name="modfile")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    envvar="MODFILE_VERBOSE",
    help="Show packaging progress.",
)
def cli(verbose: bool) -> None:
    """Modfile packager."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _select_root(nodes: list[SceneNode], root_name: str | None) -> SceneNode:
    if root_name is not None:
        for node in nodes:
            if node.name == root_name:
                return node
        raise click.ClickException(f"No top-level node named {root_name}")
    if len(nodes) != 1:
        raise click.ClickException(
            f"Scene has {len(nodes)} top-level nodes, choose one with --root"
        )
    return nodes[0]


def _decode(input_file: str) -> Modfile:
    with open(input_file, encoding="utf-8") as f:
        blob = f.read().strip()

    try:
        result = Packager().decode_to_modfile(blob)
    except DecodeError as exc:
        raise click.ClickException(str(exc)) from exc

    if isinstance(result, str):
        print(result)
        sys.exit(1)
    return result


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input scene file")
@click.option("--output", "-o", "output_file", required=True, help="Output modfile")
@click.option("--root", "root_name", default=None, help="Top-level node to pack")
def pack(input_file: str, output_file: str, root_name: str | None) -> None:
    """Pack a scene file into a modfile."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        root = _select_root(parse(text), root_name)
        blob = Packager().encode(root)
    except (SceneError, UnexpectedInput, PackagingError, SerializationError) as exc:
        raise click.ClickException(str(exc)) from exc

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(blob)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input modfile")
@click.option("--output", "-o", "output_file", required=True, help="Output scene file")
def unpack(input_file: str, output_file: str) -> None:
    """Unpack a modfile into a scene file."""
    modfile = _decode(input_file)

    try:
        text = render(
            [rebuild_scene(modfile)],
            exclude_attributes={INSTANCE_ID_TAG},
            header=f"unpacked from modfile version {modfile.version}",
        )
    except SceneError as exc:
        raise click.ClickException(str(exc)) from exc

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(text)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input modfile")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display the contents of a modfile."""
    modfile = _decode(input_file)

    if output_json:
        _output_json(modfile)
    else:
        _output_plain(modfile)


def _output_json(modfile: Modfile) -> None:
    data = modfile.to_dict(encode_json=True)
    # attachments are listed once, at the top level
    for declaration in data["class_declarations"]:
        declaration.pop("attachments", None)
    print(json.dumps(data, indent=2))


def _output_plain(modfile: Modfile) -> None:
    """Output modfile info using rich text formatting."""
    console = Console()

    if modfile.info:
        console.print("[bold cyan]Mod[/bold cyan]")
        info_table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
        info_table.add_column("Label", style="dim")
        info_table.add_column("Value", style="white")
        info_table.add_row("Name", modfile.info.name)
        info_table.add_row("Description", modfile.info.description)
        info_table.add_row("Author", modfile.info.author)
        info_table.add_row("Image", modfile.info.image)
        info_table.add_row("Version", str(modfile.version))
        console.print(info_table)
        console.print()

    console.print("[bold cyan]Attachments[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Class", style="white")
    table.add_column("ID", style="green", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Instances", style="yellow", justify="right")

    for declaration in modfile.class_declarations:
        if not declaration.attachments:
            table.add_row(declaration.properties.name, "", "[dim]empty[/dim]", "")

    for attachment, model in modfile.attachment_models():
        table.add_row(
            attachment.parent_class,
            str(attachment.instance_id),
            str(attachment.properties.get("name", "")),
            str(1 + len(model.get_descendants())),
        )

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
