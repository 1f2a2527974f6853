import sys
from pathlib import Path
from typing import Annotated

import humanize
import typer
from rich import print
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from hpitools.hpi.archive import Archive
from hpitools.hpi.errors import HPIError
from hpitools.hpi.helpers import get_output_path

app = typer.Typer(help="Tools for HAPI archives (.hpi/.ufo/.ccx/.gp3 files)")


def open_archive(archive_path: Path) -> Archive:
    with Progress(transient=True) as progress:
        progress.add_task(
            description="Reading archive directory...",
            total=None,
        )

        try:
            return Archive(archive_path)
        except HPIError as e:
            raise typer.BadParameter(str(e)) from e


@app.command(help="Prints information about a HAPI archive")
def info(
    archive_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the input archive",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
):
    with open_archive(archive_path) as archive:
        header = archive.header

        print(f"Data offset: {hex(header.data_offset)}")
        print(f"Key: {hex(header.key)} ({'scrambled' if header.key else 'plain'})")
        print(f"Directory offset: {hex(header.directory_offset)}")
        print(f"Number of folders: {len(archive.directories)}")
        print(f"Number of files: {len(archive.files)}")
        print(
            "Total size: "
            + humanize.naturalsize(sum(file.size for file in archive.files))
        )


@app.command(name="list", help="Lists files in a HAPI archive")
def contents(
    archive_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the input archive",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
):
    console = Console()
    table = Table("File Path", "Size", "Offset")

    with open_archive(archive_path) as archive:
        for file in archive.files:
            table.add_row(
                file.path,
                humanize.naturalsize(file.size),
                hex(file.offset),
            )

    console.print(table)


@app.command(help="Extracts a HAPI archive")
def extract(
    archive_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the input archive",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    output_dir: Annotated[
        Path | None,
        typer.Argument(
            help="Path to the output directory where files will be extracted",
            file_okay=False,
            dir_okay=True,
            writable=True,
        ),
    ] = None,
    prefix: Annotated[
        str,
        typer.Option(
            "--filter",
            "-f",
            help="Only extract files whose path starts with this prefix",
        ),
    ] = "",
):
    output_dir = output_dir or archive_path.parent / archive_path.stem
    output_dir.mkdir(parents=True, exist_ok=True)

    failed = 0

    with open_archive(archive_path) as archive:
        files = [
            file
            for file in archive.files
            if file.path.lower().startswith(prefix.replace("\\", "/").lower())
        ]

        with Progress(
            SpinnerColumn(finished_text=":white_check_mark:"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
        ) as progress:
            for file in progress.track(files, description="Extracting files..."):
                progress.console.log(f"Extracting {file.path}...")

                try:
                    archive.extract(file, get_output_path(output_dir, file.path))
                except HPIError as e:
                    progress.console.log(f"[red]Failed to extract {file.path}: {e}")
                    failed += 1

    if failed:
        print(f"[red]{failed} file(s) could not be extracted")
        raise typer.Exit(code=1)


@app.command(name="cat", help="Writes a single file from a HAPI archive to stdout")
def cmd_cat(
    archive_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the input archive",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    file_path: Annotated[
        str,
        typer.Argument(help="Path of the file inside the archive"),
    ],
):
    with open_archive(archive_path) as archive:
        entry = archive.find(file_path)

        if entry is None:
            raise typer.BadParameter(f"{file_path} not found in {archive_path}")

        try:
            data = archive.getdata(entry)
        except HPIError as e:
            print(f"[red]{e}", file=sys.stderr)
            raise typer.Exit(code=1) from e

    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


if __name__ == "__main__":
    app()
