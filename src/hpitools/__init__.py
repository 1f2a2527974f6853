import typer

from hpitools import hpi

app = typer.Typer(help="Collection of tools for Total Annihilation HAPI archives")

app.add_typer(
    hpi.app, name="hpi", help="Tools for HAPI archives (.hpi/.ufo/.ccx/.gp3 files)"
)

if __name__ == "__main__":
    app()
