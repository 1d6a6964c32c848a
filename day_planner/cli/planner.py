import typer
from .commands.core import show, slots, add, move, resize, rename, delete, sweep

app = typer.Typer(help="Day Planner - snap-to-grid evening schedule")

@app.command()
def hello() -> None:
    """Sanity check command."""
    typer.echo("Day Planner is alive.")

# Register read commands
app.command()(show)
app.command()(slots)

# Register event commands
app.command()(add)
app.command()(move)
app.command()(resize)
app.command()(rename)
app.command()(delete)

# Register maintenance commands
app.command()(sweep)

# Entry point function for the CLI script
def cli() -> None:
    app()
