"""
Colored status lines for operators watching a run.
"""
import click


def step(message: str) -> None:
    click.secho(f"==> {message}", fg="blue", bold=True)


def info(message: str) -> None:
    click.echo(f"    {message}")


def ok(message: str) -> None:
    click.secho(f"OK      {message}", fg="green")


def failed(message: str, output: str = "") -> None:
    click.secho(f"FAILED  {message}", fg="red")
    for line in output.strip().splitlines():
        click.echo(f"        {line}")


def warn(message: str) -> None:
    click.secho(f"Warning: {message}", fg="yellow", err=True)


def error(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
