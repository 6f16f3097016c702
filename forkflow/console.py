"""
Colored console messages.
"""

from __future__ import annotations

import click


def info(message: str) -> None:
    click.echo(f"{click.style('[INFO]', fg='green')} {message}")


def warn(message: str) -> None:
    click.echo(f"{click.style('[WARN]', fg='yellow', bold=True)} {message}")


def error(message: str) -> None:
    click.echo(f"{click.style('[ERROR]', fg='red')} {message}", err=True)


def header(title: str) -> None:
    click.secho(f"\n=== {title} ===\n", fg="blue", bold=True)


def label(text: str, value: str = "") -> None:
    click.echo(f"{click.style(text, bold=True)} {value}".rstrip())


def ok(text: str) -> str:
    return f"{click.style('✓', fg='green')} {text}"


def missing(text: str, color: str = "red") -> str:
    return f"{click.style('✗', fg=color)} {text}"


def colored(text: str, color: str) -> str:
    return click.style(text, fg=color)


def echo(text: str = "") -> None:
    click.echo(text)
