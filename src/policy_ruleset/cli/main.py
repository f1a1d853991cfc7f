"""CLI entry point for policy-ruleset.

Invoked as::

    policy-ruleset [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m policy_ruleset.cli.main

Commands
--------
- validate  Parse every rule of a policy file and report syntax errors
- check     Evaluate one rule for a token described on the command line
- show      Print every rule of a policy file in canonical form
- version   Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def _parse_pairs(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Turn repeated ``KEY=VALUE`` options into a dict."""
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", ctx=ctx, param=param)
        pairs[key] = val
    return pairs


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="policy-ruleset")
@click.option("--verbose", "-v", is_flag=True, help="Log evaluation details to stderr.")
def cli(verbose: bool) -> None:
    """Policy Ruleset CLI — validate and evaluate oslo.policy-style rules."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from policy_ruleset import __version__

    console.print(
        Panel(
            f"[bold]policy-ruleset[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Embeddable evaluation engine for oslo.policy-style rules.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
def validate_command(policy_file: str) -> None:
    """Parse every rule in POLICY_FILE and report syntax errors."""
    from policy_ruleset.loader import PolicyLoader
    from policy_ruleset.rules.ruleset import ParseError, RuleSet

    try:
        rules = PolicyLoader().load_policy_file(Path(policy_file))
    except ValueError as exc:
        err_console.print(f"[red]Invalid policy file:[/red] {escape(str(exc))}")
        sys.exit(2)

    ruleset = RuleSet()
    failures: list[ParseError] = []
    for name, text in rules.items():
        try:
            ruleset.add_rule(name, text)
        except ParseError as exc:
            failures.append(exc)

    if not failures:
        console.print(f"[green]VALID[/green]  {len(rules)} rules parsed from [bold]{escape(policy_file)}[/bold]")
        return

    table = Table(title="Rule Syntax Errors", box=box.SIMPLE)
    table.add_column("Rule", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Column", justify="right")
    table.add_column("Expected", style="magenta")
    for failure in failures:
        table.add_row(
            escape(failure.rule_name),
            str(failure.error.line),
            str(failure.error.column),
            escape(failure.error.expected),
        )
    console.print(table)
    console.print(f"[red]INVALID[/red]  {len(failures)} of {len(rules)} rules failed to parse")
    sys.exit(1)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("rule_name")
@click.option("--role", "-r", "roles", multiple=True, help="Role held by the token (repeatable).")
@click.option(
    "--attr",
    "-a",
    "api_attributes",
    multiple=True,
    callback=_parse_pairs,
    help="Token API attribute as KEY=VALUE (repeatable).",
)
@click.option(
    "--target",
    "-t",
    "target_attributes",
    multiple=True,
    callback=_parse_pairs,
    help="Target attribute as KEY=VALUE (repeatable).",
)
def check_command(
    policy_file: str,
    rule_name: str,
    roles: tuple[str, ...],
    api_attributes: dict[str, str],
    target_attributes: dict[str, str],
) -> None:
    """Evaluate RULE_NAME from POLICY_FILE for the described token."""
    from policy_ruleset.loader import PolicyLoader
    from policy_ruleset.request import MappingTarget, Request, StaticToken

    try:
        ruleset = PolicyLoader().build_ruleset_from_file(Path(policy_file))
    except ValueError as exc:
        err_console.print(f"[red]Could not load policy:[/red] {escape(str(exc))}")
        sys.exit(2)

    token = StaticToken(roles=roles, api_attributes=api_attributes)
    request = Request(token, MappingTarget(target_attributes))
    allowed = ruleset.evaluate(rule_name, request)

    status_str = "[green]ALLOWED[/green]" if allowed else "[red]DENIED[/red]"
    console.print(Panel(status_str, title=escape(f"Rule {rule_name!r}"), border_style="blue"))
    if rule_name not in ruleset:
        message = escape(f"Rule {rule_name!r} is not defined in {policy_file}.")
        console.print(f"  [yellow]{message}[/yellow]")

    sys.exit(0 if allowed else 1)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
def show_command(policy_file: str) -> None:
    """Print every rule of POLICY_FILE in canonical form."""
    from policy_ruleset.loader import PolicyLoader

    try:
        ruleset = PolicyLoader().build_ruleset_from_file(Path(policy_file))
    except ValueError as exc:
        err_console.print(f"[red]Could not load policy:[/red] {escape(str(exc))}")
        sys.exit(2)

    table = Table(title="Rules", box=box.SIMPLE)
    table.add_column("Rule", style="cyan")
    table.add_column("Expression")
    for name in ruleset.rule_names():
        table.add_row(escape(name), escape(str(ruleset.get_rule(name))))
    console.print(table)


if __name__ == "__main__":
    cli()
