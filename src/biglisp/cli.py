"""
BigLisp command-line interface.

Commands:
  expand    show the Python a form expands to
  eval      evaluate one form and print the result
  run       evaluate every form of a file
  check     parse and expand files without running them
  repl      interactive read-expand-evaluate loop
  examples  example forms with their expansions
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from biglisp._version import get_version
from biglisp.core.config import BigLispConfig, LogLevel, load_config
from biglisp.core.errors import BigLispError, ConfigError, ParseError
from biglisp.core.expander import describe_operation, expand_to_source, operation_names
from biglisp.core.reader import bracket_depth, parse_invocation, parse_program
from biglisp.embed import Environment, compile_top_level

logger = logging.getLogger(__name__)

console = Console()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
COMMAND_LINE_SOURCE = "<command line>"
REPL_SOURCE = "<repl>"

EXAMPLES: list[tuple[str, str]] = [
    ("(+ 1 2 3)", "addition"),
    ("(* (+ 1 2) (- 5 1))", "nested arithmetic"),
    ("(/ 60 3 2)", "left-folded division"),
    ("(-5)", "unary negation"),
    ('(if (> 5 3) "yes" "no")', "conditional"),
    ("(let [x 3 y (* x 2)] (+ x y))", "sequential bindings"),
    ("(do (defn square [x] (* x x)) (call square 6))", "function definition"),
    ("(cons 0 [1 2 3])", "prepend to a vector"),
    ("(first [7 8 9])", "first element"),
    ('(str "n=" (count [1 2 3]))', "string concatenation"),
    ("(call + 4 5)", "operator as a value"),
    ("(try (/ 1 0) 0)", "recover from an error"),
    ("(and (even 4) (odd 3) (pos 1))", "predicates"),
]


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"BigLisp version {get_version()}")
        typer.echo(f"  Python:   {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform: {platform.system()} {platform.release()}")
        raise typer.Exit()


def configure_logging(config: BigLispConfig, verbose: bool) -> None:
    level = LogLevel.DEBUG if verbose else config.log_level
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    logging.getLogger("biglisp").setLevel(getattr(logging, level))


def _fail(error: BaseException | str) -> typer.Exit:
    typer.echo(str(error), err=True)
    return typer.Exit(code=1)


def _config(ctx: typer.Context) -> BigLispConfig:
    config = ctx.obj
    return config if isinstance(config, BigLispConfig) else BigLispConfig()


# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    help="""BigLisp – S-expressions that expand to Python

  • expand, eval: one form from the command line
  • run, check: program files
  • repl: interactive session
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log at DEBUG level"),
    config_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="biglisp.toml or pyproject.toml to load (default: search upward)",
    ),
) -> None:
    """BigLisp CLI main callback for global options."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise _fail(e) from e
    configure_logging(config, verbose)
    ctx.obj = config


@app.command()
def expand(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Form to expand, e.g. '(+ 1 2)'"),
    tree: bool = typer.Option(False, "--tree", help="Also print the parsed expression tree"),
) -> None:
    """Print the Python code a form expands to."""
    config = _config(ctx)
    try:
        expr = parse_invocation(source, COMMAND_LINE_SOURCE)
        generated = expand_to_source(expr, config.expander)
    except BigLispError as e:
        raise _fail(e) from e

    if tree:
        typer.echo(repr(expr))
    typer.echo(generated)


@app.command(name="eval")
def eval_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Form to evaluate"),
) -> None:
    """Evaluate a form and print the repr of its value."""
    env = Environment(_config(ctx).expander)
    try:
        value = env.eval_form(parse_invocation(source, COMMAND_LINE_SOURCE), COMMAND_LINE_SOURCE)
    except BigLispError as e:
        raise _fail(e) from e
    except Exception as e:
        raise _fail(f"{type(e).__name__}: {e}") from e
    typer.echo(repr(value))


@app.command()
def run(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Program file"),  # noqa: B008
    print_result: bool = typer.Option(
        False, "--print-result", "-p", help="Print the value of the last form"
    ),
) -> None:
    """Evaluate every form of a program file in one environment."""
    env = Environment(_config(ctx).expander)
    try:
        value = env.run_source(file.read_text(encoding="utf-8"), str(file))
    except BigLispError as e:
        raise _fail(e) from e
    except Exception as e:
        raise _fail(f"{type(e).__name__}: {e}") from e

    if print_result:
        typer.echo(repr(value))


@app.command()
def check(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to check"),  # noqa: B008
) -> None:
    """Parse and expand every form without evaluating anything."""
    config = _config(ctx)
    failed = False

    for file in files:
        errors = check_source(file.read_text(encoding="utf-8"), str(file), config)
        if errors:
            failed = True
            for error in errors:
                typer.echo(f"✗ {error}")
        else:
            typer.echo(f"✓ {file}")

    if failed:
        raise typer.Exit(code=1)


def check_source(source: str, source_name: str, config: BigLispConfig) -> list[BigLispError]:
    """All errors found in ``source``; parsing stops at the first syntax error."""
    try:
        forms = parse_program(source, source_name)
    except ParseError as e:
        return [e]

    errors: list[BigLispError] = []
    for form in forms:
        try:
            compile_top_level(form, config.expander, source, source_name)
        except BigLispError as e:
            errors.append(e)
    logger.debug("Checked %d forms in %s: %d errors", len(forms), source_name, len(errors))
    return errors


@app.command()
def repl(ctx: typer.Context) -> None:
    """Interactive session. Enter :source to toggle generated code, :quit to leave."""
    config = _config(ctx)
    env = Environment(config.expander)
    show_source = config.repl.show_source
    buffer: list[str] = []

    typer.echo(f"BigLisp {get_version()} (:quit to exit)")
    while True:
        prompt = config.repl.continuation_prompt if buffer else config.repl.prompt
        try:
            line = input(prompt)
        except EOFError:
            typer.echo("")
            break

        if not buffer:
            command = line.strip()
            if not command:
                continue
            if command in (":quit", ":q"):
                break
            if command == ":source":
                show_source = not show_source
                typer.echo(f"show source: {'on' if show_source else 'off'}")
                continue

        buffer.append(line)
        text = "\n".join(buffer)
        if bracket_depth(text) > 0:
            continue
        buffer.clear()
        _repl_evaluate(env, text, show_source)


def _repl_evaluate(env: Environment, text: str, show_source: bool) -> None:
    try:
        forms = parse_program(text, REPL_SOURCE)
        for form in forms:
            if show_source:
                typer.echo(expand_to_source(form.expr, env.config))
            value = env.eval_top_level(form, text, REPL_SOURCE)
            if value is not None:
                typer.echo(repr(value))
    except BigLispError as e:
        typer.echo(str(e), err=True)
    except Exception as e:
        logger.debug("Evaluation failed", exc_info=True)
        typer.echo(f"{type(e).__name__}: {e}", err=True)


@app.command()
def examples(
    ctx: typer.Context,
    operations: bool = typer.Option(
        False, "--operations", help="List every operation with its usage instead"
    ),
) -> None:
    """Show example forms, the Python they expand to and their values."""
    config = _config(ctx)

    if operations:
        table = Table(title="Operations")
        table.add_column("Name", style="cyan")
        table.add_column("Usage")
        for name in operation_names():
            table.add_row(escape(name), escape(describe_operation(name)))
        console.print(table)
        return

    table = Table(title="Examples")
    table.add_column("Form", style="cyan")
    table.add_column("Python")
    table.add_column("Value", style="green")
    table.add_column("Description", style="dim")

    for source, description in EXAMPLES:
        env = Environment(config.expander)
        expr = parse_invocation(source)
        value = env.eval_form(expr)
        table.add_row(
            escape(source),
            escape(expand_to_source(expr, config.expander)),
            escape(repr(value)),
            description,
        )

    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app()


if __name__ == "__main__":
    main()
