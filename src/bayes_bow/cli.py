"""Command-line interface for bayes-bow.

Provides ``new``, ``train``, ``predict``, and ``info`` commands with rich
terminal output using the ``click`` and ``rich`` libraries.

Usage::

    bayes-bow new model.json --label spam --label ham
    bayes-bow train model.json --label spam offer1.txt offer2.txt
    bayes-bow predict model.json message.txt
    bayes-bow --default-stop-words info model.json --top 5
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .corpus import Corpus, Prediction
from .exceptions import BayesBowError
from .preprocessing import StopWordConfig, tokenize

console = Console()
err_console = Console(stderr=True)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/] {escape(str(error))}")
    sys.exit(1)


def _read_words(file: Path) -> list[str]:
    return tokenize(file.read_text(encoding="utf-8"))


def _load(ctx: click.Context, model: Path) -> Corpus:
    try:
        return Corpus.load(model, stop_words=ctx.obj["stop_words"])
    except (BayesBowError, OSError) as e:
        _fail(e)


@click.group()
@click.version_option(package_name="bayes-bow")
@click.option("--stop-words", "stop_words_file", type=click.Path(exists=True, path_type=Path),
              default=None, help="Stop-word file (one word per line, 'prefix*' for classes).")
@click.option("--default-stop-words", is_flag=True, help="Filter the built-in English stop words.")
@click.option("--verbose", "-v", is_flag=True, help="Show progress logging.")
@click.pass_context
def main(ctx: click.Context, stop_words_file: Path | None, default_stop_words: bool,
         verbose: bool) -> None:
    """📚 bayes-bow: incremental Naive Bayes text classifier.

    Train a bag-of-words model one document at a time and classify new
    documents against it.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )

    if stop_words_file is not None:
        try:
            stop_words = StopWordConfig.from_file(stop_words_file)
        except OSError as e:
            _fail(e)
    elif default_stop_words:
        stop_words = StopWordConfig.default()
    else:
        stop_words = StopWordConfig()

    ctx.ensure_object(dict)
    ctx.obj["stop_words"] = stop_words


@main.command()
@click.argument("model", type=click.Path(path_type=Path))
@click.option("--label", "-l", "labels", multiple=True, required=True,
              help="Label name (repeat for each label, in ID order).")
@click.option("--note", default="", help="Free-text note stored with the model.")
@click.option("--force", is_flag=True, help="Overwrite an existing model file.")
def new(model: Path, labels: tuple[str, ...], note: str, force: bool) -> None:
    """Create an empty model with a fixed label set.

    Example: bayes-bow new model.json -l spam -l ham
    """
    if model.exists() and not force:
        _fail(FileExistsError(f"Model already exists: {model} (use --force to overwrite)"))

    try:
        corpus = Corpus(labels, note=note)
        corpus.save(model)
    except (ValueError, OSError) as e:
        _fail(e)

    console.print(
        f"Created [bold]{escape(str(model))}[/] with {len(labels)} labels: "
        f"{escape(', '.join(labels))}"
    )


@main.command()
@click.argument("model", type=click.Path(exists=True, path_type=Path))
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--label", "-l", "labels", multiple=True, required=True,
              help="Label name of the documents (repeat for several labels).")
@click.pass_context
def train(ctx: click.Context, model: Path, files: tuple[Path, ...], labels: tuple[str, ...]) -> None:
    """Add text files as labelled documents and save the model.

    Each file is one document carrying every given label.

    Example: bayes-bow train model.json -l spam offer1.txt offer2.txt
    """
    corpus = _load(ctx, model)

    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            label_ids = corpus.label_ids(labels)
            for file in files:
                corpus.add_document(_read_words(file), label_ids, doc_id=file.name)
            corpus.save(model)
        except (BayesBowError, OSError, UnicodeDecodeError) as e:
            _fail(e)

    console.print(
        f"Added {len(files)} document(s) to [bold]{escape(str(model))}[/] "
        f"({corpus.doc_count} documents, {corpus.word_count} words)"
    )


@main.command()
@click.argument("model", type=click.Path(exists=True, path_type=Path))
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.option("--save-vocab", is_flag=True,
              help="Save the model afterwards, keeping words first seen in FILE.")
@click.pass_context
def predict(ctx: click.Context, model: Path, file: Path, output: str, save_vocab: bool) -> None:
    """Classify a text file.

    Example: bayes-bow predict model.json message.txt
    """
    corpus = _load(ctx, model)

    try:
        prediction = corpus.predict(_read_words(file))
        if save_vocab:
            corpus.save(model)
    except (BayesBowError, OSError, UnicodeDecodeError) as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps(prediction.to_dict(), indent=2, ensure_ascii=False))
    else:
        _render_prediction(prediction, file.name)


@main.command()
@click.argument("model", type=click.Path(exists=True, path_type=Path))
@click.option("--top", "-n", type=int, default=10, show_default=True,
              help="Number of top words shown per label.")
@click.pass_context
def info(ctx: click.Context, model: Path, top: int) -> None:
    """Show model statistics and the most frequent words per label.

    Example: bayes-bow info model.json --top 5
    """
    corpus = _load(ctx, model)
    stats = corpus.stats()

    console.print()
    console.print(Panel(
        f"[bold]{escape(model.name)}[/]\n"
        f"Labels: {stats['label_count']} | "
        f"Words: {stats['word_count']} | "
        f"Documents: {stats['doc_count']}"
        + (f"\n[dim]{escape(stats['note'])}[/]" if stats["note"] else ""),
        title="📚 Corpus",
        border_style="blue",
    ))

    table = Table(title="Labels", show_lines=False)
    table.add_column("ID", justify="right", width=4)
    table.add_column("Label", style="cyan")
    table.add_column("Docs", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Top words", style="white")

    for label in stats["labels"]:
        top_words = corpus.top_words(label["id"], top_n=top)
        table.add_row(
            str(label["id"]),
            escape(label["name"]),
            str(label["documents"]),
            str(label["words"]),
            escape(", ".join(f"{w} ({c})" for w, c in top_words)) or "-",
        )

    console.print(table)
    console.print()


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_prediction(prediction: Prediction, filename: str) -> None:
    """Render a Prediction as a rich table, best label first."""
    table = Table(title=f"Prediction — {escape(filename)}", show_lines=False)
    table.add_column("ID", justify="right", width=4)
    table.add_column("Label", style="cyan")
    table.add_column("Probability", justify="right")

    ranked = sorted(
        enumerate(prediction.probabilities),
        key=lambda x: x[1],
        reverse=True,
    )
    for label_id, probability in ranked:
        style = "bold green" if label_id == prediction.label_id else ""
        table.add_row(
            str(label_id),
            escape(prediction.label_names[label_id]),
            f"[{style}]{probability:.4f}[/]" if style else f"{probability:.4f}",
        )

    console.print()
    console.print(table)
    console.print(f"Predicted label: [bold green]{escape(prediction.label)}[/] "
                  f"({prediction.confidence:.0%})")
    console.print()


if __name__ == "__main__":
    main()
