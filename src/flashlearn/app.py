"""Interactive CLI application."""
import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from flashlearn.backup import BackupError, export_data, get_backup_info, import_data
from flashlearn.dashboard import get_progress_color, get_set_progress, get_study_stats
from flashlearn.db import DEFAULT_DB_PATH, init_db
from flashlearn.exercises import normalize_answer
from flashlearn.importer import ImportFormatError, import_file, parse_bulk_text
from flashlearn.match import MatchGame, PickResult
from flashlearn.models import ExerciseType, LearnMode
from flashlearn.quiz import ANSWER_WITH, generate_test, grade_test_answer, score_test
from flashlearn.review import ReviewTally, get_review_cards, record_review
from flashlearn.scheduler import start_session
from flashlearn.session import SessionState
from flashlearn.store import FlashcardStore

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")

TYPE_LABELS = {
    ExerciseType.TRUE_FALSE: "True or False",
    ExerciseType.MULTIPLE_CHOICE: "Multiple Choice",
    ExerciseType.FREE_TYPE: "Write the answer",
}


class SessionExitRequested(Exception):
    """The user asked to leave the running session."""


def setup_logging(level: str | None = None) -> None:
    level = level or os.environ.get("FLASHLEARN_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def session_prompt(prompt: str, choices: list | None = None, answers=(), **kwargs) -> str:
    """Prompt.ask that raises SessionExitRequested on 'q' or 'menu'.

    Text matching one of ``answers`` is returned as typed, so a card whose
    answer happens to be an exit word can still be answered.
    """
    if choices is not None:
        choices = list(choices) + [w for w in EXIT_WORDS if w not in choices]
        kwargs["choices"] = choices
    answer = Prompt.ask(prompt, **kwargs)
    typed = normalize_answer(answer)
    if any(typed == normalize_answer(a) for a in answers):
        return answer
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]FlashLearn[/bold]\n[dim]Flashcards in your terminal[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("sets", "List your sets (search, favorites)"),
        ("terms", "Search terms across all sets"),
        ("new", "Create a set by typing cards"),
        ("edit", "Rename a set or replace its cards"),
        ("import", "Create a set from a file"),
        ("learn", "Mixed drill in short blocks"),
        ("test", "Practice test"),
        ("review", "Flip through cards"),
        ("match", "Match terms to meanings against the clock"),
        ("fav", "Mark / unmark a favorite set"),
        ("delete", "Delete a set"),
        ("stats", "Progress overview"),
        ("export", "Back up everything to JSON"),
        ("restore", "Restore from a backup"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def choose_set(store: FlashcardStore) -> str | None:
    sets = get_set_progress(store)
    if not sets:
        console.print("[yellow]No sets yet. Use 'new' or 'import' first.[/yellow]")
        return None
    for i, s in enumerate(sets, 1):
        star = "★ " if s["is_favorite"] else ""
        console.print(f"  [cyan]{i}[/cyan]) {star}{s['title']} [dim]({s['card_count']} cards)[/dim]")
    choice = Prompt.ask("Select set", choices=[str(i) for i in range(1, len(sets) + 1)])
    return sets[int(choice) - 1]["set_id"]


def read_card_lines() -> list[dict]:
    console.print("[dim]One card per line as term;definition (or term,definition / term-definition). "
                  "Empty line to finish.[/dim]")
    lines = []
    while True:
        line = Prompt.ask("", default="", show_default=False)
        if not line.strip():
            break
        lines.append(line)
    return parse_bulk_text("\n".join(lines))


def ask_task(task, answered: int, total: int):
    """Show one drill task and return the user's raw response for grading."""
    console.print(Panel(
        task.card.front,
        title=f"{TYPE_LABELS[task.type]} ({answered + 1}/{total})",
        border_style="cyan",
    ))
    if task.type is ExerciseType.TRUE_FALSE:
        console.print(f'  "{task.statement}"')
        return session_prompt("True or false?", choices=["t", "f"]) == "t"
    if task.type is ExerciseType.MULTIPLE_CHOICE:
        for i, option in enumerate(task.options, 1):
            console.print(f"  [cyan]{i})[/cyan] {option}")
        choice = session_prompt("Your answer", choices=[str(i) for i in range(1, len(task.options) + 1)])
        return task.options[int(choice) - 1]
    return session_prompt("Type the answer", answers=task.valid_answers)


def run_learn_session(runner):
    """Drive a SessionRunner from the console until it completes or is cancelled."""
    if runner.state is SessionState.NO_CONTENT:
        console.print("[yellow]Nothing to study in this set.[/yellow]")
        return runner
    try:
        while runner.state is not SessionState.SESSION_COMPLETE:
            if runner.state is SessionState.RUNNING:
                answered, total = runner.progress()
                task = runner.current_task
                response = ask_task(task, answered, total)
                if runner.answer(response):
                    console.print("[green]Correct![/green]\n")
                else:
                    console.print(f"[red]Incorrect.[/red] Answer: [green]{task.card.back}[/green]\n")
            else:
                answered, total = runner.progress()
                console.print(f"[bold]Block {runner.block_index + 1} of {len(runner.blocks)} done[/bold] "
                              f"[dim]({answered}/{total} answered, {runner.correct_count} correct)[/dim]")
                session_prompt("[dim]Press Enter to continue[/dim]", default="", show_default=False)
                runner.continue_session()
    except SessionExitRequested:
        runner.cancel()
        console.print("[dim]Session cancelled.[/dim]")
        return runner
    pct = runner.final_score * 100
    console.print(Panel(
        f"[bold]{pct:.0f}%[/bold]\n{runner.correct_count} / {runner.total_tasks} correctly answered",
        title="Round Complete!", border_style="green",
    ))
    return runner


def run_test_session(questions: list) -> dict:
    results = []
    try:
        for i, q in enumerate(questions, 1):
            console.print(f"[bold]Q{i}.[/bold] {q.prompt}\n")
            if q.type is ExerciseType.TRUE_FALSE:
                console.print(f'  "{q.statement}"')
                answer = session_prompt("True or false?", choices=["t", "f"]) == "t"
            elif q.type is ExerciseType.MULTIPLE_CHOICE:
                for n, option in enumerate(q.options, 1):
                    console.print(f"  [cyan]{n})[/cyan] {option}")
                choice = session_prompt("Your answer", choices=[str(n) for n in range(1, len(q.options) + 1)])
                answer = q.options[int(choice) - 1]
            else:
                answer = session_prompt("Your answer", answers=(q.correct_answer,))
            is_correct = grade_test_answer(q, answer)
            results.append(is_correct)
            if is_correct:
                console.print("[green]Correct![/green]\n")
            else:
                console.print(f"[red]Incorrect.[/red] Answer: [green]{q.correct_answer}[/green]\n")
    except SessionExitRequested:
        console.print("[dim]Test abandoned.[/dim]")
    score = score_test(results)
    console.print(f"[bold]Score: {score['correct']}/{score['total']} ({score['percent']:.0f}%)[/bold]\n")
    return score


def run_review_session(store: FlashcardStore, cards: list) -> ReviewTally:
    tally = ReviewTally()
    if not cards:
        console.print("[yellow]No cards to review.[/yellow]")
        return tally
    try:
        for i, card in enumerate(cards, 1):
            console.print(Panel(card.front, title=f"Card {i}/{len(cards)}", border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal[/dim]", default="", show_default=False)
            console.print(Panel(card.back, border_style="green"))
            knew = session_prompt("Did you know it?", choices=["y", "n"]) == "y"
            record_review(store, tally, card.id, knew)
    except SessionExitRequested:
        console.print("[dim]Review stopped.[/dim]")
    console.print(f"[green]Know: {tally.learned}[/green]  [red]Still learning: {tally.review_needed}[/red]")
    return tally


def run_match_session(game: MatchGame) -> MatchGame:
    """Play a match round from the console by picking tiles by number."""
    if not game.has_content:
        console.print("[yellow]Nothing to study in this set.[/yellow]")
        return game
    try:
        while not game.is_finished:
            table = Table(show_header=False, box=None)
            for i, tile in enumerate(game.tiles, 1):
                if tile.is_matched:
                    continue
                style = "bold magenta" if tile is game.selected else "white"
                table.add_row(f"[cyan]{i})[/cyan]", f"[{style}]{tile.text}[/{style}]")
            console.print(table)
            open_tiles = [str(i) for i, t in enumerate(game.tiles, 1) if not t.is_matched]
            choice = session_prompt(f"Pick a tile [dim]({game.elapsed_seconds}s)[/dim]", choices=open_tiles)
            result = game.pick(game.tiles[int(choice) - 1].id)
            if result is PickResult.MATCHED:
                console.print("[green]Match![/green]\n")
            elif result is PickResult.MISMATCHED:
                console.print("[red]Not a pair.[/red]\n")
    except SessionExitRequested:
        console.print("[dim]Game abandoned.[/dim]")
        return game
    console.print(Panel(
        f"Time: [bold]{game.elapsed_seconds}s[/bold]\nMistakes: [bold]{game.mistakes}[/bold]",
        title="Game Over!", border_style="green",
    ))
    return game


def show_sets(store: FlashcardStore, search: str = "", favorites_only: bool = False):
    rows = get_set_progress(store, search, favorites_only)
    if not rows:
        console.print("[yellow]No sets found.[/yellow]")
        return
    table = Table(title="Your Sets")
    table.add_column("Set", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("Learned", justify="right")
    table.add_column("Status")
    for s in rows:
        color = get_progress_color(s["percent"])
        star = "★ " if s["is_favorite"] else ""
        table.add_row(
            f"{star}{s['title']}",
            str(s["card_count"]),
            f"{s['learned_count']} ({s['percent']}%)",
            f"[{color}]{s['label']}[/{color}]",
        )
    console.print(table)


def cmd_sets(store: FlashcardStore):
    search = Prompt.ask("Search titles", default="", show_default=False)
    favorites_only = Confirm.ask("Favorites only?", default=False)
    show_sets(store, search, favorites_only)


def cmd_terms(store: FlashcardStore):
    query = Prompt.ask("Search terms", default="", show_default=False)
    results = store.search_cards(query)
    if not results:
        console.print(f'[yellow]No terms found matching "{query}"[/yellow]')
        return
    table = Table(title=f"Terms ({len(results)})")
    table.add_column("Term", style="cyan")
    table.add_column("Definition")
    table.add_column("Set", style="dim")
    for card, set_title in results:
        table.add_row(card.front, card.back, set_title)
    console.print(table)


def cmd_new(store: FlashcardStore):
    title = Prompt.ask("Title")
    description = Prompt.ask("Description", default="")
    cards = read_card_lines()
    if not cards:
        console.print("[yellow]No cards entered, set not created.[/yellow]")
        return
    store.add_set(title, description, cards)
    console.print(f"[green]Created '{title}' with {len(cards)} cards.[/green]")


def cmd_edit(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    current = store.get_set(set_id)
    title = Prompt.ask("Title", default=current.title)
    description = Prompt.ask("Description", default=current.description)
    cards = read_card_lines()
    if not cards:
        cards = [{"front": c.front, "back": c.back} for c in store.get_cards(set_id)]
    store.update_set(set_id, title, description, cards, current.tags)
    console.print(f"[green]Saved '{title}'. Progress for this set starts over.[/green]")


def cmd_import(store: FlashcardStore):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    try:
        result = import_file(store, file_path)
    except ImportFormatError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Imported {result['card_count']} cards into '{result['title']}'[/green]")


def cmd_learn(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    default_mode = store.get_setting("default_mode", LearnMode.LEARN.value)
    mode = LearnMode(Prompt.ask(
        "Mode (tf / mcq / type / learn = mixed)",
        choices=[m.value for m in LearnMode], default=default_mode,
    ))
    store.set_setting("default_mode", mode.value)
    runner = start_session(store, set_id, mode.exercise_types())
    run_learn_session(runner)


def cmd_test(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    cards = store.get_cards(set_id)
    if not cards:
        console.print("[yellow]Nothing to study in this set.[/yellow]")
        return
    count = IntPrompt.ask(f"Number of questions (max {len(cards)})", default=len(cards))
    answer_with = Prompt.ask("Answer with", choices=list(ANSWER_WITH), default="both")
    group = Confirm.ask("Group question types?", default=False)
    types = [t for t in ExerciseType if Confirm.ask(f"Include {TYPE_LABELS[t]}?", default=True)]
    if not types:
        console.print("[yellow]Pick at least one question type.[/yellow]")
        return
    questions = generate_test(cards, count, types, answer_with=answer_with, group_types=group)
    run_test_session(questions)


def cmd_review(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    pool = Prompt.ask("Cards", choices=["all", "not_learned"], default="all")
    run_review_session(store, get_review_cards(store, set_id, pool=pool))


def cmd_match(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    run_match_session(MatchGame(store.get_cards(set_id), store))


def cmd_favorite(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    starred = store.toggle_favorite(set_id)
    console.print("[green]Marked as favorite.[/green]" if starred else "[dim]Removed from favorites.[/dim]")


def cmd_delete(store: FlashcardStore):
    set_id = choose_set(store)
    if not set_id:
        return
    title = store.get_set(set_id).title
    if Confirm.ask(f"Delete '{title}' and all its progress?", default=False):
        store.delete_set(set_id)
        console.print(f"[green]Deleted '{title}'.[/green]")


def cmd_stats(store: FlashcardStore):
    stats = get_study_stats(store)
    console.print(f"\n  Sets: [bold]{stats['sets']}[/bold]  |  "
                  f"Cards: [bold]{stats['cards']}[/bold]  |  "
                  f"Learned: [bold]{stats['learned']}[/bold]  |  "
                  f"Answers: [bold]{stats['answers']}[/bold]  |  "
                  f"Accuracy: [bold]{stats['accuracy']}%[/bold]\n")
    show_sets(store)
    info = get_backup_info(store)
    if info:
        console.print(f"[dim]Last backup: {info['filename']}[/dim]")


def cmd_export(store: FlashcardStore):
    directory = Prompt.ask("Directory", default=str(Path.cwd()))
    path = export_data(store, directory)
    console.print(f"[green]Backup written to {path}[/green]")


def cmd_restore(store: FlashcardStore):
    file_path = Prompt.ask("Backup file")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    if not Confirm.ask("This replaces all current sets and progress. Continue?", default=False):
        return
    try:
        result = import_data(store, file_path)
    except BackupError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Restored {result['sets']} sets, {result['cards']} cards.[/green]")


COMMANDS = {
    "sets": cmd_sets,
    "terms": cmd_terms,
    "new": cmd_new,
    "edit": cmd_edit,
    "import": cmd_import,
    "learn": cmd_learn,
    "test": cmd_test,
    "review": cmd_review,
    "match": cmd_match,
    "fav": cmd_favorite,
    "delete": cmd_delete,
    "stats": cmd_stats,
    "export": cmd_export,
    "restore": cmd_restore,
}


def main():
    setup_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    store = FlashcardStore(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="learn").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Bye![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(store)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
