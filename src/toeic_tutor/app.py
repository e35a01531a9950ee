"""Interactive terminal front end for the practice engine."""
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from toeic_tutor.config import get_settings
from toeic_tutor.engine import PracticeEngine, build_engine
from toeic_tutor.estimator import get_readiness_color, get_readiness_label
from toeic_tutor.log import configure_logging
from toeic_tutor.models import ANY, KIND_PROFILES, SessionSummary

console = Console()

EXIT_WORDS = ("q", "menu")
LETTERS = "abcdefgh"


class SessionExitRequested(Exception):
    """The learner asked to leave the running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]TOEIC Reading Practice[/bold]\n[dim]Weak areas first, every session[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("practice", "Start a practice session"),
        ("dashboard", "Estimated score + progress"),
        ("review", "Weak areas and missed questions"),
        ("reset", "Clear saved progress"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_summary(summary: SessionSummary) -> None:
    console.print(
        f"\n[bold]Score: {summary.correct}/{summary.correct + summary.incorrect} "
        f"({summary.accuracy}%)[/bold]  [dim]{summary.elapsed_ms // 1000}s[/dim]"
    )
    for rec in summary.recommendations:
        console.print(f"  [yellow]{rec['suggestion']}[/yellow]")


def run_practice_session(
    engine: PracticeEngine, kind: str = ANY, difficulty: str = ANY, count: int | None = None
) -> SessionSummary | None:
    session = engine.start_session(kind, difficulty, count)
    if session is None:
        console.print("[yellow]No questions available![/yellow]")
        return None
    console.print(f"\n[bold]Practice[/bold]: {len(session)} questions [dim](q to stop)[/dim]\n")
    shown_passage = None
    try:
        while True:
            presented = engine.get_current_item()
            item = presented.item
            passage = presented.passage
            if passage is not None and passage.id != shown_passage:
                console.print(Panel(passage.body, title=passage.title, border_style="cyan"))
            shown_passage = passage.id if passage is not None else None
            console.print(f"[bold]Q{presented.position + 1}/{presented.total}.[/bold] {item.prompt}\n")
            letters = list(LETTERS[:len(item.options)])
            for letter, option in zip(letters, item.options):
                console.print(f"  [cyan]{letter})[/cyan] {option}")
            answer = session_prompt("\nYour answer", choices=letters + list(EXIT_WORDS), show_choices=False)
            result = engine.submit_answer(letters.index(answer.strip().lower()))
            if result is not None and result.correct:
                console.print("[green]Correct![/green]")
            elif result is not None:
                console.print(f"[red]Incorrect.[/red] Answer: [green]{letters[result.correct_index]}[/green]")
            if result is not None and result.explanation:
                console.print(f"[dim]{result.explanation}[/dim]")
            console.print()
            if not engine.go_to_next_item():
                break
    except SessionExitRequested:
        console.print("[dim]Session stopped.[/dim]")
    summary = engine.end_session()
    show_summary(summary)
    return summary


def cmd_practice(engine: PracticeEngine):
    console.print("\n[bold]Practice Session[/bold]")
    kinds = [ANY] + list(KIND_PROFILES)
    kind = Prompt.ask("Question type", choices=kinds, default=ANY)
    count = IntPrompt.ask("Number of questions", default=engine.session_size)
    run_practice_session(engine, kind=kind, count=count)


def cmd_dashboard(engine: PracticeEngine):
    stats = engine.get_overall_stats()
    estimate = engine.get_score_estimate()
    label = get_readiness_label(estimate.score)
    color = get_readiness_color(estimate.score)
    console.print(Panel(
        f"[bold]{stats.answered_questions} of {stats.total_questions} questions practiced "
        f"({stats.progress_percentage}%)[/bold]",
        title="TOEIC Reading Dashboard", border_style="blue",
    ))

    bar_filled = int(estimate.score / 495 * 20)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(f"\n  Estimated score: [bold]{estimate.score}[/bold] / 495 {bar} [{color}]{label}[/{color}]")
    console.print(f"  [dim]{estimate.disclaimer}[/dim]\n")

    table = Table(title="By Question Type")
    table.add_column("Type", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Accuracy", justify="right")
    for kind, entry in engine.get_stats_by_kind().items():
        table.add_row(KIND_PROFILES[kind].name, str(entry["items"]), f"{entry['accuracy']}%")
    console.print(table)
    console.print(f"\n  Correct: [bold]{stats.total_correct}[/bold]  |  "
                  f"Incorrect: [bold]{stats.total_incorrect}[/bold]  |  "
                  f"Accuracy: [bold]{stats.overall_accuracy}%[/bold]")


def cmd_review(engine: PracticeEngine):
    console.print("\n[bold]Weak Area Review[/bold]\n")
    weak = engine.get_weak_areas()
    if not weak:
        console.print("[green]No weak areas detected! Keep up the good work.[/green]")
        return
    table = Table(title="Weak Question Types")
    table.add_column("Type")
    table.add_column("Accuracy", justify="right")
    table.add_column("Recommendation")
    for w in weak:
        table.add_row(w["name"], f"{w['accuracy']}%", w["recommendation"])
    console.print(table)

    missed = engine.get_missed_items()
    if missed:
        console.print("\n[bold]Recently missed:[/bold]")
        for m in missed[:5]:
            console.print(f"  [red]✗[/red] {m['prompt']} [dim]→ {m['correct']}[/dim]")

    console.print(f"\n[bold]Drilling: {weak[0]['name']}[/bold]")
    run_practice_session(engine, kind=weak[0]["kind"], count=5)


def cmd_reset(engine: PracticeEngine):
    if Confirm.ask("Clear all saved progress?", default=False):
        engine.reset_progress()
        console.print("[green]Progress cleared.[/green]")


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = build_engine(settings)
    if engine.repository.using_fallback:
        console.print("[yellow]Question bank unavailable, using built-in sample.[/yellow]")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="practice").strip().lower()
        try:
            if choice == "practice":
                cmd_practice(engine)
            elif choice == "dashboard":
                cmd_dashboard(engine)
            elif choice == "review":
                cmd_review(engine)
            elif choice == "reset":
                cmd_reset(engine)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
