"""Interactive CLI application."""
import asyncio
import sys
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from edufinder.config import AppConfig
from edufinder.generator import GeminiContentGenerator
from edufinder.models import ClassLevel, ContentGoal, Step
from edufinder.navigation import NavigationController
from edufinder.performance import PerformanceEngine, mastery_color, mastery_label
from edufinder.store import SqliteProgressStore

console = Console()

BACK = "b"
HOME = "h"
OPTION_LETTERS = ["a", "b", "c", "d"]


class NavigationRequested(Exception):
    """Raised from a prompt when the user types the back or home key."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key


def nav_prompt(message: str, choices: list[str], default: str = None) -> str:
    """Prompt that also accepts 'b' (back) and 'h' (home)."""
    extra = [c for c in (BACK, HOME) if c not in choices]
    answer = Prompt.ask(message, choices=choices + extra, default=default).strip().lower()
    if answer in extra:
        raise NavigationRequested(answer)
    return answer


def choose(title: str, options: list[str]) -> str:
    """Numbered menu; returns the chosen option text."""
    console.print(f"\n[bold]{title}[/bold]  [dim](b=back, h=home)[/dim]")
    for i, opt in enumerate(options, 1):
        console.print(f"  [cyan]{i:>2}[/cyan]) {opt}")
    picked = nav_prompt("Select", [str(i) for i in range(1, len(options) + 1)])
    return options[int(picked) - 1]


async def run_with_status(nav: NavigationController, **update) -> bool:
    """Advance the wizard, showing a spinner while a fetch is outstanding."""
    task = asyncio.create_task(nav.advance(**update))
    await asyncio.sleep(0)
    if not nav.is_loading:
        return await task
    with console.status(f"[bold]{nav.loading_message()}[/bold]"):
        return await task


def show_home(nav: NavigationController) -> None:
    console.print(Panel(
        "[bold]EduFinder[/bold]\n[dim]Generated MCQs and revision notes by chapter[/dim]",
        title="Welcome", border_style="blue",
    ))
    view = nav.snapshot()
    mode = "[green]ON[/green]" if view["selection"].is_teacher_mode else "[dim]off[/dim]"
    summary = view["home"]
    stats = summary["stats"]
    console.print(f"  Teacher mode: {mode}  |  "
                  f"Quizzes: [bold]{stats['total_quizzes']}[/bold]  |  "
                  f"Avg mastery: [bold]{stats['avg']:.1f}%[/bold]")

    if summary["suggestions"]:
        table = Table(title="Practice Suggestions")
        table.add_column("Chapter", style="cyan")
        table.add_column("Subject")
        table.add_column("Class")
        table.add_column("Average", justify="right")
        table.add_column("Status")
        for perf in summary["suggestions"]:
            color = mastery_color(perf.average_percentage)
            table.add_row(
                perf.chapter, perf.subject, perf.class_level.value,
                f"{perf.average_percentage:.0f}%",
                f"[{color}]{mastery_label(perf.average_percentage)}[/{color}]",
            )
        console.print(table)

    console.print("\n[bold]Commands:[/bold]")
    for cmd, desc in [
        ("start", "Pick a class, subject and chapter"),
        ("teacher", "Toggle teacher mode (answer keys only)"),
        ("reset", "Erase all quiz history"),
        ("quit", "Exit"),
    ]:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def cmd_reset_progress(nav: NavigationController) -> None:
    if Confirm.ask("[red]Erase all saved quiz history?[/red]", default=False):
        nav.performance.reset_all()
        console.print("[green]Progress cleared.[/green]")


def run_student_quiz(nav: NavigationController) -> None:
    quiz = nav.quiz
    while not quiz.is_score_view:
        q = quiz.current_question
        console.print(f"\n[dim]Question {quiz.current_index + 1} of {quiz.total}"
                      f"  |  Score: {quiz.score()}[/dim]")
        console.print(f"[bold]{q.text}[/bold]\n")
        for letter, opt in zip(OPTION_LETTERS, q.options):
            console.print(f"  [cyan]{letter})[/cyan] {opt}")
        if not quiz.is_answered():
            answer = Prompt.ask("\nYour answer", choices=OPTION_LETTERS)
            quiz.select_answer(OPTION_LETTERS.index(answer))
        if quiz.answers[quiz.current_index] == q.correct_index:
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: "
                          f"[green]{OPTION_LETTERS[q.correct_index]}) {q.options[q.correct_index]}[/green]")
        if q.explanation:
            console.print(f"[dim]{q.explanation}[/dim]")
        label = "View results" if quiz.is_last() else "Next question"
        nav_prompt(f"[dim]Enter: {label}[/dim]", [""], default="")
        quiz.advance_or_finish()


def show_score(nav: NavigationController) -> None:
    quiz = nav.quiz
    pct = quiz.percentage()
    color = mastery_color(pct)
    console.print(Panel(
        f"[bold {color}]{pct:.0f}%[/bold {color}]\nYou got {quiz.score()} out of {quiz.total} correct.",
        title="Quiz Finished!", border_style=color,
    ))
    choice = nav_prompt("retry / new", ["retry", "new"], default="new")
    if choice == "retry":
        quiz.restart()
    else:
        nav.reset()


def show_answer_key(nav: NavigationController) -> None:
    table = Table(title=f"Master Answer Key: {nav.selection.chapter}", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Answer", style="green")
    table.add_column("Explanation", style="dim")
    for i, (q, answer) in enumerate(nav.quiz.answer_key(), 1):
        options = "\n".join(f"{letter}) {opt}" for letter, opt in zip(OPTION_LETTERS, q.options))
        table.add_row(str(i), f"{q.text}\n{options}",
                      f"{OPTION_LETTERS[q.correct_index]}) {answer}", q.explanation)
    console.print(table)
    nav_prompt("[dim]Enter: new session[/dim]", [""], default="")
    nav.reset()


def show_revision(nav: NavigationController) -> None:
    lines = "\n".join(f"[bold]{i}.[/bold] {p}" for i, p in enumerate(nav.revision_points, 1))
    console.print(Panel(lines, title="Chapter Highlights", border_style="magenta"))
    nav_prompt("[dim]Enter: return home[/dim]", [""], default="")
    nav.reset()


async def run_step(nav: NavigationController) -> Optional[bool]:
    """Render the active screen and apply the user's choice.

    Returns False when the user asks to quit.
    """
    step = nav.step
    if step == Step.HOME:
        show_home(nav)
        choice = Prompt.ask("\n[bold]>[/bold]", default="start").strip().lower()
        if choice == "start":
            await nav.advance()
        elif choice == "teacher":
            state = "on" if nav.toggle_teacher_mode() else "off"
            console.print(f"[cyan]Teacher mode {state}.[/cyan]")
        elif choice == "reset":
            cmd_reset_progress(nav)
        elif choice in ("quit", "exit", "q"):
            return False
        else:
            console.print("[red]Unknown command. Try again.[/red]")
    elif step == Step.CLASS_SELECT:
        level = choose("Grade", [c.value for c in ClassLevel])
        await nav.advance(class_level=level)
    elif step == Step.SUBJECT_SELECT:
        subject = choose(f"Subject  [dim]Level: {nav.selection.class_level.value}[/dim]", nav.subjects())
        await run_with_status(nav, subject=subject)
    elif step == Step.CHAPTER_SELECT:
        chapter = choose(f"Chapter  [dim]Subject: {nav.selection.subject}[/dim]", nav.chapters)
        await nav.advance(chapter=chapter)
    elif step == Step.CONTENT_TYPE_SELECT:
        if nav.error:
            console.print(f"[red]{nav.error}[/red]")
        goal = choose(f"Select Goal  [dim]{nav.selection.chapter}[/dim]", [g.value for g in ContentGoal])
        await run_with_status(nav, content_goal=goal)
    elif step == Step.RESULTS:
        if nav.quiz is not None and nav.quiz.teacher_mode:
            show_answer_key(nav)
        elif nav.quiz is not None:
            if not nav.quiz.is_score_view:
                run_student_quiz(nav)
            show_score(nav)
        else:
            show_revision(nav)
    return True


async def run_app(nav: NavigationController) -> None:
    while True:
        try:
            if await run_step(nav) is False:
                console.print("[dim]Happy studying![/dim]")
                break
        except NavigationRequested as e:
            if e.key == BACK:
                nav.back()
            else:
                nav.reset()
        except Exception as e:
            logger.exception("Unhandled error in command loop")
            console.print(f"[red]Error: {e}[/red]")


def build_controller(config: AppConfig) -> NavigationController:
    engine = PerformanceEngine(SqliteProgressStore(config.db_path))
    return NavigationController(GeminiContentGenerator(config), engine)


def main():
    config = AppConfig.from_env()
    logger.remove()
    logger.add(sys.stderr, level=config.log_level, format="<level>{message}</level>")
    nav = build_controller(config)
    if not config.is_online:
        console.print("[yellow]GEMINI_API_KEY not set: chapters fall back to placeholders "
                      "and content cannot be generated.[/yellow]")
    # asyncio.run turns Ctrl-C into task cancellation and re-raises it here.
    try:
        asyncio.run(run_app(nav))
    except KeyboardInterrupt:
        console.print("\n[dim]Happy studying![/dim]")


if __name__ == "__main__":
    main()
