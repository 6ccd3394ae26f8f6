"""CLI entrypoint for the Morse code trainer."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Callable

from loguru import logger

from .completion import CourseSnapshot
from .config import get_settings
from .hints import ConsoleHintPlayer
from .models import Course, Outcome
from .morse import MorseKeyer, normalize_pattern
from .service import CourseState, ProfileTransferSummary, TrainerService
from .session import SessionListener, TurnResolved

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
BACK_COMMANDS = {":back", ":b", "back"}
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
MENU_BACK_COMMANDS = {"b"}
LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def configure_logging(level: str) -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def _service() -> TrainerService:
    """Create app service from environment settings."""
    return TrainerService(settings=get_settings())


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="morsetrainer", description="Profile-based Morse code practice")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    parser.add_argument("--log-level", default=None, help="Override MORSETRAINER_LOG_LEVEL")
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    return play_shell()


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run persistent menu-driven shell."""
    service = _service()
    try:
        selected = _select_profile(service, input_fn, print_fn, allow_cancel=False)
        if selected is None:
            return 0
        profile_id, profile_name = selected
        try:
            while True:
                print_fn("\n=== Morse Trainer ===")
                print_fn(f"Profile: {profile_name}")
                print_fn("1) Learn a course")
                print_fn("2) Speed practice")
                print_fn("3) Status")
                print_fn("4) Admin")
                print_fn("b) Back")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _learn_course_flow(service, profile_id, input_fn, print_fn)
                elif choice == "2":
                    _speed_practice_flow(service, profile_id, input_fn, print_fn)
                elif choice == "3":
                    _status_flow(service, profile_id, print_fn)
                elif choice == "4":
                    _admin_flow(service, profile_id, input_fn, print_fn)
                elif choice in MENU_BACK_COMMANDS:
                    switched = _select_profile(service, input_fn, print_fn, allow_cancel=True)
                    if switched is None:
                        return 0
                    profile_id, profile_name = switched
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _select_profile(
    service: TrainerService, input_fn: InputFn, print_fn: PrintFn, *, allow_cancel: bool
) -> tuple[int, str] | None:
    """Pick a learner by name, showing how far each one is through the courses."""
    while True:
        profiles = service.list_profiles()
        print_fn("\n=== Learners ===")
        if profiles:
            width = max(len(profile.name) for profile in profiles)
            for idx, profile in enumerate(profiles, start=1):
                summary = _progress_summary(service.list_course_states(profile.id))
                print_fn(f"{idx}) {profile.name:<{width}}  {summary}")
        else:
            print_fn("No learners yet. Create one to start with the alphabet course.")
        print_fn("n) New learner")
        print_fn("i) Import learner progress from file")
        print_fn("d) Delete learner")
        print_fn("q) Quit")

        choice = input_fn("Select learner: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice == "n":
            name = input_fn("New learner name: ").strip()
            if not name:
                print_fn("Profile name is required.")
                continue
            try:
                created = service.create_profile(name)
            except Exception:
                print_fn("Could not create profile (name may already exist).")
                continue
            return (created.id, created.name)
        if choice == "d":
            _delete_profile_flow(service, input_fn, print_fn)
            continue
        if choice == "i":
            _import_profile_flow(service, input_fn, print_fn)
            continue

        if choice.isdigit():
            index = int(choice) - 1
            if 0 <= index < len(profiles):
                selected = profiles[index]
                return (selected.id, selected.name)

        print_fn("Invalid profile selection.")


def _delete_profile_flow(service: TrainerService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete a learner after listing the course progress that goes with it."""
    profiles = service.list_profiles()
    if not profiles:
        print_fn("No profiles available to delete.")
        return

    print_fn("\nDelete learner")
    for idx, profile in enumerate(profiles, start=1):
        print_fn(f"{idx}) {profile.name}")
    print_fn("b) Back")
    choice = input_fn("Choose learner to delete: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    index = _parse_index(choice, len(profiles))
    if index is None:
        print_fn("Invalid choice.")
        return

    target = profiles[index]
    started = [state for state in service.list_course_states(target.id) if state.started]
    print_fn(f"WARNING: Deleting '{target.name}' also removes their symbol statistics and speed-practice history.")
    if started:
        print_fn("Saved course progress that will be lost:")
        _print_course_progress(started, print_fn)
    else:
        print_fn("No course progress has been saved yet.")
    confirm = input_fn("Type YES to confirm deletion: ").strip()
    if confirm != "YES":
        print_fn("Deletion cancelled.")
        return
    if service.delete_profile(target.id):
        print_fn(f"Deleted profile '{target.name}'.")
    else:
        print_fn("Profile was not found.")


def _parse_index(choice: str, count: int) -> int | None:
    if not choice.isdigit():
        return None
    index = int(choice) - 1
    if not (0 <= index < count):
        return None
    return index


def _progress_summary(states: list[CourseState]) -> str:
    started = [f"{state.course.id} {state.learned}/{state.total}" for state in states if state.started]
    if not started:
        return "(no course started)"
    return "(" + ", ".join(started) + ")"


def _print_course_progress(states: list[CourseState], print_fn: PrintFn) -> None:
    for state in states:
        marker = " complete" if state.completed else ""
        print_fn(f"- {state.course.title}: {state.learned}/{state.total} symbols learned ({state.percent}%){marker}")


def _print_transfer_summary(service: TrainerService, summary: ProfileTransferSummary, print_fn: PrintFn) -> None:
    print_fn(f"- score rows: {summary.score_rows}")
    print_fn(f"- outcome rows: {summary.outcome_rows}")
    print_fn(f"- practice rows: {summary.practice_rows}")
    started = [state for state in service.list_course_states(summary.profile_id) if state.started]
    _print_course_progress(started, print_fn)


def _choose_course(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> Course | None:
    """List courses with progress and return the chosen one."""
    states = service.list_course_states(profile_id)
    id_width = max(len("Course"), max(len(state.course.id) for state in states))
    header = f"{'#':>2} {'Course':<{id_width}} {'Learned':>9} {'%':>4} Title"
    print_fn(header)
    print_fn("-" * len(header))
    for idx, state in enumerate(states, start=1):
        learned = f"{state.learned}/{state.total}"
        print_fn(f"{idx:>2} {state.course.id:<{id_width}} {learned:>9} {state.percent:>4} {state.course.title}")
    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose course: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return None
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    index = _parse_index(choice, len(states))
    if index is None:
        print_fn("Invalid choice.")
        return None
    return states[index].course


def _decode_keyed(text: str) -> str:
    """Decode a typed dot/dash pattern to its symbol; plain symbols pass through."""
    lowered = text.strip().lower()
    if normalize_pattern(lowered) is None:
        return lowered
    keyer = MorseKeyer()
    keyer.feed(lowered)
    decoded = keyer.commit()
    # Unknown patterns are submitted as typed and simply count as a miss.
    return decoded if decoded is not None else lowered


class ConsoleSessionListener(SessionListener):
    """Print turn feedback for the interactive learn loop."""

    def __init__(self, print_fn: PrintFn) -> None:
        self._print = print_fn

    def on_turn_resolved(self, event: TurnResolved) -> None:
        if event.outcome is Outcome.CORRECT:
            self._print(f"Correct: {event.expected.upper()} (score {event.score:+d})")
        else:
            typed = event.submitted.upper() if event.submitted else "nothing"
            self._print(f"Not quite: expected {event.expected.upper()}, got {typed} (score {event.score:+d})")

    def on_pool_grown(self, symbol: str) -> None:
        self._print(f"New symbol unlocked: {symbol.upper()}")

    def on_course_complete(self, snapshot: CourseSnapshot) -> None:
        self._print(f"\nCourse complete! {snapshot.learned}/{snapshot.total} symbols learned.")
        answered = sum(counts.total for counts in snapshot.outcomes.values())
        if answered:
            correct = sum(counts.correct for counts in snapshot.outcomes.values())
            self._print(f"This session: {correct}/{answered} correct")

    def on_warning(self, message: str) -> None:
        self._print(f"Warning: {message}")


def _learn_course_flow(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick a course and run the keyed learn loop."""
    print_fn("\n=== Learn Course ===")
    course = _choose_course(service, profile_id, input_fn, print_fn)
    if course is None:
        return
    asyncio.run(_run_learn_session(service, profile_id, course, input_fn, print_fn))


async def _run_learn_session(
    service: TrainerService,
    profile_id: int,
    course: Course,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> None:
    """Prompt symbol by symbol until the course is complete or the learner leaves."""
    settings = service.settings
    player = ConsoleHintPlayer(
        print_fn,
        announce_delay=settings.announce_delay,
        element_gap=settings.morse_element_gap,
        element_max=settings.morse_element_max,
        mnemonic_delay=settings.mnemonic_delay,
    )
    controller = service.start_session(
        profile_id,
        course.id,
        listener=ConsoleSessionListener(print_fn),
        hint_player=player,
    )
    print_fn(f"\nStarting course: {course.title}")
    print_fn("Key each symbol as dots and dashes (e.g. .-) or type it directly.")
    print_fn("Type :b or :q to leave the course.")
    try:
        if controller.start() is None:
            print_fn("All symbols in this course are already learned.")
            return
        while not controller.is_complete:
            word = controller.current_word
            position = controller.state.symbol_index
            keyed = word.text[:position].upper()
            print_fn(f"\nWord: {word.text.upper()}  keyed: {keyed or '-'}")
            typed = await asyncio.to_thread(input_fn, f"Symbol {position + 1}/{len(word)}: ")
            lowered = typed.strip().lower()
            if lowered in BACK_COMMANDS or lowered in FLOW_EXIT_COMMANDS:
                print_fn("Leaving course. Progress saved.")
                return
            controller.submit(_decode_keyed(lowered))
            await asyncio.sleep(0)
    finally:
        controller.close()


def _speed_practice_flow(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Key random phrases against the clock."""
    session = service.start_practice()
    print_fn("\n=== Speed Practice ===")
    print_fn(f"Phrases this round: {len(session.phrases)}")
    print_fn("Mistakes are flagged and skipped. Type :b or :q to stop.")
    shown: int | None = None
    while not session.complete:
        if shown != session.phrase_index:
            shown = session.phrase_index
            print_fn(f"\nPhrase {shown + 1}/{len(session.phrases)}: {session.current_phrase}")
        typed = input_fn(f"[{session.keyed_so_far()}] next: ").strip().lower()
        if typed in BACK_COMMANDS or typed in FLOW_EXIT_COMMANDS:
            print_fn(f"\nPractice stopped early with {session.errors} error(s).")
            return
        step = session.handle_input(_decode_keyed(typed))
        if step is not None and not step.correct:
            print_fn(f"Missed: expected {step.expected.upper()}")

    record = service.finish_practice(profile_id, session)
    history = service.practice_history(profile_id)
    print_fn("\nPractice complete.")
    print_fn(f"- words: {record.total_words}")
    print_fn(f"- errors: {record.errors}")
    print_fn(f"- speed: {record.wpm:.1f} WPM")
    print_fn(f"- sessions so far: {len(history)}")


def _status_flow(service: TrainerService, profile_id: int, print_fn: PrintFn) -> None:
    """Print course progress and per-symbol statistics for started courses."""
    print_fn("\n=== Course Status ===")
    states = service.list_course_states(profile_id)
    id_width = max(len("Course"), max(len(state.course.id) for state in states))
    header = f"{'Course':<{id_width}} {'Learned':>9} {'%':>4} Stage"
    print_fn(header)
    print_fn("-" * len(header))
    for state in states:
        stage = "completed" if state.completed else ("started" if state.started else "new")
        learned = f"{state.learned}/{state.total}"
        print_fn(f"{state.course.id:<{id_width}} {learned:>9} {state.percent:>4} {stage}")

    for state in states:
        if not state.started:
            continue
        print_fn(f"\n{state.course.title}:")
        stats_header = f"{'Sym':<4} {'Morse':<6} {'Score':>5} {'Right':>5} {'Wrong':>5} {'Acc%':>4} Learned"
        print_fn(stats_header)
        print_fn("-" * len(stats_header))
        for row in service.symbol_stats(profile_id, state.course.id):
            learned_mark = "yes" if row.learned else "-"
            print_fn(
                f"{row.code.upper():<4} {row.morse:<6} {row.score:>5} {row.correct:>5} "
                f"{row.wrong:>5} {row.accuracy:>4} {learned_mark}"
            )

    history = service.practice_history(profile_id)
    if history:
        last = history[-1]
        print_fn(f"\nSpeed practice: {len(history)} session(s), last {last.wpm:.1f} WPM with {last.errors} error(s)")


def _admin_flow(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Admin menu for progress management."""
    while True:
        print_fn("\n=== Admin ===")
        print_fn("1) Export current profile")
        print_fn("2) Reset course progress")
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose admin option: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if choice == "1":
            _export_profile_flow(service, profile_id, input_fn, print_fn)
        elif choice == "2":
            _reset_course_flow(service, profile_id, input_fn, print_fn)
        else:
            print_fn("Invalid choice.")


def _reset_course_flow(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Forget saved scores for one course after typed confirmation."""
    print_fn("\n=== Reset Course ===")
    course = _choose_course(service, profile_id, input_fn, print_fn)
    if course is None:
        return
    print_fn(f"WARNING: This forgets every saved score for '{course.title}'.")
    confirm = input_fn("Type YES to confirm reset: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    if service.reset_course(profile_id, course.id):
        print_fn(f"Progress for '{course.title}' was reset.")
    else:
        print_fn("Nothing to reset.")


def _export_profile_flow(service: TrainerService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Write the learner's course scores, symbol statistics and WPM history to JSON."""
    print_fn("\n=== Export Learner Progress ===")
    path_text = input_fn("Export file path: ").strip()
    if not path_text:
        print_fn("File path is required.")
        return
    try:
        summary = service.export_profile(profile_id, path_text)
    except Exception as exc:
        print_fn(f"Export failed: {exc}")
        return
    print_fn(f"Exported profile '{summary.profile_name}' to {path_text}")
    _print_transfer_summary(service, summary, print_fn)


def _import_profile_flow(service: TrainerService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Create a learner from an exported progress file."""
    print_fn("\n=== Import Learner Progress ===")
    path_text = input_fn("Import file path: ").strip()
    if not path_text:
        print_fn("File path is required.")
        return
    name_text = input_fn("Learner name (blank = name in file): ").strip()
    target_name = name_text if name_text else None
    try:
        summary = service.import_profile(path_text, target_name)
    except Exception as exc:
        print_fn(f"Import failed: {exc}")
        return
    print_fn(f"Imported profile '{summary.profile_name}'.")
    _print_transfer_summary(service, summary, print_fn)


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
