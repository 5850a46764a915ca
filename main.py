"""
Scorekinole - Crokinole Scoring System

Entry point for the application. Runs a line-oriented scoreboard on the
console; every command maps onto one ScoringEngine action.
"""

import logging
import shlex
import sys

from PySide6.QtCore import QCoreApplication

from config import init_config, APP_NAME, APP_VERSION, PATHS
from models.match import Side
from engine.errors import InvalidInputError

HELP = """\
Commands:
  a [n] | b [n]          add n points (default 1)
  fix a|b [n]            take n points back
  first a|b              side that shoots first (hammer to the other)
  bonus a|b n            twenties for the round just completed
  next                   start the next game
  reset                  reset the match
  name a|b NAME [COLOR]  rename a team
  history                list stored matches
  export ID PATH         export a stored match (.pdf or .csv)
  quit"""

SIDES = {"a": Side.TEAM_A, "b": Side.TEAM_B}


def render(state) -> str:
    """One-line scoreboard."""
    def team(side):
        t = state.team(side)
        marks = ("*" if t.has_hammer else "") + ("!" if t.has_won else "")
        return f"{t.name}{marks} {t.points} ({t.bonus_count} twenties, {t.games_won} games)"

    scores = " - ".join(team(side) for side in (Side.TEAM_A, Side.TEAM_B))
    line = f"[{state.state.value}] round {state.rounds_played} | {scores}"
    if state.bonus_pending_for is not None:
        line += f" | bonus for {state.bonus_pending_for.value}?"
    if state.hammer_selection_required:
        line += " | who shoots first?"
    return line


def run_command(scorekinole, words: list[str]) -> bool:
    """Execute one command. Returns False when the user quits."""
    engine = scorekinole.scoring_engine
    command, args = words[0].lower(), words[1:]

    if command in SIDES:
        engine.add_points(SIDES[command], int(args[0]) if args else 1)
    elif command == "fix":
        engine.correct_score(SIDES[args[0]], int(args[1]) if len(args) > 1 else 1)
    elif command == "first":
        engine.select_starting_team(SIDES[args[0]])
    elif command == "bonus":
        engine.submit_bonus(SIDES[args[0]], int(args[1]))
    elif command == "next":
        engine.reset_game()
    elif command == "reset":
        engine.reset_match()
    elif command == "name":
        engine.rename_team(SIDES[args[0]], args[1], args[2] if len(args) > 2 else None)
    elif command == "history":
        for record in scorekinole.history():
            print(f"  {record.match_id}  {record.outcome.value:<9} "
                  f"{record.team_a.name} {record.team_a_score} - {record.team_b_score} {record.team_b.name}")
    elif command == "export":
        fmt = "csv" if args[1].lower().endswith(".csv") else "pdf"
        ok = scorekinole.export_scoresheet(args[0], args[1], fmt)
        print("Exported" if ok else "Export failed")
    elif command in ("quit", "exit"):
        return False
    else:
        print(HELP)
        return True

    print(render(engine.get_state()))
    return True


def main() -> int:
    """Main entry point for Scorekinole."""
    # Initialize configuration and directories
    init_config()

    from services.log_config import setup_logging
    setup_logging(PATHS.log_dir, level=logging.INFO)

    # Create application
    app = QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    from app import ScorekinoleApp
    scorekinole = ScorekinoleApp()
    scorekinole.scoring_engine.action_rejected.connect(
        lambda reason: print(f"Not now: {reason}")
    )

    print(f"{APP_NAME} {APP_VERSION}")
    print(render(scorekinole.scoring_engine.get_state()))

    for line in sys.stdin:
        try:
            words = shlex.split(line)
            if not words:
                continue
            if not run_command(scorekinole, words):
                break
        except (InvalidInputError, KeyError, IndexError, ValueError) as e:
            print(f"Invalid command: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
