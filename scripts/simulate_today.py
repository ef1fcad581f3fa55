"""What would the coach tell you TODAY?

Runs the whole coaching core offline on a synthetic two-week export:
snapshot cards, predictions, trends, goal suggestions and the grounding
context for a few typical questions.

Usage:
    python scripts/simulate_today.py
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.coach.goals import suggest_goals
from app.core.logging import setup_logging
from app.services.data_loader import parse_records
from app.services.session_context import CoachContext

COLUMNS = (
    "date",
    "recovery score %",
    "day strain",
    "sleep performance %",
    "heart rate variability (ms)",
    "resting heart rate (bpm)",
    "asleep duration (min)",
    "sleep need (min)",
    "sleep debt (min)",
)

# Newest first.
RAW_DATA = [
    ("2026-02-14", 48, 16.2, 71, 41, 58, 392, 470, 78),
    ("2026-02-13", 55, 15.1, 76, 44, 57, 405, 465, 60),
    ("2026-02-12", 62, 12.4, 82, 47, 56, 431, 460, 29),
    ("2026-02-11", 35, 17.8, 64, 38, 60, 366, 475, 109),
    ("2026-02-10", 41, 16.9, 69, 40, 59, 381, 470, 89),
    ("2026-02-09", 67, 11.0, 88, 52, 55, 448, 455, 7),
    ("2026-02-08", 72, 9.6, 91, 55, 54, 462, 450, 0),
    ("2026-02-07", 70, 10.3, 89, 54, 54, 455, 452, 0),
    ("2026-02-06", 58, 13.7, 80, 48, 56, 420, 458, 38),
    ("2026-02-05", 64, 12.1, 84, 50, 55, 437, 455, 18),
    ("2026-02-04", 69, 10.8, 87, 53, 54, 450, 452, 2),
    ("2026-02-03", 74, 9.2, 92, 57, 53, 468, 450, 0),
    ("2026-02-02", 71, 10.0, 90, 55, 54, 459, 451, 0),
    ("2026-02-01", 66, 11.5, 86, 51, 55, 444, 454, 10),
]

QUESTIONS = [
    "hey coach",
    "How did I sleep last night?",
    "What is my sleep debt?",
    "Should I train hard today given my recovery?",
]


def main():
    setup_logging("WARNING")
    table = parse_records([dict(zip(COLUMNS, row)) for row in RAW_DATA])
    context = CoachContext()
    stats = context.load(table)

    print()
    print("=" * 65)
    print(f"  Pulse Coach — {len(table)} days loaded, {stats.total_facts} facts")
    print("=" * 65)
    print()

    print("  Current metrics:")
    for card in context.snapshots:
        print(f"    {card.title:<20} {card.value:>10}  ({card.subtitle})")
    print()

    print("  Predictions:")
    predictions = context.predictions()
    if not predictions:
        print("    (none above the confidence threshold)")
    for p in predictions:
        print(f"    {p.kind.value:<14} {p.predicted_value:>6.0f}  "
              f"confidence {p.confidence:.2f}  {p.timeframe}")
        print(f"      {p.reasoning}")
    print()

    print("  Trends:")
    for t in context.trends():
        print(f"    {t.metric:<30} {t.trend.value:<10} {t.change_rate:+.1f}%/week")
    print()

    print("  Suggested goals:")
    for s in suggest_goals(table):
        print(f"    {s.title:<28} target {s.target_value:g} {s.unit}")
    print()

    for question in QUESTIONS:
        turn = context.ask(question)
        print("  " + "-" * 63)
        print(f"  Q: {question}")
        if turn.reply:
            print(f"  A: {turn.reply}")
        else:
            print(turn.context.rendered_summary)
    print()


if __name__ == "__main__":
    main()
