"""Lightweight CLI helpers for inspecting interview persistence tables."""
from __future__ import annotations

import argparse
from typing import List, Optional

from storage.history import tail_completed_sessions
from storage.in_progress import list_in_progress


def tail_pending(limit: int = 20) -> List[str]:
    lines = [
        f"[{row.updated_at}] {row.candidate_id} {row.role} ({row.persona}/{row.difficulty}) questions={row.question_count}"
        for row in list_in_progress(limit)
    ]
    for line in lines:
        print(line)
    return lines


def tail_completed(limit: int = 20) -> List[str]:
    lines = []
    for candidate_id, record in tail_completed_sessions(limit):
        lines.append(
            f"[{record.completed_at.isoformat()}] #{record.record_id} {candidate_id} {record.config.role} "
            f"score={record.feedback.overall_score:.1f} questions={len(record.feedback.question_feedback)}"
        )
    for line in lines:
        print(line)
    return lines


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-pending", type=int, help="Show the latest in-progress interviews")
    parser.add_argument("--tail-completed", type=int, help="Show the latest completed interviews")
    args = parser.parse_args(argv)

    if args.tail_pending:
        tail_pending(args.tail_pending)
    if args.tail_completed:
        tail_completed(args.tail_completed)


if __name__ == "__main__":
    main()
