from __future__ import annotations  # Coding practice package exports

from .models import PracticeRunResult, PracticeSolution, SolvedCodingProblem
from .service import generate_problems, run_solution

__all__ = ["PracticeRunResult", "PracticeSolution", "SolvedCodingProblem", "generate_problems", "run_solution"]
