"""
Greedy line search.

Each iteration reads the raster state as it stood at the start of the
iteration, evaluates every legal candidate line (in parallel when more than
one worker is configured), reduces to the single best move and commits it.
The commit is the only write; it happens after all reads of the iteration
have finished and before the next iteration's reads start.
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass

import numpy as np

from pinweave.geometry.pairs import pair_index
from pinweave.models import ColorPath, Move, OptimizationResult, ScoringPolicy
from pinweave.raster.canvas import blend_stroke, lighten, remaining_darkness, white_canvas
from pinweave.raster.line_table import LineTable
from pinweave.scoring import (
    accuracy_better,
    accuracy_counts,
    accuracy_ratio,
    color_error_score,
    darkness_score,
)
from pinweave.tracer import get_tracer, trace


@dataclass
class SearchPolicy:
    """
    How candidates are scored, whether lines may repeat, and when to stop.

    darkness:     sum of remaining darkness, no reuse, stop when best <= 0
    color_error:  squared color error reduction, reuse allowed, stop when best <= 0
    accuracy:     ink/blank counts, no reuse, stop when ink ratio < threshold
    """
    scoring: ScoringPolicy = ScoringPolicy.DARKNESS
    allow_reuse: bool = False
    lighten_amount: int = 255
    opacity: float = 0.16
    accuracy_threshold: float = 0.45

    @classmethod
    def for_scoring(cls, scoring, allow_reuse=None, **kwargs):
        """Build a policy with the reuse default of the given scoring."""
        scoring = ScoringPolicy(scoring)
        if allow_reuse is None:
            allow_reuse = scoring == ScoringPolicy.COLOR_ERROR
        return cls(scoring=scoring, allow_reuse=allow_reuse, **kwargs)

    @property
    def uses_canvas(self):
        return self.scoring == ScoringPolicy.COLOR_ERROR


@dataclass(frozen=True)
class Candidate:
    """A scored move. key orders candidates; score is what gets reported."""
    key: object
    score: float
    path_index: int
    from_pin: int
    to_pin: int


class GreedyOptimizer:
    """
    Greedy string-art path builder.

    One path per palette color, each starting at pin 0. A single path fans
    its candidate pins out over the workers; several paths fan out one task
    per path. In both cases ties go to the lowest path index, then the lowest
    pin index, so the outcome does not depend on the worker count.
    """

    def __init__(self, source, pins, palette, policy, max_lines,
                 workers=1, line_table=None, progress_every=100):
        self.policy = policy
        self.pins = list(pins)
        self.palette = [tuple(int(c) for c in color) for color in palette]
        self.max_lines = max_lines
        self.workers = max(1, int(workers))
        self.progress_every = progress_every

        if not self.palette:
            raise ValueError("Palette must contain at least one color")
        if max_lines < 0:
            raise ValueError(f"Line budget must not be negative, got {max_lines}")

        if policy.uses_canvas:
            if source.ndim == 2:
                source = np.repeat(source[:, :, None], 3, axis=2)
        else:
            if source.ndim != 2:
                raise ValueError(f"{policy.scoring.value} scoring needs a single-channel source")
            if len(self.palette) != 1:
                raise ValueError(f"{policy.scoring.value} scoring supports a single path only")

        self.source = source
        self.height, self.width = source.shape[:2]
        self.line_table = line_table or LineTable(self.pins, self.width, self.height)

        self.canvas = None
        self.working = None

    def _reset(self):
        if self.policy.uses_canvas:
            self.canvas = white_canvas(self.width, self.height)
            self.working = None
        else:
            self.working = remaining_darkness(self.source)
            self.canvas = None

    def _score(self, path_index, rows, cols):
        """Return (ordering key, reported score) for one candidate line."""
        scoring = self.policy.scoring
        if scoring == ScoringPolicy.DARKNESS:
            score = darkness_score(self.working, rows, cols)
            return score, score
        if scoring == ScoringPolicy.COLOR_ERROR:
            score = color_error_score(
                self.source, self.canvas, rows, cols,
                self.palette[path_index], self.policy.opacity,
            )
            return score, score
        accuracy, error = accuracy_counts(self.working, rows, cols)
        return (accuracy, error), accuracy_ratio(accuracy, error)

    def _best_for_path(self, path_index, current, visited, targets):
        """Best candidate among targets for one path, or None if none is legal."""
        best = None
        for target in targets:
            target = int(target)
            if target == current:
                continue
            if not self.policy.allow_reuse and pair_index(current, target) in visited:
                continue
            rows, cols = self.line_table.indices(current, target)
            key, score = self._score(path_index, rows, cols)
            candidate = Candidate(key, score, path_index, current, target)
            if self._better(candidate, best):
                best = candidate
        return best

    def _better(self, candidate, best):
        """Strict comparison, so the earlier candidate keeps a tie."""
        if best is None:
            return True
        if self.policy.scoring == ScoringPolicy.ACCURACY:
            return accuracy_better(candidate.key, best.key)
        return candidate.key > best.key

    def _acceptable(self, best):
        if best is None:
            return False
        if self.policy.scoring == ScoringPolicy.ACCURACY:
            return best.score >= self.policy.accuracy_threshold
        return best.key > 0

    def _select(self, paths, visited, pool):
        """Fan out candidate evaluation and reduce to the best move."""
        n = len(self.pins)

        if len(paths) == 1:
            current = paths[0][-1]
            chunks = [c for c in np.array_split(np.arange(n), self.workers) if len(c)]
            tasks = [(0, current, chunk) for chunk in chunks]
        else:
            tasks = [(idx, path[-1], range(n)) for idx, path in enumerate(paths)]

        def evaluate(task):
            path_index, current, targets = task
            return self._best_for_path(path_index, current, visited[path_index], targets)

        if pool is None:
            results = [evaluate(task) for task in tasks]
        else:
            results = list(pool.map(evaluate, tasks))

        # results are in task order, so a strict comparison keeps the lowest index on ties
        best = None
        for candidate in results:
            if candidate is not None and self._better(candidate, best):
                best = candidate
        return best

    def _commit(self, best, paths, visited):
        rows, cols = self.line_table.indices(best.from_pin, best.to_pin)
        if self.policy.uses_canvas:
            blend_stroke(self.canvas, rows, cols, self.palette[best.path_index], self.policy.opacity)
        else:
            lighten(self.working, rows, cols, self.policy.lighten_amount)
        visited[best.path_index].add(pair_index(best.from_pin, best.to_pin))
        paths[best.path_index].append(best.to_pin)

    @trace(label="greedy_search")
    def run(self):
        """Run the search until the budget is spent or nothing improves."""
        tracer = get_tracer()
        self._reset()

        paths = [[0] for _ in self.palette]
        visited = [set() for _ in self.palette]
        moves = []
        halted = False
        halt_iteration = None

        if len(self.pins) < 2:
            tracer.event("Fewer than two pins, no candidate lines", level="WARN")
            halted = True
            halt_iteration = 0
        elif self.max_lines > 0:
            if self.workers > 1:
                self.line_table.precompute()

            executor = ThreadPoolExecutor(max_workers=self.workers) if self.workers > 1 else nullcontext()
            with executor as pool:
                for iteration in range(self.max_lines):
                    best = self._select(paths, visited, pool)
                    if not self._acceptable(best):
                        halted = True
                        halt_iteration = iteration
                        tracer.event(f"No more improvements found, stopping at line {iteration}")
                        break

                    self._commit(best, paths, visited)
                    move = Move(
                        path_index=best.path_index,
                        from_pin=best.from_pin,
                        to_pin=best.to_pin,
                        score=float(best.score),
                    )
                    moves.append(move)
                    tracer.event("Committed line", level="DEBUG", move=move)
                    if self.progress_every and len(moves) % self.progress_every == 0:
                        tracer.progress(len(moves), self.max_lines, score=move.score)

        tracer.event(f"Search finished: {len(moves)} lines", policy=self.policy.scoring.value)

        return OptimizationResult(
            policy=self.policy.scoring,
            paths=[ColorPath(pins=path, color=color) for path, color in zip(paths, self.palette)],
            moves=moves,
            halted=halted,
            halt_iteration=halt_iteration,
        )
