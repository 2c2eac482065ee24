"""
Playlist Order Optimizer

Reorders a set of 2-50 tracks to maximise the weighted arrangement score
(harmonic flow + energy arc).  The search strategy is chosen by track count:

  0-1 tracks    nothing to do
  2-10 tracks   brute force over every permutation (guaranteed optimal)
  11-25 tracks  genetic algorithm (typically 85-95% of optimal)
  26-50 tracks  greedy with lookahead (typically 70-85% of optimal)

The optimizer is a pure function of (tracks, options).  Persisting the new
order is up to the caller; apply_optimization() pushes positions into any
object implementing OrderStore.
"""

import heapq
import random
import time
from itertools import permutations
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

from loguru import logger

from .camelot import CamelotWheel
from .energy_planner import EnergyPlanner
from .errors import TrackCountError
from .models import OptimizationOptions, OptimizationResult, Track
from .scoring import ArrangementScorer, ScoringContext

MIN_TRACKS_FOR_OPTIMIZATION = 2
MAX_TRACKS_FOR_OPTIMIZATION = 50

BRUTE_FORCE_MAX = 10
GENETIC_MAX = 25

ELITE_FRACTION = 0.2
TOURNAMENT_SIZE = 3
FUTURE_WEIGHT = 0.5
FUTURE_TOP_N = 3

METHOD_NONE = "none"
METHOD_BRUTE_FORCE = "brute_force"
METHOD_GENETIC = "genetic_algorithm"
METHOD_GREEDY = "greedy_lookahead"


class OrderStore(Protocol):
    """Caller-side persistence for a set's track positions."""

    def update_position(self, track_id: str, position: int) -> None: ...

    def touch(self) -> None: ...


class SearchOutcome(NamedTuple):
    order: List[Track]
    score: float
    method: str
    generations: Optional[int] = None


class PlaylistOptimizer:
    """
    Finds a high-scoring order for a list of tracks.

    A fresh ScoringContext (memo of keys, energies, curves) is built for every
    optimize call, so one optimizer can be reused across sets.
    """

    def __init__(
        self,
        options: Optional[OptimizationOptions] = None,
        camelot: Optional[CamelotWheel] = None,
        energy_planner: Optional[EnergyPlanner] = None,
        rng: Optional[random.Random] = None,
    ):
        self.options = options or OptimizationOptions()
        self.camelot = camelot or CamelotWheel()
        self.planner = energy_planner or EnergyPlanner(self.camelot)
        self._rng = rng

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def optimize(self, tracks: Sequence[Track]) -> OptimizationResult:
        """
        Validate, search, and report.

        Raises TrackCountError when the track count is outside 2-50, before
        any scoring happens.
        """
        tracks = list(tracks)
        self.validate(tracks)

        scorer = self._new_scorer()
        method = self.select_method(len(tracks))
        logger.info(f"Optimizing {len(tracks)} tracks using {method}")

        started = time.perf_counter()
        outcome = self._run(tracks, scorer)
        computation_time = round(time.perf_counter() - started, 2)

        old_score = scorer.score(tracks)
        new_score = outcome.score

        logger.info(
            f"Optimization finished: {outcome.method} "
            f"score {old_score:.1f} -> {new_score:.1f} in {computation_time}s"
        )

        return OptimizationResult(
            order=[t.id for t in outcome.order],
            score=outcome.score,
            method=outcome.method,
            computation_time=computation_time,
            old_order=[t.id for t in tracks],
            old_score=old_score,
            new_score=new_score,
            score_improvement_percent=self.score_improvement(old_score, new_score),
            generations=outcome.generations,
        )

    def optimize_order(self, tracks: Sequence[Track]) -> OptimizationResult:
        """Run the strategy for this track count without size validation."""
        outcome = self._run(list(tracks), self._new_scorer())
        return OptimizationResult(
            order=[t.id for t in outcome.order],
            score=outcome.score,
            method=outcome.method,
            generations=outcome.generations,
        )

    def apply_optimization(self, result: OptimizationResult, store: OrderStore) -> bool:
        """Write positions 1..N from ``result`` into ``store`` and mark it modified."""
        for track_id, position in result.positions().items():
            store.update_position(track_id, position)
        store.touch()
        logger.debug(f"Applied optimized order ({len(result.order)} tracks)")
        return True

    # ------------------------------------------------------------------
    # Validation / dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def validate(tracks: Sequence[Track]) -> None:
        count = len(tracks)
        if count < MIN_TRACKS_FOR_OPTIMIZATION:
            raise TrackCountError(count, "min", MIN_TRACKS_FOR_OPTIMIZATION)
        if count > MAX_TRACKS_FOR_OPTIMIZATION:
            raise TrackCountError(count, "max", MAX_TRACKS_FOR_OPTIMIZATION)

    @staticmethod
    def select_method(track_count: int) -> str:
        if track_count <= 1:
            return METHOD_NONE
        if track_count <= BRUTE_FORCE_MAX:
            return METHOD_BRUTE_FORCE
        if track_count <= GENETIC_MAX:
            return METHOD_GENETIC
        return METHOD_GREEDY

    @staticmethod
    def score_improvement(old_score: float, new_score: float) -> float:
        if old_score == 0:
            return 0.0
        return round((new_score - old_score) / old_score * 100, 1)

    def _new_scorer(self) -> ArrangementScorer:
        return ArrangementScorer(self.options, ScoringContext(self.camelot, self.planner))

    def _run(self, tracks: List[Track], scorer: ArrangementScorer) -> SearchOutcome:
        method = self.select_method(len(tracks))
        if method == METHOD_NONE:
            return SearchOutcome(list(tracks), 100.0, METHOD_NONE)

        start, end = self._resolve_locks(tracks)
        if method == METHOD_BRUTE_FORCE:
            return self.brute_force_optimal(tracks, scorer, start, end)
        if method == METHOD_GENETIC:
            return self.genetic_algorithm(tracks, scorer, start, end)
        return self.greedy_with_lookahead(tracks, scorer, start, end)

    # ------------------------------------------------------------------
    # Constraint helpers
    # ------------------------------------------------------------------

    def _resolve_locks(self, tracks: Sequence[Track]) -> Tuple[Optional[Track], Optional[Track]]:
        """Map start_with / end_with ids onto tracks of this set."""
        by_id = {t.id: t for t in tracks}
        start_id, end_id = self.options.start_with, self.options.end_with

        start = by_id.get(start_id) if start_id else None
        if start_id and start is None:
            logger.warning(f"start_with track {start_id} is not in the set, ignoring")

        end = by_id.get(end_id) if end_id else None
        if end_id and end is None:
            logger.warning(f"end_with track {end_id} is not in the set, ignoring")

        if start is not None and end is not None and start.id == end.id:
            logger.warning(f"Track {end_id} locked to both start and end, keeping start only")
            end = None

        return start, end

    @staticmethod
    def _free_tracks(tracks: Sequence[Track], start: Optional[Track], end: Optional[Track]) -> List[Track]:
        locked = {t.id for t in (start, end) if t is not None}
        return [t for t in tracks if t.id not in locked]

    @staticmethod
    def _build_full_order(genes: Sequence[Track], start: Optional[Track], end: Optional[Track]) -> List[Track]:
        order = [start] if start is not None else []
        order.extend(genes)
        if end is not None:
            order.append(end)
        return order

    # ------------------------------------------------------------------
    # Algorithm 1: brute force (2-10 tracks)
    # ------------------------------------------------------------------

    def brute_force_optimal(
        self,
        tracks: Sequence[Track],
        scorer: ArrangementScorer,
        start: Optional[Track] = None,
        end: Optional[Track] = None,
    ) -> SearchOutcome:
        """Score every permutation of the free tracks; the first maximum wins."""
        free = self._free_tracks(tracks, start, end)
        head = [start] if start is not None else []
        tail = [end] if end is not None else []

        best_order: List[Track] = []
        best_score = float("-inf")
        evaluated = 0

        for perm in permutations(free):
            order = head + list(perm) + tail
            score = scorer.score(order)
            evaluated += 1
            if score > best_score:
                best_score = score
                best_order = order

        logger.debug(f"Brute force evaluated {evaluated} permutations, best {best_score:.2f}")
        return SearchOutcome(best_order, best_score, METHOD_BRUTE_FORCE)

    # ------------------------------------------------------------------
    # Algorithm 2: genetic algorithm (11-25 tracks)
    # ------------------------------------------------------------------

    def genetic_algorithm(
        self,
        tracks: Sequence[Track],
        scorer: ArrangementScorer,
        start: Optional[Track] = None,
        end: Optional[Track] = None,
        rng: Optional[random.Random] = None,
    ) -> SearchOutcome:
        """
        Generational search over orderings of the free tracks.

        Each generation keeps the top 20% as elite and refills the population
        with children: tournament-selected parents, ordered crossover, then a
        swap mutation with probability ``mutation_rate``.  The best ordering
        ever seen is returned.  Individuals hold only the free tracks; locked
        start / end tracks are added when scoring.
        """
        rng = rng or self._rng or random.Random(self.options.seed)
        generations = self.options.generations
        population_size = self.options.population_size
        mutation_rate = self.options.mutation_rate
        elite_size = max(1, int(population_size * ELITE_FRACTION))

        free = self._free_tracks(tracks, start, end)
        population = [rng.sample(free, len(free)) for _ in range(population_size)]

        best_genes: List[Track] = list(free)
        best_score = float("-inf")

        for generation in range(generations):
            scored = [
                (scorer.score(self._build_full_order(genes, start, end)), genes)
                for genes in population
            ]

            generation_best = max(scored, key=lambda s: s[0])
            if generation_best[0] > best_score:
                best_score, best_genes = generation_best

            elite = heapq.nlargest(elite_size, scored, key=lambda s: s[0])

            new_population = [genes for _, genes in elite]
            while len(new_population) < population_size:
                parent1 = self._tournament_select(elite, rng)
                parent2 = self._tournament_select(elite, rng)
                child = self._ordered_crossover(parent1, parent2, rng)
                new_population.append(self._mutate(child, mutation_rate, rng))

            population = new_population

            if (generation + 1) % 100 == 0:
                logger.debug(f"Generation {generation + 1}/{generations}: best {best_score:.2f}")

        return SearchOutcome(
            self._build_full_order(best_genes, start, end),
            best_score,
            METHOD_GENETIC,
            generations,
        )

    @staticmethod
    def _tournament_select(
        elite: Sequence[Tuple[float, List[Track]]],
        rng: random.Random,
        tournament_size: int = TOURNAMENT_SIZE,
    ) -> List[Track]:
        contenders = rng.sample(list(elite), min(tournament_size, len(elite)))
        return max(contenders, key=lambda s: s[0])[1]

    @staticmethod
    def _ordered_crossover(
        parent1: Sequence[Track],
        parent2: Sequence[Track],
        rng: random.Random,
    ) -> List[Track]:
        """
        Ordered crossover (OX): copy a random slice of parent1, then fill the
        gaps with parent2's remaining tracks in parent2's order.
        """
        size = len(parent1)
        if size < 2:
            return list(parent1)

        start_idx = rng.randrange(size)
        end_idx = rng.randrange(start_idx, size)

        child: List[Optional[Track]] = [None] * size
        child[start_idx:end_idx + 1] = parent1[start_idx:end_idx + 1]
        used = {t.id for t in parent1[start_idx:end_idx + 1]}

        fill = (t for t in parent2 if t.id not in used)
        for i in range(size):
            if child[i] is None:
                child[i] = next(fill)
        return child

    @staticmethod
    def _mutate(genes: List[Track], rate: float, rng: random.Random) -> List[Track]:
        """Swap two random positions with probability ``rate``."""
        if rng.random() >= rate or len(genes) < 2:
            return genes
        mutated = list(genes)
        i = rng.randrange(len(mutated))
        j = rng.randrange(len(mutated))
        mutated[i], mutated[j] = mutated[j], mutated[i]
        return mutated

    # ------------------------------------------------------------------
    # Algorithm 3: greedy with lookahead (26-50 tracks)
    # ------------------------------------------------------------------

    def greedy_with_lookahead(
        self,
        tracks: Sequence[Track],
        scorer: ArrangementScorer,
        start: Optional[Track] = None,
        end: Optional[Track] = None,
    ) -> SearchOutcome:
        """
        Build the order left to right, each step taking the candidate with the
        best ``immediate + 0.5 * future`` transition score.
        """
        lookahead = self.options.lookahead
        remaining = self._free_tracks(tracks, start, end)

        if start is not None:
            ordered = [start]
        elif remaining:
            ordered = [remaining.pop(0)]
        else:
            ordered = []

        while remaining:
            current = ordered[-1]
            best_next = None
            best_total = float("-inf")

            for candidate in remaining:
                immediate = scorer.transition_score(current, candidate)
                future = self._future_potential(candidate, remaining, lookahead, scorer)
                total = immediate + future * FUTURE_WEIGHT
                if total > best_total:
                    best_total = total
                    best_next = candidate

            ordered.append(best_next)
            remaining.remove(best_next)

        if end is not None:
            ordered.append(end)

        score = scorer.score(ordered)
        logger.debug(f"Greedy placed {len(ordered)} tracks (lookahead {lookahead}), score {score:.2f}")
        return SearchOutcome(ordered, score, METHOD_GREEDY)

    @staticmethod
    def _future_potential(
        track: Track,
        remaining: Sequence[Track],
        lookahead: int,
        scorer: ArrangementScorer,
    ) -> float:
        """Mean of the best few transitions out of ``track`` into the rest of the pool."""
        if lookahead <= 1 or len(remaining) <= 1:
            return 0.0

        scores = [scorer.transition_score(track, t) for t in remaining if t.id != track.id]
        top = heapq.nlargest(FUTURE_TOP_N, scores)
        if not top:
            return 0.0
        return sum(top) / len(top)
