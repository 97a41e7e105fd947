"""
High-score table shared by every game.
"""
import logging
import time
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .kvstore import KeyValueStore

if TYPE_CHECKING:
    from ..evolution.population import GenerationStats, Population

logger = logging.getLogger(__name__)

SCORE_HISTORY_KEY = 'scoreHistory'
MAX_ENTRIES = 100


class ScoreHistory:
    """
    The best scores across games, highest first.

    Entries look like {'game', 'score', 'generation', 'timestamp'} with
    the timestamp in epoch milliseconds. Only the top MAX_ENTRIES are
    kept, across all games.
    """

    def __init__(self, store: KeyValueStore, max_entries: int = MAX_ENTRIES):
        self.store = store
        self.max_entries = max_entries
        self.scores = self._load()

    def _load(self) -> List[Dict[str, Any]]:
        scores = self.store.get(SCORE_HISTORY_KEY, [])
        if not isinstance(scores, list):
            logger.warning(
                "Discarding score history of type %s", type(scores).__name__,
            )
            return []
        return scores

    def _save(self, scores: List[Dict[str, Any]]) -> None:
        self.store.set(SCORE_HISTORY_KEY, scores)
        self.scores = scores

    def add_score(self, game: str, score: float, generation: Optional[int] = None) -> None:
        scores = self.scores + [{
            'game': game,
            'score': score,
            'generation': generation,
            'timestamp': int(time.time() * 1000),
        }]
        scores.sort(key=lambda entry: entry['score'], reverse=True)
        self._save(scores[:self.max_entries])

    def best_score(self, game: str) -> float:
        """Highest recorded score for a game (0 if none)."""
        for entry in self.scores:
            if entry['game'] == game:
                return entry['score']
        return 0

    def top_scores(self, game: str, limit: int = 10) -> List[Dict[str, Any]]:
        return [entry for entry in self.scores if entry['game'] == game][:limit]

    def clear(self, game: Optional[str] = None) -> None:
        """Forget every entry, or only one game's."""
        if game is None:
            self._save([])
        else:
            self._save([entry for entry in self.scores if entry['game'] != game])

    def record_generation(self, population: 'Population', stats: 'GenerationStats') -> None:
        """Listener recording the best score (or fitness) of a generation."""
        score = stats.best_score if stats.best_score is not None else stats.best_fitness
        self.add_score(population.game.game_type, score, stats.generation)

    def attach(self, population: 'Population') -> None:
        """Record every future generation of a population."""
        population.add_listener(self.record_generation)
