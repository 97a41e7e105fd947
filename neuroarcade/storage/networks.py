"""
Persistence of the best network per game.
"""
import logging
from typing import Optional, TYPE_CHECKING

from ..exceptions import StorageError
from ..networks import NeuralNetwork
from .kvstore import KeyValueStore

if TYPE_CHECKING:
    from ..evolution.population import Population

logger = logging.getLogger(__name__)


def best_network_key(game_type: str) -> str:
    return f'{game_type}BestNetwork'


class NetworkStore:
    """
    Save and restore each game's all-time best network.

    Example:
        store = NetworkStore(JsonFileStore('store.json'))
        store.save_best(population)
        network = store.load_best('flappy')
        if network is not None:
            population = Population.from_network(config, game, network)
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save(self, game_type: str, network: NeuralNetwork) -> None:
        self.store.set(best_network_key(game_type), network.serialize())
        logger.info("Saved %s network %s", game_type, network.sizes)

    def save_best(self, population: 'Population') -> NeuralNetwork:
        """
        Store the population's all-time best network.

        Raises:
            StorageError: If no generation has been evolved yet.
        """
        network = population.all_time_best
        if network is None:
            raise StorageError(
                f"No {population.game.game_type} network to save; "
                f"evolve at least one generation first"
            )
        self.save(population.game.game_type, network)
        return network

    def load_best(self, game_type: str) -> Optional[NeuralNetwork]:
        """
        Load the stored network for a game, or None if there is none.

        Raises:
            NetworkFormatError: If the stored record is invalid.
        """
        record = self.store.get(best_network_key(game_type))
        if record is None:
            return None
        network = NeuralNetwork.deserialize(record)
        logger.info("Loaded %s network %s", game_type, network.sizes)
        return network

    def delete(self, game_type: str) -> None:
        self.store.delete(best_network_key(game_type))
