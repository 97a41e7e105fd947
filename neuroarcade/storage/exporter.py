"""
Export and import networks as standalone JSON files.

An export wraps the serialized network in an envelope:

    {
        "game": "flappy",
        "network": { ...serialized network... },
        "metadata": {"generation": 42, "timestamp": "...", "version": "1.0"}
    }
"""
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ..exceptions import NetworkFormatError
from ..networks import NeuralNetwork

logger = logging.getLogger(__name__)

EXPORT_VERSION = '1.0'


class NetworkExporter:
    """Build, parse, write and read export envelopes."""

    @staticmethod
    def build_envelope(
        network: NeuralNetwork,
        game: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Wrap a network; timestamp and version override user metadata."""
        return {
            'game': game,
            'network': network.serialize(),
            'metadata': {
                **(metadata or {}),
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'version': EXPORT_VERSION,
            },
        }

    @staticmethod
    def parse_envelope(data: Any) -> Tuple[NeuralNetwork, Dict[str, Any]]:
        """
        Unwrap an envelope.

        Returns:
            (network, metadata), with the envelope's game copied into
            metadata['game'] unless metadata already names one.

        Raises:
            NetworkFormatError: If the envelope or its network is malformed.
        """
        if not isinstance(data, Mapping):
            raise NetworkFormatError(
                f"Export must be a JSON object, got {type(data).__name__}"
            )
        if 'network' not in data:
            raise NetworkFormatError("Export is missing the 'network' field")
        metadata = data.get('metadata') or {}
        if not isinstance(metadata, Mapping):
            raise NetworkFormatError("Export 'metadata' must be an object")
        network = NeuralNetwork.deserialize(data['network'])
        metadata = dict(metadata)
        if 'game' in data:
            metadata.setdefault('game', data['game'])
        return network, metadata

    @classmethod
    def export_network(
        cls,
        network: NeuralNetwork,
        game: str,
        directory: str = '.',
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Path:
        """
        Write `<game>_network_<epoch ms>.json` into directory.

        Returns:
            Path of the written file.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        filepath = directory / f'{game}_network_{int(time.time() * 1000)}.json'

        with open(filepath, 'w') as f:
            json.dump(cls.build_envelope(network, game, metadata), f, indent=2)

        logger.info("Exported %s network to %s", game, filepath)
        return filepath

    @classmethod
    def import_network(cls, path: str) -> Tuple[NeuralNetwork, Dict[str, Any]]:
        """
        Read an export file.

        Raises:
            NetworkFormatError: If the file is not valid JSON or not an export.
        """
        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise NetworkFormatError(f"{path} is not valid JSON: {e}") from e

        network, metadata = cls.parse_envelope(data)
        logger.info("Imported %s network from %s", data.get('game', '?'), path)
        return network, metadata
