"""
Command-line tools for saved networks, scores and checkpoints.

Usage:
    neuroarcade inspect <export.json>
    neuroarcade export <game> [--store PATH] [--out DIR]
    neuroarcade import <export.json> [--game GAME] [--store PATH]
    neuroarcade scores <game> [--limit 10] [--store PATH]
    neuroarcade plot <checkpoint.pt> [--out fitness.png]

Every command accepts --verbosity 0-3 (0 = warnings only, 3 = debug).
"""
import argparse
import logging
import pickle
import sys
from typing import Dict, List, Optional, TextIO

import torch

from .exceptions import NeuroArcadeError
from .games import GameRegistry
from .storage import JsonFileStore, NetworkExporter, NetworkStore, ScoreHistory
from .visualization import (
    format_evolution_summary,
    format_network_summary,
    plot_fitness_over_generations,
)

DEFAULT_STORE = '~/.neuroarcade/store.json'

VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: logging.DEBUG,
}


class CommandError(Exception):
    """A command failed in a way worth reporting without a traceback."""


class BaseCommand:
    """One subcommand: declare arguments, then handle parsed options."""

    help = ''

    def __init__(self, stdout: Optional[TextIO] = None):
        self.stdout = stdout or sys.stdout

    def write(self, message: str = '') -> None:
        self.stdout.write(message + '\n')

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        pass

    def handle(self, **options) -> None:
        raise NotImplementedError

    def open_store(self, options) -> JsonFileStore:
        return JsonFileStore(options['store'])


def _add_store_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--store',
        type=str,
        default=DEFAULT_STORE,
        help=f'JSON store file (default: {DEFAULT_STORE})',
    )


class InspectCommand(BaseCommand):
    help = 'Describe a network export file'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Export file to read')

    def handle(self, **options):
        network, metadata = NetworkExporter.import_network(options['path'])
        self.write(format_network_summary(network))
        for key, value in sorted(metadata.items()):
            self.write(f"  {key}: {value}")


class ExportCommand(BaseCommand):
    help = "Write a game's stored best network to an export file"

    def add_arguments(self, parser):
        parser.add_argument('game', type=str, help='Game type (e.g. flappy)')
        parser.add_argument(
            '--out',
            type=str,
            default='.',
            help='Directory for the export file (default: current directory)',
        )
        _add_store_argument(parser)

    def handle(self, **options):
        game = options['game']
        network = NetworkStore(self.open_store(options)).load_best(game)
        if network is None:
            raise CommandError(f"No saved network for '{game}'")
        path = NetworkExporter.export_network(network, game, directory=options['out'])
        self.write(f"Exported {game} network to {path}")


class ImportCommand(BaseCommand):
    help = "Store an export file as a game's best network"

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Export file to read')
        parser.add_argument(
            '--game',
            type=str,
            default=None,
            help="Game type to store under (default: the export's own game)",
        )
        _add_store_argument(parser)

    def handle(self, **options):
        network, metadata = NetworkExporter.import_network(options['path'])
        game = options['game'] or metadata.get('game')
        if not game:
            raise CommandError("Export does not name its game; pass --game")

        game_class = GameRegistry.get(game)
        if game_class is not None and network.sizes != game_class().network_sizes:
            raise CommandError(
                f"Network sizes {network.sizes} do not fit {game} "
                f"{game_class().network_sizes}"
            )

        NetworkStore(self.open_store(options)).save(game, network)
        self.write(f"Imported {game} network {network.sizes}")


class ScoresCommand(BaseCommand):
    help = 'List the best recorded scores of a game'

    def add_arguments(self, parser):
        parser.add_argument('game', type=str, help='Game type (e.g. flappy)')
        parser.add_argument(
            '--limit',
            type=int,
            default=10,
            help='Number of scores to show (default: 10)',
        )
        _add_store_argument(parser)

    def handle(self, **options):
        history = ScoreHistory(self.open_store(options))
        entries = history.top_scores(options['game'], limit=options['limit'])
        if not entries:
            self.write(f"No scores recorded for {options['game']}")
            return
        for rank, entry in enumerate(entries, start=1):
            generation = entry.get('generation')
            suffix = f" (generation {generation})" if generation is not None else ''
            self.write(f"{rank:3d}. {entry['score']}{suffix}")


class PlotCommand(BaseCommand):
    help = 'Plot fitness history from a population checkpoint'

    def add_arguments(self, parser):
        parser.add_argument('checkpoint', type=str, help='Checkpoint file (.pt)')
        parser.add_argument(
            '--out',
            type=str,
            default='fitness.png',
            help='Image to write (default: fitness.png)',
        )

    def handle(self, **options):
        try:
            checkpoint = torch.load(options['checkpoint'], weights_only=True)
        except (pickle.UnpicklingError, RuntimeError, EOFError, ValueError) as e:
            raise CommandError(f"Not a population checkpoint: {options['checkpoint']} ({e})") from e
        if not isinstance(checkpoint, dict):
            raise CommandError(f"Not a population checkpoint: {options['checkpoint']}")

        history = checkpoint.get('stats_history') or []
        if not isinstance(history, list) or not all(isinstance(s, dict) for s in history):
            raise CommandError("Checkpoint generation history is malformed")
        if not history:
            raise CommandError("Checkpoint has no generation history to plot")
        game_type = checkpoint.get('game_type')
        if not isinstance(game_type, str):
            game_type = None

        path = plot_fitness_over_generations(
            history,
            save_path=options['out'],
            game_type=game_type,
        )
        self.write(format_evolution_summary(
            history,
            best_fitness=checkpoint.get('all_time_best_fitness'),
            game_type=game_type,
        ))
        self.write(f"Saved plot to {path}")


COMMANDS: Dict[str, type] = {
    'inspect': InspectCommand,
    'export': ExportCommand,
    'import': ImportCommand,
    'scores': ScoresCommand,
    'plot': PlotCommand,
}


def configure_logging(verbosity: int) -> None:
    logging.basicConfig(
        level=VERBOSITY_LEVELS.get(verbosity, logging.DEBUG),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='neuroarcade',
        description='Manage evolved game-playing networks',
    )
    parser.add_argument(
        '-v', '--verbosity',
        type=int,
        default=1,
        choices=[0, 1, 2, 3],
        help='Verbosity level; 0=minimal output, 1=normal output, 2=verbose output, 3=very verbose output',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)
    for name, command_class in COMMANDS.items():
        subparser = subparsers.add_parser(name, help=command_class.help)
        command_class().add_arguments(subparser)
    return parser


def main(argv: Optional[List[str]] = None, stdout: Optional[TextIO] = None) -> int:
    """Entry point of the `neuroarcade` script. Returns the exit code."""
    parser = build_parser()
    options = vars(parser.parse_args(argv))
    configure_logging(options.pop('verbosity'))

    command = COMMANDS[options.pop('command')](stdout=stdout)
    try:
        command.handle(**options)
    except (CommandError, NeuroArcadeError, OSError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
