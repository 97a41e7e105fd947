"""
Tests for the neuroarcade command line.
"""
import io

import pytest
import torch

from neuroarcade.cli import build_parser, main
from neuroarcade.evolution import EvolutionConfig, Population
from neuroarcade.games import FlappyGame
from neuroarcade.runner import HeadlessRunner
from neuroarcade.storage import JsonFileStore, NetworkExporter, NetworkStore, ScoreHistory

from .factories import FlappyNetworkFactory, TetrisNetworkFactory


def run(*argv):
    out = io.StringIO()
    code = main(list(argv), stdout=out)
    return code, out.getvalue()


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / 'store.json')


class TestParser:
    """Tests for argument parsing."""

    def test_requires_command(self):
        """Test that a subcommand is mandatory."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_verbosity_choices(self):
        """Test the verbosity range."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--verbosity', '5', 'scores', 'flappy'])


class TestCommands:
    """Tests for each subcommand."""

    def test_inspect(self, tmp_path):
        """Test describing an export file."""
        path = NetworkExporter.export_network(
            FlappyNetworkFactory(), 'flappy', str(tmp_path), {'generation': 3},
        )
        code, out = run('inspect', str(path))
        assert code == 0
        assert 'Network 4 -> 8 -> 2' in out
        assert 'generation: 3' in out

    def test_export_and_import(self, tmp_path, store_path):
        """Test moving a network out of one store and into another."""
        network = FlappyNetworkFactory()
        NetworkStore(JsonFileStore(store_path)).save('flappy', network)

        code, out = run('export', 'flappy', '--store', store_path, '--out', str(tmp_path / 'out'))
        assert code == 0
        exported = list((tmp_path / 'out').glob('flappy_network_*.json'))
        assert len(exported) == 1

        other_store = str(tmp_path / 'other.json')
        code, out = run('import', str(exported[0]), '--store', other_store)
        assert code == 0
        loaded = NetworkStore(JsonFileStore(other_store)).load_best('flappy')
        assert all(torch.equal(a, b) for a, b in zip(loaded.parameters(), network.parameters()))

    def test_export_missing(self, tmp_path, store_path):
        """Test exporting a game with nothing saved."""
        code, _ = run('export', 'flappy', '--store', store_path, '--out', str(tmp_path))
        assert code == 1

    def test_import_wrong_shape(self, tmp_path, store_path):
        """Test that a network must fit the target game."""
        path = NetworkExporter.export_network(TetrisNetworkFactory(), 'tetris', str(tmp_path))
        code, _ = run('import', str(path), '--game', 'flappy', '--store', store_path)
        assert code == 1

    def test_import_bad_file(self, tmp_path, store_path):
        """Test importing something that is not an export."""
        path = tmp_path / 'bad.json'
        path.write_text('{"game": "flappy"}')
        code, _ = run('import', str(path), '--store', store_path)
        assert code == 1

    def test_scores(self, store_path):
        """Test listing scores."""
        history = ScoreHistory(JsonFileStore(store_path))
        history.add_score('flappy', 7, generation=2)
        history.add_score('flappy', 11, generation=5)

        code, out = run('scores', 'flappy', '--store', store_path)
        assert code == 0
        lines = out.strip().splitlines()
        assert lines[0].strip().startswith('1. 11')
        assert 'generation 5' in lines[0]

    def test_scores_empty(self, store_path):
        """Test a game without scores."""
        code, out = run('scores', 'racing', '--store', store_path)
        assert code == 0
        assert 'No scores recorded' in out

    def test_plot(self, tmp_path):
        """Test plotting from a checkpoint."""
        def physics(agent, action, world):
            agent.deactivate()

        game = FlappyGame(physics=physics)
        population = Population(EvolutionConfig(population_size=3), game)
        world = {'pipes': [{'x': 300.0, 'y': 200.0, 'width': 50.0}]}
        HeadlessRunner(population, world_fn=lambda tick: world).run(2)
        checkpoint = population.save_checkpoint(str(tmp_path))

        image = tmp_path / 'fitness.png'
        code, out = run('plot', str(checkpoint), '--out', str(image))
        assert code == 0
        assert image.exists()
        assert 'EVOLUTION SUMMARY (flappy)' in out

    def test_plot_without_history(self, tmp_path):
        """Test a checkpoint taken before any generation finished."""
        population = Population(EvolutionConfig(population_size=2), FlappyGame())
        checkpoint = population.save_checkpoint(str(tmp_path))
        code, _ = run('plot', str(checkpoint))
        assert code == 1

    def test_plot_corrupt_checkpoint(self, tmp_path):
        """Test that a file torch cannot read is a command error."""
        path = tmp_path / 'broken.pt'
        path.write_bytes(b'not a checkpoint')
        code, _ = run('plot', str(path))
        assert code == 1

    def test_plot_empty_file(self, tmp_path):
        """Test an empty checkpoint file."""
        path = tmp_path / 'empty.pt'
        path.write_bytes(b'')
        code, _ = run('plot', str(path))
        assert code == 1

    def test_plot_foreign_checkpoint(self, tmp_path):
        """Test a torch file that is not a population checkpoint."""
        path = tmp_path / 'tensor.pt'
        torch.save(torch.zeros(3), path)
        code, _ = run('plot', str(path))
        assert code == 1

    def test_plot_malformed_history(self, tmp_path):
        """Test a checkpoint whose history entries are not records."""
        path = tmp_path / 'odd.pt'
        torch.save({'game_type': 'flappy', 'stats_history': [1, 2]}, path)
        code, _ = run('plot', str(path))
        assert code == 1
