#!/usr/bin/env python3
"""
Test suite for rank.py — config loading, pipeline wiring and the CLI
"""

import csv
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from rank import TitleRanker, load_config, main, DEFAULT_CONFIG
from ranker.imdb import IMDbClient
from ranker.models import Found, InputRecord, RemoteMatch, Unavailable

HEADER = ['Title', 'Year', 'Type', 'Rating', 'Votes', 'ID']


@pytest.fixture
def no_config(tmp_path):
    return tmp_path / 'missing.yaml'


@pytest.fixture
def ranker(no_config):
    return TitleRanker(no_config)


def read_output(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.DictReader(f))


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, no_config):
        assert load_config(no_config) == DEFAULT_CONFIG

    def test_values_override_defaults(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('enrich: true\nmax_attempts: 5\n')

        config = load_config(path)

        assert config['enrich'] is True
        assert config['max_attempts'] == 5
        assert config['api_url'] == DEFAULT_CONFIG['api_url']

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('')
        assert load_config(path) == DEFAULT_CONFIG

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('- enrich\n- true\n')
        with pytest.raises(ValueError):
            load_config(path)


class TestEnrichmentToggle:

    def test_disabled_by_default(self, ranker):
        assert ranker.imdb is None

    def test_enabled_from_config(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('enrich: true\napi_url: https://example.test/v2\nmax_attempts: 2\n')

        ranker = TitleRanker(path)

        assert isinstance(ranker.imdb, IMDbClient)
        assert ranker.imdb.base_url == 'https://example.test/v2'
        assert ranker.imdb.max_attempts == 2

    def test_flag_overrides_config(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('enrich: true\n')
        assert TitleRanker(path, enrich_titles=False).imdb is None

    def test_disabled_never_calls_network(self, ranker):
        with patch('requests.get') as mock_get:
            ranker.process_records([InputRecord(title='Inception', year='2010')])
        mock_get.assert_not_called()


class TestPipeline:

    def test_inception_local_only(self, ranker):
        row = InputRecord(title='Inception', year='2010', type='movie',
                          rating='8.8', votes='2000000', id='')

        results = ranker.process_records([row])

        assert len(results) == 1
        assert results[0].as_row() == {
            'Title': 'Inception', 'Year': '2010', 'Type': 'Movie',
            'Rating': '8.8', 'Votes': '2000000', 'Score': 378,
            'ID': '', 'Link': '',
        }
        assert ranker.stats['local_only'] == 1

    def test_sorted_by_score(self, ranker):
        rows = [
            InputRecord(title='Fifty', rating='5', votes='99'),
            InputRecord(title='Ninety', rating='9', votes='999'),
        ]
        results = ranker.process_records(rows)
        assert [r.title for r in results] == ['Ninety', 'Fifty']

    def test_remote_match_used(self, no_config):
        ranker = TitleRanker(no_config, enrich_titles=True)
        ranker.imdb = MagicMock()
        ranker.imdb.resolve.return_value = Found(RemoteMatch(
            id='tt1375666', primary_title='Inception', start_year=2010,
            type='movie', aggregate_rating=8.8, votes_count=2000000,
        ))

        results = ranker.process_records([InputRecord(title='inception', year='2010')])

        ranker.imdb.resolve.assert_called_once_with('inception', '2010', '')
        assert results[0].title == 'Inception'
        assert results[0].score == 378
        assert results[0].link == 'https://www.imdb.com/title/tt1375666'
        assert ranker.stats['remote_match'] == 1

    def test_unavailable_falls_back_to_local(self, no_config):
        ranker = TitleRanker(no_config, enrich_titles=True)
        ranker.imdb = MagicMock()
        ranker.imdb.resolve.return_value = Unavailable('429 Too Many Requests')

        row = InputRecord(title='Heat', year='1995', type='movie', rating='8.3', votes='700000')
        results = ranker.process_records([row])

        assert results[0].title == 'Heat'
        assert results[0].rating == '8.3'
        assert results[0].type == 'Movie'
        assert ranker.stats['local_only'] == 1

    def test_malformed_match_keeps_local_row(self, no_config):
        ranker = TitleRanker(no_config, enrich_titles=True)
        response = MagicMock()
        response.status_code = 200
        response.headers = {}
        response.json.return_value = {'titles': [{'id': 'tt1', 'rating': 7.9}]}

        row = InputRecord(title='X', type='movie', rating='8', votes='10')
        with patch('requests.get', return_value=response):
            results = ranker.process_records([row])

        assert len(results) == 1
        assert results[0].title == 'X'
        assert results[0].id == ''
        assert results[0].score == 43
        assert ranker.stats['local_only'] == 1
        assert ranker.stats.get('errors', 0) == 0

    def test_infinite_rating_keeps_row(self, no_config):
        ranker = TitleRanker(no_config, enrich_titles=True)
        ranker.imdb = MagicMock()
        ranker.imdb.resolve.return_value = Found(RemoteMatch(
            id='tt1', aggregate_rating=float('inf'), votes_count=10,
        ))

        results = ranker.process_records([InputRecord(title='X')])

        assert len(results) == 1
        assert results[0].score == 0
        assert ranker.stats.get('errors', 0) == 0

    def test_row_error_does_not_abort_batch(self, no_config):
        ranker = TitleRanker(no_config, enrich_titles=True)
        ranker.imdb = MagicMock()
        ranker.imdb.resolve.side_effect = [RuntimeError('boom'), Unavailable('no match')]

        results = ranker.process_records([
            InputRecord(title='Broken'),
            InputRecord(title='Fine', rating='7', votes='100'),
        ])

        assert [r.title for r in results] == ['Fine']
        assert ranker.stats['errors'] == 1

    def test_print_stats(self, ranker, capsys):
        results = ranker.process_records([
            InputRecord(title='Heat', type='movie', rating='8.3', votes='700000'),
        ])
        ranker.print_stats(results)
        out = capsys.readouterr().out
        assert 'Titles ranked: 1' in out
        assert 'Top title: Heat' in out


class TestMain:

    def test_end_to_end(self, tmp_path, no_config):
        input_path = tmp_path / 'input.csv'
        output_path = tmp_path / 'output.csv'
        with open(input_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)
            writer.writerow(['Fifty', '2001', 'documentary', '5', '99', ''])
            writer.writerow(['Inception', '2010', 'movie', '8.8', '2000000', ''])
            writer.writerow(['Dark', '2017', 'tvSeries', '', '', 'tt5753856'])

        argv = ['rank.py', str(input_path), '-o', str(output_path), '--config', str(no_config)]
        with patch.object(sys, 'argv', argv), patch('requests.get') as mock_get:
            assert main() == 0
        mock_get.assert_not_called()

        rows = read_output(output_path)
        assert [r['Title'] for r in rows] == ['Inception', 'Fifty', 'Dark']
        assert rows[0] == {
            'Title': 'Inception', 'Year': '2010', 'Type': 'Movie', 'Rating': '8.8',
            'Votes': '2000000', 'Score': '378', 'ID': '', 'Link': '',
        }
        assert rows[1]['Type'] == 'documentary'
        assert rows[2]['Link'] == 'https://www.imdb.com/title/tt5753856'
        assert rows[2]['Score'] == '0'

    def test_missing_input(self, tmp_path, no_config):
        argv = ['rank.py', str(tmp_path / 'nope.csv'), '--config', str(no_config)]
        with patch.object(sys, 'argv', argv):
            assert main() == 1

    def test_bad_config(self, tmp_path):
        input_path = tmp_path / 'input.csv'
        input_path.write_text('Title\nHeat\n')
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('just a string\n')

        argv = ['rank.py', str(input_path), '--config', str(config_path),
                '-o', str(tmp_path / 'out.csv')]
        with patch.object(sys, 'argv', argv):
            assert main() == 1
