#!/usr/bin/python3

# ibus-compose-engine - A compose sequence input method for IBus
#
# Copyright (c) 2019-2025 Mike FABIAN <mfabian@redhat.com>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>

'''
This file implements test cases for reading and writing compiled
compose sequence tables.
'''

from typing import Any
from typing import Dict
import os
import sys
import gzip
import json
import logging
import tempfile
import unittest
from unittest import mock

import testutils # pylint: disable=import-error

LOGGER = logging.getLogger('ibus-compose-engine')

sys.path.insert(0, testutils.ENGINE_DIR)
# pylint: disable=import-error
# pylint: disable=wrong-import-position
import ice_util
import table_file
import sequence_table
# pylint: enable=wrong-import-position
# pylint: enable=import-error
sys.path.pop(0)

# pylint: disable=missing-function-docstring
# pylint: disable=missing-class-docstring

def document(*sequences: Dict[str, Any]) -> str:
    return json.dumps({
        'format': 'ibus-compose-engine-table',
        'version': 1,
        'sequences': list(sequences),
    })

class TableFileTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.table = testutils.sample_table()
        # pylint: disable=consider-using-with
        self._tempdir = tempfile.TemporaryDirectory()
        # pylint: enable=consider-using-with
        self.tempdir = self._tempdir.name

    def tearDown(self) -> None:
        self._tempdir.cleanup()

    def assert_same_table(
            self,
            first: sequence_table.SequenceTable,
            second: sequence_table.SequenceTable) -> None:
        self.assertEqual(len(first), len(second))
        self.assertEqual(first.max_length, second.max_length)
        self.assertEqual(list(first), list(second))

    def test_dummy(self) -> None:
        self.assertEqual(True, True)

    def test_code_points(self) -> None:
        self.assertEqual(table_file.encode_code_points('\u00E0'), '00E0')
        self.assertEqual(table_file.encode_code_points('a\u0300'),
                         '0061-0300')
        self.assertEqual(
            table_file.encode_code_points('\U0001F573\uFE0F'), '1F573-FE0F')
        self.assertEqual(table_file.decode_code_points('0061-0300'),
                         'a\u0300')
        for invalid in ('', 'xyz', '0061--0300', '110000', None):
            with self.assertRaises(table_file.TableFileError):
                table_file.decode_code_points(invalid) # type: ignore

    def test_dump_and_load(self) -> None:
        for basename in ('compose-table.json', 'compose-table.json.gz'):
            path = os.path.join(self.tempdir, basename)
            table_file.dump_table(self.table, path)
            self.assert_same_table(table_file.load_table(path), self.table)

    def test_gzip_file_is_compressed(self) -> None:
        path = os.path.join(self.tempdir, 'compose-table.json.gz')
        table_file.dump_table(self.table, path)
        with gzip.open(path, mode='rt', encoding='utf-8') as compressed:
            loaded = json.load(compressed)
        self.assertEqual(loaded['format'], 'ibus-compose-engine-table')
        self.assertEqual(len(loaded['sequences']), len(self.table))

    def test_multi_code_point_order_is_kept(self) -> None:
        text = table_file.dumps_table(self.table)
        self.assertIn('"0061-0300"', text)
        table = table_file.loads_table(text)
        node = table.lookup('Multi_key a grave')
        assert node is not None
        self.assertEqual(node.output, 'a\u0300')

    def test_output_string_accepted(self) -> None:
        table = table_file.loads_table(document(
            {'keys': ['dead_grave', 'a'], 'output': 'à'},
            {'keys': ['dead_grave', 'e'], 'code_points': '00E8'}))
        self.assertEqual(len(table), 2)
        node = table.lookup('dead_grave e')
        assert node is not None
        self.assertEqual(node.output, 'è')

    def test_conflicting_sequences_rejected_on_load(self) -> None:
        text = document(
            {'keys': ['dead_grave', 'a'], 'code_points': '00E0'},
            {'keys': ['dead_grave', 'a'], 'code_points': '00E1'})
        with self.assertLogs(LOGGER, level='ERROR'):
            with self.assertRaises(sequence_table.ConflictingSequence):
                table_file.loads_table(text)

    def test_empty_sequence_rejected_on_load(self) -> None:
        with self.assertRaises(sequence_table.MalformedSequence):
            table_file.loads_table(document(
                {'keys': [], 'code_points': '00E0'}))

    def test_invalid_documents(self) -> None:
        for text in (
                'not json',
                '[]',
                json.dumps({'format': 'something-else', 'version': 1,
                            'sequences': []}),
                json.dumps({'format': 'ibus-compose-engine-table',
                            'version': 2, 'sequences': []}),
                json.dumps({'format': 'ibus-compose-engine-table',
                            'version': 1, 'sequences': {}}),
                document({'keys': 'dead_grave a', 'code_points': '00E0'}),
                document({'keys': ['dead_grave', 1], 'code_points': '00E0'}),
                document({'keys': ['dead_grave', 'a']}),
                document({'keys': ['dead_grave', 'a'], 'code_points': 'xyz'}),
        ):
            with self.assertRaises(table_file.TableFileError, msg=text):
                table_file.loads_table(text)

    def test_load_missing_file(self) -> None:
        with self.assertLogs(LOGGER, level='ERROR'):
            with self.assertRaises(table_file.TableFileError):
                table_file.load_table(
                    os.path.join(self.tempdir, 'nonexistent.json'))

    def test_load_invalid_utf8(self) -> None:
        path = os.path.join(self.tempdir, 'compose-table.json')
        with open(path, mode='wb') as broken_file:
            broken_file.write(b'\xff\xfe\xfa')
        with self.assertLogs(LOGGER, level='ERROR'):
            with self.assertRaises(table_file.TableFileError):
                table_file.load_table(path)

    def test_find_table_path(self) -> None:
        user_dir = os.path.join(self.tempdir, 'user')
        location = os.path.join(self.tempdir, 'system')
        os.makedirs(os.path.join(user_dir, 'ibus-compose-engine', 'data'))
        os.makedirs(os.path.join(location, 'data'))
        system_table = os.path.join(
            location, 'data', 'compose-table.json.gz')
        table_file.dump_table(self.table, system_table)
        environment = {
            'XDG_DATA_HOME': user_dir,
            'IBUS_COMPOSE_ENGINE_LOCATION': location,
        }
        with mock.patch.dict(os.environ, environment):
            os.environ.pop('IBUS_COMPOSE_ENGINE_TABLE', None)
            self.assertEqual(table_file.find_table_path(), system_table)
            self.assert_same_table(table_file.load_table(), self.table)
            # A table in the user data directory wins:
            user_table = os.path.join(
                user_dir, 'ibus-compose-engine', 'data',
                'compose-table.json')
            table_file.dump_table(
                sequence_table.build_table([('dead_grave a', 'à')]),
                user_table)
            self.assertEqual(table_file.find_table_path(), user_table)
            self.assertEqual(len(table_file.load_table()), 1)
            # An explicitly configured table wins over both:
            os.environ['IBUS_COMPOSE_ENGINE_TABLE'] = system_table
            self.assertEqual(table_file.find_table_path(), system_table)

    def test_no_table_found(self) -> None:
        environment = {
            'XDG_DATA_HOME': os.path.join(self.tempdir, 'user'),
            'IBUS_COMPOSE_ENGINE_LOCATION': os.path.join(
                self.tempdir, 'system'),
        }
        with mock.patch.dict(os.environ, environment):
            os.environ.pop('IBUS_COMPOSE_ENGINE_TABLE', None)
            with self.assertLogs(LOGGER, level='WARNING'):
                self.assertEqual(table_file.find_table_path(), '')
            with self.assertRaises(table_file.TableFileError):
                table_file.load_table()

    def test_datadir_in_source_tree(self) -> None:
        with mock.patch.dict(os.environ):
            os.environ.pop('IBUS_COMPOSE_ENGINE_LOCATION', None)
            self.assertTrue(os.path.isfile(os.path.join(
                table_file.datadir(), 'compose-table.json')))

    def test_datadir_installed(self) -> None:
        # Installed modules have no “../data” next to them, the table
        # is installed below the prefix:
        site_packages = os.path.join(
            self.tempdir, 'prefix', 'lib', 'python3', 'site-packages')
        installed_datadir = os.path.join(
            self.tempdir, 'prefix', 'share', 'ibus-compose-engine', 'data')
        os.makedirs(site_packages)
        os.makedirs(installed_datadir)
        installed_table = os.path.join(
            installed_datadir, 'compose-table.json')
        table_file.dump_table(self.table, installed_table)
        environment = {
            'XDG_DATA_HOME': os.path.join(self.tempdir, 'user'),
            'IBUS_COMPOSE_ENGINE_PREFIX': os.path.join(
                self.tempdir, 'prefix'),
        }
        with mock.patch.dict(os.environ, environment), \
             mock.patch.object(
                 table_file, '__file__',
                 os.path.join(site_packages, 'table_file.py')):
            os.environ.pop('IBUS_COMPOSE_ENGINE_LOCATION', None)
            os.environ.pop('IBUS_COMPOSE_ENGINE_TABLE', None)
            self.assertEqual(table_file.datadir(), installed_datadir)
            self.assertEqual(table_file.find_table_path(), installed_table)
            self.assert_same_table(table_file.load_table(), self.table)

    def test_shipped_table(self) -> None:
        table = table_file.load_table(os.path.join(
            testutils.ENGINE_DIR, '..', 'data', 'compose-table.json'))
        self.assertEqual(len(table), 112)
        self.assertEqual(table.max_length, 6)
        node = table.lookup('dead_acute j')
        assert node is not None
        self.assertEqual(node.output, 'j\u0301')
        node = table.lookup('Multi_key minus minus')
        assert node is not None
        self.assertFalse(node.is_complete())

    def test_find_path_and_open_function(self) -> None:
        path = os.path.join(self.tempdir, 'compose-table.json.gz')
        table_file.dump_table(self.table, path)
        self.assertEqual(
            ice_util.find_path_and_open_function(
                ('', os.path.join(self.tempdir, 'nonexistent'), self.tempdir),
                ('compose-table.json',)),
            (path, gzip.open))
        self.assertEqual(
            ice_util.find_path_and_open_function(
                (self.tempdir,), ('nonexistent.json',)),
            ('', None))

if __name__ == '__main__':
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    unittest.main()
