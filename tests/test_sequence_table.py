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
This file implements test cases for building compose sequence tables.
'''

import sys
import copy
import pickle
import logging
import unittest

import testutils # pylint: disable=import-error

LOGGER = logging.getLogger('ibus-compose-engine')

sys.path.insert(0, testutils.ENGINE_DIR)
# pylint: disable=import-error
# pylint: disable=wrong-import-position
import ice_util
import sequence_table
from ice_util import SymbolicKey
# pylint: enable=wrong-import-position
# pylint: enable=import-error
sys.path.pop(0)

# pylint: disable=missing-function-docstring
# pylint: disable=missing-class-docstring
# pylint: disable=protected-access

class SymbolicKeyTestCase(unittest.TestCase):
    def test_dummy(self) -> None:
        self.assertEqual(True, True)

    def test_interned(self) -> None:
        self.assertIs(SymbolicKey('dead_grave'), SymbolicKey('dead_grave'))
        self.assertEqual(SymbolicKey('a'), SymbolicKey('a'))
        self.assertNotEqual(SymbolicKey('a'), SymbolicKey('A'))
        self.assertEqual(
            len({SymbolicKey('a'), SymbolicKey('a'), SymbolicKey('b')}), 2)

    def test_copy_and_pickle_keep_identity(self) -> None:
        key = SymbolicKey('Multi_key')
        self.assertIs(copy.copy(key), key)
        self.assertIs(copy.deepcopy(key), key)
        self.assertIs(pickle.loads(pickle.dumps(key)), key)

    def test_invalid_names(self) -> None:
        for name in ('', ' a', 'a ', None, 42):
            with self.assertRaises(ValueError):
                SymbolicKey(name) # type: ignore

    def test_symbolic_keys(self) -> None:
        self.assertEqual(
            ice_util.symbolic_keys('<Multi_key> <o> <e>'),
            [SymbolicKey('Multi_key'), SymbolicKey('o'), SymbolicKey('e')])
        self.assertEqual(
            ice_util.symbolic_keys('dead_grave  a'),
            [SymbolicKey('dead_grave'), SymbolicKey('a')])
        self.assertEqual(ice_util.symbolic_keys([]), [])
        self.assertEqual(
            ice_util.keys_to_string(ice_util.symbolic_keys(['a', 'b'])),
            '<a> <b>')

class SequenceTableTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.table = testutils.sample_table()

    def tearDown(self) -> None:
        pass

    def test_size(self) -> None:
        self.assertEqual(len(self.table), len(testutils.SAMPLE_SEQUENCES))
        self.assertEqual(self.table.max_length, 6)

    def test_lookup(self) -> None:
        node = self.table.lookup('dead_grave a')
        assert node is not None
        self.assertEqual(node.output, 'à')
        self.assertTrue(node.is_complete())
        self.assertFalse(node.has_children())
        node = self.table.lookup(['dead_grave'])
        assert node is not None
        self.assertIsNone(node.output)
        self.assertTrue(node.has_children())
        self.assertIsNone(self.table.lookup('dead_grave z'))
        self.assertIsNone(self.table.lookup('z'))
        self.assertIs(self.table.lookup([]), self.table.root)

    def test_root_never_carries_output(self) -> None:
        self.assertIsNone(self.table.root.output)
        self.assertFalse(self.table.root.is_complete())

    def test_child(self) -> None:
        node = self.table.child(self.table.root, SymbolicKey('Multi_key'))
        assert node is not None
        self.assertEqual(
            sorted(key.name for key in node.children),
            ['1', 'a', 'e', 'o', 'slash'])
        self.assertIsNone(self.table.child(node, SymbolicKey('Multi_key')))

    def test_is_start_key(self) -> None:
        self.assertTrue(self.table.is_start_key(SymbolicKey('dead_acute')))
        self.assertTrue(self.table.is_start_key(SymbolicKey('Multi_key')))
        self.assertFalse(self.table.is_start_key(SymbolicKey('a')))
        self.assertFalse(self.table.is_start_key(SymbolicKey('unknown_key')))

    def test_prefix_sequence_has_output_and_children(self) -> None:
        node = self.table.lookup('Multi_key e m p t')
        assert node is not None
        self.assertEqual(node.output, '\U0001F573\uFE0F')
        self.assertTrue(node.has_children())
        longer = self.table.lookup('Multi_key e m p t y')
        assert longer is not None
        self.assertEqual(longer.output, '∅')

    def test_multi_code_point_output_keeps_order(self) -> None:
        node = self.table.lookup('Multi_key a grave')
        assert node is not None
        self.assertEqual(node.output, 'a\u0300')
        self.assertEqual([ord(char) for char in node.output],
                         [0x0061, 0x0300])

    def test_iteration_is_sorted_and_complete(self) -> None:
        entries = list(self.table)
        self.assertEqual(len(entries), len(self.table))
        self.assertEqual(
            {(ice_util.keys_to_string(keys), output)
             for keys, output in entries},
            {(ice_util.keys_to_string(ice_util.symbolic_keys(sequence)),
              output)
             for sequence, output in testutils.SAMPLE_SEQUENCES})
        names = [[key.name for key in keys] for keys, _output in entries]
        self.assertEqual(names, sorted(names))

    def test_find_completions(self) -> None:
        self.assertEqual(
            [ice_util.keys_to_string(keys)
             for keys in self.table.find_completions('dead_grave')],
            ['<a>', '<e>'])
        self.assertEqual(
            [ice_util.keys_to_string(keys)
             for keys in self.table.find_completions('Multi_key e m')],
            ['<p> <t>', '<p> <t> <y>'])
        self.assertEqual(
            [ice_util.keys_to_string(keys)
             for keys in self.table.find_completions(
                 'Multi_key', available_keys=['a', 'e', 'grave'])],
            ['<a> <e>', '<a> <grave>'])
        self.assertEqual(self.table.find_completions('dead_grave a'), [])
        self.assertEqual(self.table.find_completions('nothing'), [])

    def test_table_is_immutable(self) -> None:
        node = self.table.lookup('dead_grave')
        assert node is not None
        with self.assertRaises(TypeError):
            node._get_or_add_child(SymbolicKey('o'))
        with self.assertRaises(TypeError):
            node._set_output('x')
        with self.assertRaises(TypeError):
            node.children[SymbolicKey('o')] = node # type: ignore
        self.assertIsNone(self.table.lookup('dead_grave o'))

    def test_empty_table(self) -> None:
        table = sequence_table.build_table([])
        self.assertEqual(len(table), 0)
        self.assertEqual(table.max_length, 0)
        self.assertEqual(list(table), [])
        self.assertFalse(table.is_start_key(SymbolicKey('Multi_key')))

class BuildTableErrorsTestCase(unittest.TestCase):
    def test_conflicting_sequence(self) -> None:
        with self.assertLogs(LOGGER, level='ERROR'):
            with self.assertRaises(
                    sequence_table.ConflictingSequence) as context:
                sequence_table.build_table([
                    ('dead_grave a', 'à'),
                    ('dead_grave e', 'è'),
                    ('<dead_grave> <a>', 'á'),
                ])
        error = context.exception
        self.assertIsInstance(error, sequence_table.SequenceTableError)
        self.assertEqual(error.sequence, ice_util.symbolic_keys('dead_grave a'))
        self.assertEqual(error.first_output, 'à')
        self.assertEqual(error.second_output, 'á')
        self.assertEqual(error.first_index, 0)
        self.assertEqual(error.second_index, 2)
        self.assertIn('à', str(error))
        self.assertIn('á', str(error))

    def test_identical_duplicate_is_accepted(self) -> None:
        table = sequence_table.build_table([
            ('dead_grave a', 'à'),
            ('dead_grave a', 'à'),
        ])
        self.assertEqual(len(table), 1)

    def test_empty_sequence(self) -> None:
        with self.assertRaises(sequence_table.MalformedSequence) as context:
            sequence_table.build_table([('dead_grave a', 'à'), ([], 'x')])
        self.assertEqual(context.exception.index, 1)
        with self.assertRaises(sequence_table.MalformedSequence):
            sequence_table.build_table([('<> ', 'x')])

    def test_invalid_output(self) -> None:
        for output in ('', None, 42):
            with self.assertRaises(sequence_table.MalformedSequence):
                sequence_table.build_table(
                    [('dead_grave a', output)]) # type: ignore

    def test_invalid_entries(self) -> None:
        with self.assertRaises(sequence_table.MalformedSequence):
            sequence_table.build_table([('dead_grave a',)]) # type: ignore
        with self.assertRaises(sequence_table.MalformedSequence):
            sequence_table.build_table([(['dead_grave', ''], 'x')])
        with self.assertRaises(sequence_table.MalformedSequence):
            sequence_table.build_table([([None], 'x')]) # type: ignore

    def test_strict_prefix_is_legal(self) -> None:
        table = sequence_table.build_table([
            ('X Y Z', 'q'),
            ('X Y', 'p'),
        ])
        node = table.lookup('X Y')
        assert node is not None
        self.assertEqual(node.output, 'p')
        self.assertTrue(node.has_children())

if __name__ == '__main__':
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    unittest.main()
