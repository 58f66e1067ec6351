# -*- coding: utf-8 -*-
# vim:et sts=4 sw=4
#
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
The table of compose sequences

A compose sequence table is a trie keyed by symbolic keys. Each path
from the root is a sequence which can be typed, a node carries an
output string if the path ending at that node is a complete compose
sequence. A node may carry an output *and* have children, this
happens when a complete sequence is also the prefix of a longer one.

The table is built once and never changed afterwards, it can be
shared by any number of compose sessions.
'''

from typing import Any
from typing import Tuple
from typing import List
from typing import Dict
from typing import Set
from typing import Optional
from typing import Union
from typing import Iterable
from typing import Iterator
from typing import Mapping
from types import MappingProxyType
import sys
import logging

import ice_util
from ice_util import SymbolicKey

LOGGER = logging.getLogger('ibus-compose-engine')

Entry = Tuple[Union[str, Iterable[Union[str, SymbolicKey]]], str]

class SequenceTableError(Exception):
    '''Base class for errors when building a compose sequence table'''

class MalformedSequence(SequenceTableError):
    '''An entry which cannot be a compose sequence

    For example an empty sequence (committing nothing is undefined)
    or an entry without a usable result string.
    '''
    def __init__(
            self,
            index: int,
            sequence: Any,
            reason: str) -> None:
        self.index = index
        self.sequence = sequence
        self.reason = reason
        super().__init__(
            f'Malformed compose sequence in entry {index}: '
            f'{reason}: {sequence!r}')

class ConflictingSequence(SequenceTableError):
    '''The same compose sequence was defined with different results'''
    def __init__(
            self,
            sequence: List[SymbolicKey],
            first_output: str,
            second_output: str,
            first_index: int = -1,
            second_index: int = -1) -> None:
        self.sequence = sequence
        self.first_output = first_output
        self.second_output = second_output
        self.first_index = first_index
        self.second_index = second_index
        super().__init__(
            f'Conflicting compose sequence '
            f'{ice_util.keys_to_string(sequence)}: '
            f'{first_output!r} (entry {first_index}) != '
            f'{second_output!r} (entry {second_index})')

class SequenceNode:
    '''A node in the compose sequence trie'''
    __slots__ = ('_children', '_output', '_frozen')

    def __init__(self) -> None:
        self._children: Dict[SymbolicKey, 'SequenceNode'] = {}
        self._output: Optional[str] = None
        self._frozen = False

    @property
    def output(self) -> Optional[str]:
        '''The result of the sequence ending here, None if incomplete'''
        return self._output

    @property
    def children(self) -> Mapping[SymbolicKey, 'SequenceNode']:
        '''Read only view of the child nodes'''
        return MappingProxyType(self._children)

    def child(self, key: SymbolicKey) -> Optional['SequenceNode']:
        '''Returns the child node reached by key or None'''
        return self._children.get(key)

    def is_complete(self) -> bool:
        '''Whether the path ending at this node is a complete sequence'''
        return self._output is not None

    def has_children(self) -> bool:
        '''Whether longer sequences continue through this node'''
        return bool(self._children)

    def _get_or_add_child(self, key: SymbolicKey) -> 'SequenceNode':
        if self._frozen:
            raise TypeError('SequenceNode is frozen')
        node = self._children.get(key)
        if node is None:
            node = SequenceNode()
            self._children[key] = node
        return node

    def _set_output(self, output: str) -> None:
        if self._frozen:
            raise TypeError('SequenceNode is frozen')
        self._output = output

    def __repr__(self) -> str:
        return (f'SequenceNode(output={self._output!r}, '
                f'children={sorted(self._children)!r})')

class SequenceTable:
    '''An immutable table of compose sequences

    Use build_table() to create one.
    '''
    def __init__(
            self, root: SequenceNode, size: int, max_length: int) -> None:
        self._root = root
        self._size = size
        self._max_length = max_length
        nodes = [root]
        while nodes:
            node = nodes.pop()
            node._frozen = True # pylint: disable=protected-access
            nodes.extend(node.children.values())

    @property
    def root(self) -> SequenceNode:
        '''The root node, it never carries an output'''
        return self._root

    @property
    def max_length(self) -> int:
        '''The length of the longest sequence in the table'''
        return self._max_length

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return (f'SequenceTable(sequences={self._size}, '
                f'max_length={self._max_length})')

    @staticmethod
    def child(node: SequenceNode, key: SymbolicKey) -> Optional[SequenceNode]:
        '''Single step lookup of key below node'''
        return node.child(key)

    def is_start_key(self, key: SymbolicKey) -> bool:
        '''Whether key can start a compose sequence

        >>> table = build_table([('dead_grave a', 'à')])
        >>> table.is_start_key(SymbolicKey('dead_grave'))
        True
        >>> table.is_start_key(SymbolicKey('a'))
        False
        '''
        return key in self._root._children # pylint: disable=protected-access

    def lookup(
            self,
            keys: Iterable[Union[str, SymbolicKey]]) -> Optional[SequenceNode]:
        '''Returns the node reached by typing keys from the root

        None is returned if no sequence in the table starts with keys.

        >>> table = build_table([('dead_grave a', 'à')])
        >>> table.lookup(['dead_grave', 'a']).output
        'à'
        >>> table.lookup(['dead_grave']).output is None
        True
        >>> table.lookup(['a']) is None
        True
        '''
        node: Optional[SequenceNode] = self._root
        for key in ice_util.symbolic_keys(keys):
            assert node is not None
            node = node.child(key)
            if node is None:
                return None
        return node

    def __iter__(self) -> Iterator[Tuple[List[SymbolicKey], str]]:
        '''Yields all (sequence, output) pairs sorted by key names'''
        return self._walk(self._root, [], None)

    @staticmethod
    def _walk(
            node: SequenceNode,
            prefix: List[SymbolicKey],
            available_keys: Optional[Set[SymbolicKey]]
    ) -> Iterator[Tuple[List[SymbolicKey], str]]:
        stack: List[Tuple[SequenceNode, List[SymbolicKey]]] = [(node, prefix)]
        while stack:
            node, path = stack.pop()
            if path and node.output is not None:
                yield (path, node.output)
            # Push in reverse order to pop the smallest key first:
            for key in sorted(node.children, reverse=True):
                if available_keys is not None and key not in available_keys:
                    continue
                stack.append((node.children[key], path + [key]))

    def find_completions(
            self,
            keys: Iterable[Union[str, SymbolicKey]],
            available_keys: Optional[Iterable[Union[str, SymbolicKey]]] = None
    ) -> List[List[SymbolicKey]]:
        '''Lists the ways to complete a partially typed sequence

        :param keys: The keys which started the compose sequence
        :param available_keys: The keys available to complete the
                               sequence. Completions needing other keys
                               are not listed. If None, all completions
                               are listed.
        :return: A list of key lists, each of which completes the
                 sequence when typed after “keys”.

        Examples:

        >>> table = build_table([
        ...     ('dead_grave a', 'à'),
        ...     ('dead_grave e', 'è'),
        ...     ('Multi_key o e', 'œ'),
        ... ])
        >>> table.find_completions(['dead_grave'])
        [[SymbolicKey('a')], [SymbolicKey('e')]]
        >>> table.find_completions(['dead_grave'], available_keys=['e'])
        [[SymbolicKey('e')]]
        >>> table.find_completions(['Multi_key'])
        [[SymbolicKey('o'), SymbolicKey('e')]]
        >>> table.find_completions([])
        []
        >>> table.find_completions(['x'])
        []
        '''
        keys = ice_util.symbolic_keys(keys)
        if not keys:
            return []
        node = self.lookup(keys)
        if node is None:
            return []
        available: Optional[Set[SymbolicKey]] = None
        if available_keys is not None:
            available = set(ice_util.symbolic_keys(available_keys))
        return [path
                for path, _output in self._walk(node, [], available)]

def build_table(entries: Iterable[Entry]) -> SequenceTable:
    '''Builds a compose sequence table

    :param entries: (sequence, output) pairs. A sequence is either a
                    list of symbolic keys (or key names) or a string of
                    key names separated by white space.
    :raises MalformedSequence: if a sequence is empty or an output is
                               not a non-empty string
    :raises ConflictingSequence: if the same sequence occurs twice
                                 with different outputs

    A sequence which is a strict prefix of another sequence is fine,
    its node then carries an output and has children.

    Examples:

    >>> table = build_table([('dead_grave a', 'à'), ('dead_grave e', 'è')])
    >>> len(table)
    2
    >>> build_table([('', 'x')])
    Traceback (most recent call last):
    ...
    sequence_table.MalformedSequence: Malformed compose sequence in entry 0: empty sequence: []
    '''
    debug_level = ice_util.get_debug_level()
    root = SequenceNode()
    size = 0
    max_length = 0
    defined_by: Dict[int, int] = {} # id(node) → index of the entry
    for index, entry in enumerate(entries):
        try:
            sequence, output = entry
        except (TypeError, ValueError) as error:
            raise MalformedSequence(
                index, entry, 'not a (sequence, output) pair') from error
        try:
            keys = ice_util.symbolic_keys(sequence)
        except (TypeError, ValueError) as error:
            raise MalformedSequence(
                index, sequence, f'invalid key: {error}') from error
        if not keys:
            raise MalformedSequence(index, keys, 'empty sequence')
        if not isinstance(output, str) or not output:
            raise MalformedSequence(
                index, keys, f'invalid output {output!r}')
        node = root
        for key in keys:
            node = node._get_or_add_child(key) # pylint: disable=protected-access
        if node.output is None:
            node._set_output(output) # pylint: disable=protected-access
            defined_by[id(node)] = index
            size += 1
            max_length = max(max_length, len(keys))
            continue
        if node.output != output:
            LOGGER.error(
                'Conflicting compose sequence %s: %r != %r',
                ice_util.keys_to_string(keys), node.output, output)
            raise ConflictingSequence(
                keys, node.output, output,
                first_index=defined_by[id(node)], second_index=index)
        if debug_level > 1:
            LOGGER.debug('Duplicate compose sequence %s: %r',
                         ice_util.keys_to_string(keys), output)
    LOGGER.info('Built compose sequence table with %d sequences, '
                'longest sequence has %d keys', size, max_length)
    return SequenceTable(root, size, max_length)

if __name__ == "__main__":
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    import doctest
    (FAILED, _ATTEMPTED) = doctest.testmod()
    sys.exit(FAILED)
