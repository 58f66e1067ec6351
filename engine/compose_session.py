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
The compose state machine

A ComposeSession consumes one symbolic key at a time and decides
whether the keys typed so far are still the prefix of some compose
sequence (continue), form a complete sequence (commit) or cannot
match anything anymore (abort).

When a complete sequence is also the prefix of a longer sequence,
the longest match wins: the session keeps composing and commits the
shorter sequence only when the next key does not extend it.
'''

from typing import Tuple
from typing import List
from typing import Optional
from typing import Iterable
from typing import NamedTuple
from typing import Union
from enum import Enum
import sys
import logging

import ice_util
from ice_util import SymbolicKey
from sequence_table import SequenceNode
from sequence_table import SequenceTable

LOGGER = logging.getLogger('ibus-compose-engine')

class OutcomeKind(Enum):
    '''What happened to a key given to a compose session'''
    # The session declined the key, it is ordinary input:
    NOT_COMPOSING = 'NOT_COMPOSING'
    # The key was consumed, the sequence is still incomplete:
    CONTINUE = 'CONTINUE'
    # A sequence is complete, its text should be committed:
    COMMIT = 'COMMIT'
    # The typed keys cannot become a sequence anymore:
    ABORT = 'ABORT'
    # cancel_last() removed the last typed key:
    IDLE = 'IDLE'

class Outcome(NamedTuple):
    '''
    The result of feeding a key to a compose session

    kind: OutcomeKind            What happened
    text: str                    The text to commit (COMMIT only)
    replay: Tuple[SymbolicKey]   The buffered keys to be handled as
                                 ordinary input in their original
                                 order (ABORT only)
    then: Optional[SymbolicKey]  The key which ended the sequence
                                 without being consumed by it. The
                                 caller has to give it to the session
                                 again, after committing “text” or
                                 replaying “replay”. None if the key
                                 completing the sequence was consumed.
    '''
    kind: OutcomeKind
    text: str = ''
    replay: Tuple[SymbolicKey, ...] = ()
    then: Optional[SymbolicKey] = None

NOT_COMPOSING = Outcome(OutcomeKind.NOT_COMPOSING)
CONTINUE = Outcome(OutcomeKind.CONTINUE)
IDLE = Outcome(OutcomeKind.IDLE)

class ComposeSession:
    '''Per input context state of compose sequence input

    The session starts idle. It keeps a stack of the trie nodes
    visited for the keys typed so far, so that removing the last
    key is O(1).

    Examples:

    >>> from sequence_table import build_table
    >>> table = build_table([('dead_grave a', 'à'), ('dead_grave e', 'è')])
    >>> session = ComposeSession(table)
    >>> session.advance(SymbolicKey('dead_grave')).kind
    <OutcomeKind.CONTINUE: 'CONTINUE'>
    >>> session.advance(SymbolicKey('a')).text
    'à'
    >>> session.is_composing()
    False
    '''
    def __init__(self, table: SequenceTable) -> None:
        self._debug_level = ice_util.get_debug_level()
        self._table = table
        self._nodes: List[SequenceNode] = []
        self._typed: List[SymbolicKey] = []

    @property
    def table(self) -> SequenceTable:
        '''The (shared) table of compose sequences'''
        return self._table

    @property
    def typed(self) -> Tuple[SymbolicKey, ...]:
        '''The keys consumed since the session was last idle'''
        return tuple(self._typed)

    @property
    def current_node(self) -> SequenceNode:
        '''The trie node reached by the keys typed so far'''
        if self._nodes:
            return self._nodes[-1]
        return self._table.root

    def is_composing(self) -> bool:
        '''Whether a partial compose sequence has been typed'''
        return bool(self._typed)

    def advance(self, key: SymbolicKey) -> Outcome:
        '''Feeds one key to the compose session

        :param key: The symbolic key typed
        :return: An Outcome:
                 NOT_COMPOSING: idle and key cannot start a sequence.
                 CONTINUE: key consumed, the sequence is incomplete.
                 COMMIT: a sequence is complete. If the key completed
                         it, “then” is None. If the sequence was
                         already complete and key does not extend it,
                         “then” is key and key has not been consumed.
                 ABORT: key does not extend the typed keys. “replay”
                        contains the typed keys, “then” is key.
        The session is idle after COMMIT and ABORT.
        '''
        node = self.current_node
        child = node.child(key)
        if not self._typed:
            if child is None:
                return NOT_COMPOSING
            if self._debug_level > 1:
                LOGGER.debug('Compose sequence started by %s', key)
        elif child is None:
            if node.output is not None:
                text = node.output
                if self._debug_level > 1:
                    LOGGER.debug(
                        'Compose sequence %s complete, %s does not '
                        'extend it: %r',
                        ice_util.keys_to_string(self._typed), key, text)
                self.reset()
                return Outcome(OutcomeKind.COMMIT, text=text, then=key)
            replay = tuple(self._typed)
            if self._debug_level > 1:
                LOGGER.debug(
                    'Compose sequence %s cannot be continued with %s',
                    ice_util.keys_to_string(replay), key)
            self.reset()
            return Outcome(OutcomeKind.ABORT, replay=replay, then=key)
        self._nodes.append(child)
        self._typed.append(key)
        if child.output is not None and not child.has_children():
            text = child.output
            if self._debug_level > 1:
                LOGGER.debug(
                    'Compose sequence %s finished: %r',
                    ice_util.keys_to_string(self._typed), text)
            self.reset()
            return Outcome(OutcomeKind.COMMIT, text=text)
        return CONTINUE

    def cancel_last(self) -> Outcome:
        '''Removes the last key of a partially typed sequence

        :return: CONTINUE if keys remain typed, IDLE if the last
                 typed key has been removed, NOT_COMPOSING if the
                 session was idle already (a backspace which is not
                 for the compose session).
        '''
        if not self._typed:
            return NOT_COMPOSING
        self._nodes.pop()
        key = self._typed.pop()
        if self._debug_level > 1:
            LOGGER.debug('Removed %s from compose sequence, remaining: %s',
                         key, ice_util.keys_to_string(self._typed))
        if not self._typed:
            return IDLE
        return CONTINUE

    def reset(self) -> None:
        '''Discards a partially typed sequence, nothing is committed'''
        self._nodes = []
        self._typed = []

    def finish(self) -> Outcome:
        '''Resolves a partially typed sequence without a further key

        Used when the input context loses focus, there will be no next
        key to decide whether a longer sequence was intended.

        :return: COMMIT if the keys typed form a complete sequence,
                 ABORT with the typed keys otherwise, “then” is None
                 in both cases. NOT_COMPOSING if the session is idle.
        '''
        if not self._typed:
            return NOT_COMPOSING
        node = self.current_node
        typed = tuple(self._typed)
        self.reset()
        if node.output is not None:
            return Outcome(OutcomeKind.COMMIT, text=node.output)
        return Outcome(OutcomeKind.ABORT, replay=typed)

    def completions(
            self,
            available_keys: Optional[Iterable[Union[str, SymbolicKey]]] = None
    ) -> List[List[SymbolicKey]]:
        '''Lists the ways to complete the partially typed sequence

        :param available_keys: Only list completions which can be
                               typed with these keys. None means all
                               completions.
        '''
        if not self._typed:
            return []
        return self._table.find_completions(self._typed, available_keys)

    def __repr__(self) -> str:
        return (f'ComposeSession(typed='
                f'{ice_util.keys_to_string(self._typed)!r})')

def new_session(table: SequenceTable) -> ComposeSession:
    '''Creates a new idle compose session using table'''
    return ComposeSession(table)

def advance(session: ComposeSession, key: SymbolicKey) -> Outcome:
    '''Feeds key to session, see ComposeSession.advance()'''
    return session.advance(key)

def cancel_last(session: ComposeSession) -> Outcome:
    '''Removes the last typed key, see ComposeSession.cancel_last()'''
    return session.cancel_last()

def reset(session: ComposeSession) -> None:
    '''Discards any partial sequence, see ComposeSession.reset()'''
    session.reset()

if __name__ == "__main__":
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    import doctest
    (FAILED, _ATTEMPTED) = doctest.testmod()
    sys.exit(FAILED)
