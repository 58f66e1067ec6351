# -*- coding: utf-8 -*-
# vim:et sts=4 sw=4
#
# ibus-compose-engine - A compose sequence input method for IBus
#
# Copyright (c) 2011-2013 Anish Patil <apatil@redhat.com>
# Copyright (c) 2012-2025 Mike FABIAN <mfabian@redhat.com>
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
The IBus engine of ibus-compose-engine
'''

import logging
# pylint: disable=wrong-import-position
from gi import require_version # type: ignore
require_version('IBus', '1.0')
from gi.repository import IBus # type: ignore
# pylint: enable=wrong-import-position

import ice_util
import compose_session
import key_adapter
from sequence_table import SequenceTable

LOGGER = logging.getLogger('ibus-compose-engine')

# How many possible completions of a compose sequence are shown in
# the auxiliary text:
MAX_COMPLETIONS_SHOWN = 10

class KeyEvent:
    '''Key event class used to make the checking of details of the key
    event easy
    '''
    def __init__(self, keyval: int, keycode: int, state: int) -> None:
        self.val = keyval
        self.code = keycode
        self.state = state
        self.name = IBus.keyval_name(self.val) or f'0x{self.val:x}'
        self.unicode = IBus.keyval_to_unicode(self.val)
        self.shift = self.state & IBus.ModifierType.SHIFT_MASK != 0
        self.control = self.state & IBus.ModifierType.CONTROL_MASK != 0
        self.super = self.state & IBus.ModifierType.SUPER_MASK != 0
        # mod1: Usually Alt_L (0x40),  Alt_R (0x6c),  Meta_L (0xcd)
        self.mod1 = self.state & IBus.ModifierType.MOD1_MASK != 0
        self.release = self.state & IBus.ModifierType.RELEASE_MASK != 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyEvent):
            return NotImplemented
        return (self.val == other.val
                and self.code == other.code
                and self.state == other.state)

    def __str__(self) -> str:
        return (
            f'val={self.val} '
            f'code={self.code} '
            f'state=0x{self.state:08x} '
            f'name=“{self.name}” '
            f'unicode=“{self.unicode}” '
            f'shift={self.shift} '
            f'control={self.control} '
            f'super={self.super} '
            f'mod1={self.mod1} '
            f'release={self.release}')

class _EngineSink:
    '''Delivers the results of compose sequences to an engine'''
    def __init__(self, engine: 'ComposeEngine') -> None:
        self._engine = engine

    def commit_text(self, text: str) -> None:
        self._engine.commit_string(text)

    def forward_key(self, key: KeyEvent) -> None:
        self._engine.pass_key(key)

    def update_preedit(self, text: str) -> None:
        self._engine.update_compose_ui(text)

class ComposeEngine(IBus.Engine): # type: ignore
    '''The IBus Engine for ibus-compose-engine'''

    def __init__(
            self,
            bus: IBus.Bus,
            obj_path: str,
            table: SequenceTable,
            unit_test: bool = False) -> None:
        LOGGER.info(
            'ComposeEngine.__init__'
            '(bus=%s, obj_path=%s, table=%s, unit_test=%s)',
            bus, obj_path, table, unit_test)
        super().__init__(
            connection=bus.get_connection(),
            object_path=obj_path)
        self._debug_level = ice_util.get_debug_level()
        self._unit_test = unit_test
        self._session = compose_session.new_session(table)
        self._adapter = key_adapter.ComposeKeyAdapter(
            self._session, _EngineSink(self))

    @property
    def adapter(self) -> key_adapter.ComposeKeyAdapter:
        '''The adapter feeding the compose session of this engine'''
        return self._adapter

    def commit_string(self, text: str) -> None:
        '''Commits a string to the application'''
        if self._debug_level > 1:
            LOGGER.debug('text=%r', text)
        super().commit_text(IBus.Text.new_from_string(text))

    def pass_key(self, key: KeyEvent) -> None:
        '''Passes a key to the application as ordinary input

        Committing the character typed by the key is preferred,
        forward_key_event() does not keep the order of commits and
        keys with some clients and does nothing if key.code is 0.
        '''
        if (key.unicode and key.unicode.isprintable()
            and not (key.control or key.mod1 or key.super)):
            self.commit_string(key.unicode)
            return
        super().forward_key_event(key.val, key.code, key.state)

    def update_compose_ui(self, preedit: str) -> None:
        '''Shows the partially typed sequence and its completions'''
        self.update_preedit_text_with_mode(
            IBus.Text.new_from_string(preedit), len(preedit), bool(preedit),
            IBus.PreeditFocusMode.CLEAR)
        completions = self._adapter.completions()[:MAX_COMPLETIONS_SHOWN]
        self.update_auxiliary_text(
            IBus.Text.new_from_string(' '.join(completions)),
            bool(completions))

    def do_process_key_event( # pylint: disable=arguments-differ
            self, keyval: int, keycode: int, state: int) -> bool:
        '''Process Key Events
        Key Events include Key Press and Key Release,
        modifier means Key Pressed
        '''
        key = KeyEvent(keyval, keycode, state)
        if self._debug_level > 1:
            LOGGER.debug('KeyEvent object: %s', key)
        if (not self._adapter.is_composing()
            and (key.control or key.mod1 or key.super)):
            # Keyboard shortcuts never start a compose sequence:
            return False
        if self._adapter.process_key_event(key):
            return True
        return self._return_false(key)

    def _return_false(self, key: KeyEvent) -> bool:
        '''A replacement for “return False” in do_process_key_event()

        If the key ended a compose sequence, the result of the sequence
        has just been committed. “return False” lets the key arrive
        in the application *before* that commit with some clients
        (XIM), committing the key instead keeps the order.
        '''
        if key.release:
            return False
        if (self._unit_test
            or (key.unicode and key.unicode.isprintable()
                and not (key.control or key.mod1 or key.super))):
            self.pass_key(key)
            return True
        return False

    def do_focus_out(self) -> None: # pylint: disable=arguments-differ
        '''
        Called for ibus < 1.5.27 when a window loses focus while
        this input engine is enabled
        '''
        self.do_focus_out_id('')

    def do_focus_out_id( # pylint: disable=arguments-differ
            self, object_path: str) -> None:
        '''
        Called for ibus >= 1.5.27 when a window loses focus while
        this input engine is enabled

        A partially typed compose sequence is thrown away.

        :param object_path: Example:
                            '/org/freedesktop/IBus/InputContext_23'
        '''
        if self._debug_level > 1:
            LOGGER.debug('object_path=%s\n', object_path)
        self._adapter.reset()

    def do_reset(self) -> None: # pylint: disable=arguments-differ
        '''Called when the mouse pointer is used to move to cursor to a
        different position in the current window.

        A complete sequence waiting for a possible longer match is
        committed, an incomplete one is replayed.
        '''
        if self._debug_level > 1:
            LOGGER.debug('compose preedit representation=%r',
                         self._adapter.preedit_representation())
        self._adapter.flush()

    def do_disable(self) -> None: # pylint: disable=arguments-differ
        '''Called when this input engine is disabled'''
        if self._debug_level > 1:
            LOGGER.debug('do_disable()\n')
        self._adapter.reset()

    def do_destroy(self) -> None: # pylint: disable=arguments-differ
        '''Called when this input engine is destroyed'''
        if self._debug_level > 0:
            LOGGER.debug('entering function')
        self._adapter.reset()
        super().destroy()
