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
Translates key events into symbolic keys for a compose session and
delivers the results of the session to a sink.

A key event can be any object with the attributes “name” (the keysym
name, for example “dead_grave” or “KP_1”), “unicode” (the character
the key would type, may be empty) and “release” (True for key release
events).

A sink is any object with the methods

    commit_text(text: str)   insert composed text
    forward_key(key)         handle a key event as ordinary input

and optionally

    update_preedit(text: str)  show the partially typed sequence
'''

from typing import Any
from typing import List
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import NamedTuple
from typing import Union
import re
import sys
import logging
import unicodedata

import ice_util
from ice_util import SymbolicKey
from compose_session import ComposeSession
from compose_session import OutcomeKind

LOGGER = logging.getLogger('ibus-compose-engine')

# Keys on the keypad compose like their equivalents on the main key
# area:
KEYPAD_KEY_NAMES: Dict[str, str] = {
    'KP_0': '0',
    'KP_1': '1',
    'KP_2': '2',
    'KP_3': '3',
    'KP_4': '4',
    'KP_5': '5',
    'KP_6': '6',
    'KP_7': '7',
    'KP_8': '8',
    'KP_9': '9',
    'KP_Equal': 'equal',
    'KP_Divide': 'slash',
    'KP_Multiply': 'asterisk',
    'KP_Subtract': 'minus',
    'KP_Add': 'plus',
    'KP_Decimal': 'period',
    'KP_Space': 'space',
}

# Different keysym names for the same dead key, see
# /usr/include/X11/keysymdef.h:
KEY_NAME_ALIASES: Dict[str, str] = {
    'dead_perispomeni': 'dead_tilde',
    'dead_psili': 'dead_abovecomma',
    'dead_dasia': 'dead_abovereversedcomma',
}

# Keys which only modify the next key. Inside a compose sequence they
# are ignored, only the modified key is added to the sequence:
MODIFIER_KEY_NAMES = frozenset((
    'Shift_R',
    'Shift_L',
    'ISO_Level3_Shift',
    'Control_L',
    'Control_R',
    'Alt_L',
    'Alt_R',
    'Meta_L',
    'Meta_R',
    'Super_L',
    'Super_R',
))

PREEDIT_REPRESENTATIONS: Dict[str, str] = {
    # Nonspacing combining marks may be exhibited in isolation by
    # applying them to U+00A0 NO-BREAK SPACE.
    #
    # ⎄ U+2384 COMPOSITION SYMBOL is too distracting, · U+00B7
    # MIDDLE DOT represents the Multi_key:
    'Multi_key': '·',
    'dead_abovecomma': '᾿',
    'dead_abovedot': '˙',
    'dead_abovereversedcomma': '῾',
    'dead_abovering': '˚',
    'dead_acute': '´',
    'dead_belowbreve': '\u00A0\u032E',
    'dead_belowcircumflex': 'ꞈ',
    'dead_belowcomma': ',',
    'dead_belowdiaeresis': '\u00A0\u0324',
    'dead_belowdot': '.',
    'dead_belowmacron': 'ˍ',
    'dead_belowring': '˳',
    'dead_belowtilde': '˷',
    'dead_breve': '˘',
    'dead_caron': 'ˇ',
    'dead_cedilla': '¸',
    'dead_circumflex': '^',
    'dead_currency': '¤',
    'dead_diaeresis': '¨',
    'dead_doubleacute': '˝',
    'dead_doublegrave': '˵',
    'dead_grave': '`',
    'dead_greek': 'μ',
    'dead_hook': '\u00A0\u0309',
    'dead_horn': '\u00A0\u031B',
    'dead_invertedbreve': '\u00A0\u0311',
    'dead_iota': 'ͺ',
    'dead_macron': '¯',
    'dead_ogonek': '˛',
    'dead_semivoiced_sound': '゜',
    'dead_stroke': '/',
    'dead_tilde': '~',
    'dead_voiced_sound': '゛',
    'dead_lowline': '_',
    'dead_aboveverticalline': '\u00A0\u030D',
    'dead_belowverticalline': '\u00A0\u0329',
    'dead_longsolidusoverlay': '\u00A0\u0338',
    # Dead vowels for universal syllable entry:
    'dead_a': 'ぁ',
    'dead_A': 'あ',
    'dead_i': 'ぃ',
    'dead_I': 'い',
    'dead_u': 'ぅ',
    'dead_U': 'う',
    'dead_e': 'ぇ',
    'dead_E': 'え',
    'dead_o': 'ぉ',
    'dead_O': 'お',
    'dead_small_schwa': 'ə',
    'dead_capital_schwa': 'Ə',
}

# Characters typed by keys whose keysym name is not the character
# itself, see /usr/include/X11/keysymdef.h:
KEYSYM_CHARACTERS: Dict[str, str] = {
    'exclam': '!',
    'quotedbl': '"',
    'numbersign': '#',
    'dollar': '$',
    'percent': '%',
    'ampersand': '&',
    'apostrophe': "'",
    'parenleft': '(',
    'parenright': ')',
    'asterisk': '*',
    'plus': '+',
    'comma': ',',
    'minus': '-',
    'period': '.',
    'slash': '/',
    'colon': ':',
    'semicolon': ';',
    'less': '<',
    'equal': '=',
    'greater': '>',
    'question': '?',
    'at': '@',
    'bracketleft': '[',
    'backslash': '\\',
    'bracketright': ']',
    'asciicircum': '^',
    'underscore': '_',
    'grave': '`',
    'braceleft': '{',
    'bar': '|',
    'braceright': '}',
    'asciitilde': '~',
    'exclamdown': '¡',
    'cent': '¢',
    'sterling': '£',
    'currency': '¤',
    'yen': '¥',
    'brokenbar': '¦',
    'section': '§',
    'diaeresis': '¨',
    'copyright': '©',
    'ordfeminine': 'ª',
    'guillemotleft': '«',
    'notsign': '¬',
    'registered': '®',
    'macron': '¯',
    'degree': '°',
    'plusminus': '±',
    'acute': '´',
    'mu': 'µ',
    'paragraph': '¶',
    'periodcentered': '·',
    'cedilla': '¸',
    'masculine': 'º',
    'guillemotright': '»',
    'questiondown': '¿',
    'multiply': '×',
    'division': '÷',
}

# Prefixes of keysym names which are followed by the name of a letter
# of that script, e.g. “Greek_alpha”, “Cyrillic_ZHE”:
SCRIPT_KEYSYM_PREFIXES: Dict[str, str] = {
    'Greek_': 'GREEK',
    'Cyrillic_': 'CYRILLIC',
}

def keysym_character(name: str) -> str:
    '''Returns the character a key types or '' if it types none

    :param name: The keysym name of the key

    Examples:

    >>> keysym_character('a')
    'a'
    >>> keysym_character('slash')
    '/'
    >>> keysym_character('Greek_alpha')
    'α'
    >>> keysym_character('Cyrillic_ZHE')
    'Ж'
    >>> keysym_character('U2205')
    '∅'
    >>> keysym_character('dead_grave')
    ''
    '''
    if len(name) == 1:
        return name
    if name in KEYSYM_CHARACTERS:
        return KEYSYM_CHARACTERS[name]
    if re.fullmatch(r'U[0-9A-Fa-f]{4,6}', name):
        return chr(int(name[1:], 16))
    for prefix, script in SCRIPT_KEYSYM_PREFIXES.items():
        if name.startswith(prefix) and len(name) > len(prefix):
            letter = name[len(prefix):]
            case = 'SMALL' if letter.islower() else 'CAPITAL'
            try:
                return unicodedata.lookup(
                    f'{script} {case} LETTER {letter.upper()}')
            except KeyError:
                return ''
    return ''

class KeyPress(NamedTuple):
    '''A minimal key event

    name: str      The keysym name, e.g. “dead_grave”, “a”, “KP_1”
    unicode: str   The character the key types outside of compose
                   sequences, empty for keys like dead keys
    release: bool  Whether this is a key release event
    '''
    name: str
    unicode: str = ''
    release: bool = False

def symbolic_key_for_name(
        name: str, keypad_fallback: bool = True) -> SymbolicKey:
    '''Returns the symbolic key for a keysym name

    :param name: The keysym name of the key
    :param keypad_fallback: Whether keys on the keypad are mapped
                            to their equivalents on the main key area

    Examples:

    >>> symbolic_key_for_name('dead_grave')
    SymbolicKey('dead_grave')
    >>> symbolic_key_for_name('KP_1')
    SymbolicKey('1')
    >>> symbolic_key_for_name('KP_1', keypad_fallback=False)
    SymbolicKey('KP_1')
    >>> symbolic_key_for_name('dead_perispomeni')
    SymbolicKey('dead_tilde')
    '''
    name = KEY_NAME_ALIASES.get(name, name)
    if keypad_fallback:
        name = KEYPAD_KEY_NAMES.get(name, name)
    return SymbolicKey(name)

def preedit_representation(keys: Iterable[Any]) -> str:
    '''Returns a text to display in the preedit for a partially
    typed compose sequence.

    :param keys: The key events typed

    Examples:

    >>> preedit_representation([KeyPress('Multi_key')])
    '·'
    >>> preedit_representation(
    ...     [KeyPress('Multi_key'), KeyPress('asciitilde', '~'),
    ...      KeyPress('dead_circumflex')])
    '~^'
    >>> preedit_representation([KeyPress('dead_macron'), KeyPress('o', 'o')])
    '¯o'
    '''
    representation = ''
    for key in keys:
        name = KEY_NAME_ALIASES.get(key.name, key.name)
        if name in PREEDIT_REPRESENTATIONS:
            representation += PREEDIT_REPRESENTATIONS[name]
        elif key.unicode:
            representation += key.unicode
        else:
            representation += name
    multi_key = PREEDIT_REPRESENTATIONS['Multi_key']
    if len(representation) > 1 and representation[0] == multi_key:
        # Suppress the Multi_key at the start of a sequence but only
        # if more characters have already been added to the sequence:
        return representation[1:]
    return representation

def lookup_representation(keys: Iterable[SymbolicKey]) -> str:
    '''Returns a short representation of a sequence of symbolic keys

    Used to show possible completions of a compose sequence. Unlike
    the preedit representation, dead keys are marked with 💀 and
    white space is made visible, the user needs to know exactly
    which key to type next.

    >>> lookup_representation(ice_util.symbolic_keys('Multi_key dead_tilde a'))
    '·💀~a'
    >>> lookup_representation(ice_util.symbolic_keys('dead_macron space'))
    '💀¯␠'
    >>> lookup_representation(ice_util.symbolic_keys('Multi_key slash equal'))
    '·/='
    >>> lookup_representation(ice_util.symbolic_keys('Greek_alpha'))
    'α'
    >>> lookup_representation(ice_util.symbolic_keys('Multi_key BackSpace'))
    '·BackSpace'
    '''
    representation = ''
    for key in keys:
        name = key.name
        if name == 'Multi_key':
            representation += PREEDIT_REPRESENTATIONS[name]
        elif name.startswith('dead_'):
            representation += '💀' + PREEDIT_REPRESENTATIONS.get(name, name[5:])
        elif name == 'space':
            representation += '␠'
        else:
            representation += keysym_character(name) or name
    return representation

class ComposeKeyAdapter:
    '''Connects the key events of one input context to a compose session

    Examples:

    >>> from sequence_table import build_table
    >>> class Sink:
    ...     def __init__(self): self.text = ''
    ...     def commit_text(self, text): self.text += text
    ...     def forward_key(self, key): self.text += key.unicode
    >>> sink = Sink()
    >>> table = build_table([('dead_grave a', 'à')])
    >>> adapter = ComposeKeyAdapter(ComposeSession(table), sink)
    >>> adapter.process_key_event(KeyPress('dead_grave'))
    True
    >>> adapter.process_key_event(KeyPress('a', 'a'))
    True
    >>> sink.text
    'à'
    '''
    def __init__(
            self,
            session: ComposeSession,
            sink: Any,
            keypad_fallback: bool = True) -> None:
        self._debug_level = ice_util.get_debug_level()
        self._session = session
        self._sink = sink
        self._keypad_fallback = keypad_fallback
        # The raw key events consumed by the session, replayed when
        # the sequence is aborted:
        self._typed_keys: List[Any] = []

    @property
    def session(self) -> ComposeSession:
        '''The compose session fed by this adapter'''
        return self._session

    def is_composing(self) -> bool:
        '''Whether a partial compose sequence has been typed'''
        return self._session.is_composing()

    def process_key_event(self, key: Any) -> bool:
        '''Handles a key event

        :return: True if the key event has been handled completely,
                 False if the caller has to handle it as ordinary
                 input. If False is returned, text may already have
                 been committed or keys replayed through the sink,
                 these come before the key in the input order.
        '''
        if self._debug_level > 1:
            LOGGER.debug('key=%s', key)
        if key.release:
            return False
        if self._session.is_composing():
            if key.name in MODIFIER_KEY_NAMES:
                if self._debug_level > 1:
                    LOGGER.debug(
                        'Inside compose sequence, ignoring key %s', key.name)
                return True
            if key.name == 'BackSpace':
                self._session.cancel_last()
                self._typed_keys.pop()
                self._update_preedit()
                return True
            if key.name == 'Escape':
                self.reset()
                return True
        return self._deliver(key)

    def _deliver(self, key: Any) -> bool:
        outcome = self._session.advance(
            symbolic_key_for_name(key.name, self._keypad_fallback))
        if outcome.kind is OutcomeKind.NOT_COMPOSING:
            return False
        if outcome.kind is OutcomeKind.CONTINUE:
            self._typed_keys.append(key)
            self._update_preedit()
            return True
        replay_keys = self._typed_keys
        self._typed_keys = []
        self._update_preedit()
        if outcome.kind is OutcomeKind.COMMIT:
            self._sink.commit_text(outcome.text)
            if outcome.then is None:
                return True
        else:
            if self._debug_level > 0:
                LOGGER.debug('Invalid compose sequence %s, replaying it',
                             ice_util.keys_to_string(outcome.replay))
            for replay_key in replay_keys:
                self._sink.forward_key(replay_key)
        # The key which ended the sequence was not consumed by it,
        # it may start a new sequence:
        return self._deliver(key)

    def flush(self) -> None:
        '''Resolves a partially typed sequence

        Commits the result if the keys typed so far form a complete
        sequence, else replays the typed keys. Used when the input
        context loses focus.
        '''
        outcome = self._session.finish()
        replay_keys = self._typed_keys
        self._typed_keys = []
        if outcome.kind is OutcomeKind.NOT_COMPOSING:
            return
        self._update_preedit()
        if outcome.kind is OutcomeKind.COMMIT:
            self._sink.commit_text(outcome.text)
            return
        for replay_key in replay_keys:
            self._sink.forward_key(replay_key)

    def reset(self) -> None:
        '''Discards a partially typed sequence without any output'''
        was_composing = self._session.is_composing()
        self._session.reset()
        self._typed_keys = []
        if was_composing:
            self._update_preedit()

    def preedit_representation(self) -> str:
        '''The text showing the partially typed sequence'''
        return preedit_representation(self._typed_keys)

    def completions(
            self,
            available_keys: Optional[Iterable[Union[str, SymbolicKey]]] = None
    ) -> List[str]:
        '''Representations of the possible completions of the sequence'''
        return [lookup_representation(completion)
                for completion in self._session.completions(available_keys)]

    def _update_preedit(self) -> None:
        update_preedit = getattr(self._sink, 'update_preedit', None)
        if update_preedit is not None:
            update_preedit(self.preedit_representation())

if __name__ == "__main__":
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    import doctest
    (FAILED, _ATTEMPTED) = doctest.testmod()
    sys.exit(FAILED)
