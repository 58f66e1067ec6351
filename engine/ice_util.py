# -*- coding: utf-8 -*-
# vim:et sts=4 sw=4
#
# ibus-compose-engine - A compose sequence input method for IBus
#
# Copyright (c) 2013-2025 Mike FABIAN <mfabian@redhat.com>
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
Utility functions used in ibus-compose-engine
'''

from typing import Any
from typing import Tuple
from typing import List
from typing import Dict
from typing import Optional
from typing import Union
from typing import Iterable
from typing import Callable
import os
import re
import gzip
import sys
import logging
import gettext

LOGGER = logging.getLogger('ibus-compose-engine')

DOMAINNAME = 'ibus-compose-engine'
_: Callable[[str], str] = lambda a: gettext.dgettext(DOMAINNAME, a)

def get_debug_level() -> int:
    '''Returns the debug level set in the environment

    The debug level is read from the environment variable
    IBUS_COMPOSE_ENGINE_DEBUG_LEVEL, 0 is returned if it is not
    set or not an integer.

    Examples:

    >>> os.environ['IBUS_COMPOSE_ENGINE_DEBUG_LEVEL'] = '2'
    >>> get_debug_level()
    2
    >>> os.environ['IBUS_COMPOSE_ENGINE_DEBUG_LEVEL'] = 'foo'
    >>> get_debug_level()
    0
    >>> del os.environ['IBUS_COMPOSE_ENGINE_DEBUG_LEVEL']
    '''
    try:
        return int(str(os.getenv('IBUS_COMPOSE_ENGINE_DEBUG_LEVEL')))
    except (TypeError, ValueError):
        return int(0)

class SymbolicKey:
    '''Layout independent identity of a key

    A symbolic key names the semantic role of a key, for example
    “dead_grave” or “a”, not the glyph shown on a key cap. Symbolic
    keys are interned, there is exactly one object for each name,
    i.e. two symbolic keys are equal if and only if they are the
    same object:

    >>> SymbolicKey('dead_grave') is SymbolicKey('dead_grave')
    True
    >>> SymbolicKey('a') == SymbolicKey('A')
    False
    >>> str(SymbolicKey('Multi_key'))
    'Multi_key'
    >>> SymbolicKey('dead_acute')
    SymbolicKey('dead_acute')
    '''
    __slots__ = ('_name', '__weakref__')
    _interned: Dict[str, 'SymbolicKey'] = {}

    def __new__(cls, name: str) -> 'SymbolicKey':
        key = cls._interned.get(name) if isinstance(name, str) else None
        if key is not None:
            return key
        if not isinstance(name, str) or not name or name != name.strip():
            raise ValueError(f'Invalid symbolic key name: {name!r}')
        key = super().__new__(cls)
        key._name = name
        cls._interned[name] = key
        return key

    @property
    def name(self) -> str:
        '''The name identifying this key'''
        return self._name

    def __reduce__(self) -> Tuple[Any, Tuple[str]]:
        return (SymbolicKey, (self._name,))

    def __copy__(self) -> 'SymbolicKey':
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> 'SymbolicKey':
        return self

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SymbolicKey):
            return NotImplemented
        return self._name < other._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f'SymbolicKey({self._name!r})'

def symbolic_keys(
        names: Union[str, Iterable[Union[str, SymbolicKey]]]
) -> List[SymbolicKey]:
    '''Returns a list of symbolic keys

    :param names: Either a string containing key names separated by
                  white space, optionally enclosed in angle brackets
                  as in Compose files, or an iterable of key names or
                  symbolic keys.

    Examples:

    >>> symbolic_keys('<dead_grave> <a>')
    [SymbolicKey('dead_grave'), SymbolicKey('a')]
    >>> symbolic_keys(['Multi_key', SymbolicKey('e')])
    [SymbolicKey('Multi_key'), SymbolicKey('e')]
    >>> symbolic_keys('')
    []
    '''
    if isinstance(names, str):
        names = re.sub(r'[<>\s]+', ' ', names).strip().split()
    keys = []
    for name in names:
        if isinstance(name, SymbolicKey):
            keys.append(name)
        else:
            keys.append(SymbolicKey(name))
    return keys

def keys_to_string(keys: Iterable[SymbolicKey]) -> str:
    '''Returns a readable representation of a sequence of keys

    Used in log and error messages.

    >>> keys_to_string(symbolic_keys('dead_grave a'))
    '<dead_grave> <a>'
    '''
    return ' '.join(f'<{key}>' for key in keys)

def xdg_save_data_path(*resource: str) -> str:
    '''
    Returns the user data directory for a resource and creates it
    if it does not exist yet.

    Replicates xdg.BaseDirectory.save_data_path() but calls
    os.makedirs() with exist_ok=True.
    '''
    xdg_data_home = os.environ.get('XDG_DATA_HOME') or os.path.join(
        os.path.expanduser('~'), '.local', 'share')
    resource_joined = os.path.join(*resource)
    assert not resource_joined.startswith('/')
    path = os.path.join(xdg_data_home, resource_joined)
    if not os.path.isdir(path):
        os.makedirs(path, exist_ok=True)
    return path

def find_path_and_open_function(
        dirnames: Iterable[str],
        basenames: Iterable[str],
        subdir: str = '') -> Tuple[str, Optional[Callable[..., Any]]]:
    '''Find the first existing file of a list of basenames and dirnames

    For each file in “basenames”, tries whether that file or the
    file with “.gz” added can be found in the list of directories
    “dirnames” where “subdir” is added to each directory in the list.

    Returns a tuple (path, open_function) where “path” is the
    complete path of the first file found and the open function
    is either “open()” or “gzip.open()”.

    :param dirnames: A list of directories to search in
    :param basenames: A list of file names to search for
    :param subdir: A subdirectory to be added to each directory in the list
    '''
    for basename in basenames:
        for dirname in dirnames:
            if not dirname:
                continue
            path = os.path.join(dirname, subdir, basename)
            if os.path.exists(path):
                return (path, open_function_for_path(path))
            path = os.path.join(dirname, subdir, basename + '.gz')
            if os.path.exists(path):
                return (path, gzip.open)
    return ('', None)

def open_function_for_path(path: str) -> Callable[..., Any]:
    '''Returns gzip.open() for paths ending in “.gz”, else open()'''
    if path.endswith('.gz'):
        return gzip.open
    return open

if __name__ == "__main__":
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    import doctest
    (FAILED, _ATTEMPTED) = doctest.testmod()
    sys.exit(FAILED)
