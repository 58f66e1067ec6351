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
Reading and writing compiled compose sequence tables

A compiled table is a JSON file, optionally compressed with gzip
(file name ending in “.gz”):

    {
     "format": "ibus-compose-engine-table",
     "version": 1,
     "sequences": [
      {"keys": ["dead_grave", "a"], "code_points": "00E0"},
      {"keys": ["Multi_key", "a", "grave"], "code_points": "0061-0300"}
     ]
    }

“code_points” contains the code points of the result in hexadecimal,
separated by “-”, in the order they are committed.

Loading a table goes through sequence_table.build_table(), i.e. a file
containing the same sequence twice with different results is rejected.
'''

from typing import Any
from typing import Tuple
from typing import List
from typing import Dict
from typing import Iterator
from typing import Optional
import os
import json
import sys
import logging

import ice_util
import ice_version
from sequence_table import SequenceTable
from sequence_table import build_table

LOGGER = logging.getLogger('ibus-compose-engine')

TABLE_FORMAT = 'ibus-compose-engine-table'
TABLE_VERSION = 1
TABLE_BASENAMES = ('compose-table.json',)

class TableFileError(Exception):
    '''A compiled table file cannot be read'''

def datadir() -> str:
    '''Returns the system directory containing the compiled table

    If the environment variable IBUS_COMPOSE_ENGINE_LOCATION is set,
    its “data” subdirectory. Otherwise “../data” relative to the
    engine directory when running from a source tree, else
    “<prefix>/share/ibus-compose-engine/data” where the table is
    installed.
    '''
    location = os.getenv('IBUS_COMPOSE_ENGINE_LOCATION')
    if location:
        return os.path.join(location, 'data')
    source_datadir = os.path.join(os.path.dirname(__file__), '../data')
    if os.path.isdir(source_datadir):
        return source_datadir
    return os.path.join(
        ice_version.get_prefix(), 'share', 'ibus-compose-engine', 'data')

def user_datadir() -> str:
    '''Returns the user directory which may contain a compiled table

    “~/.local/share/ibus-compose-engine/data” by default. The
    directory is not created.
    '''
    xdg_data_home = os.environ.get('XDG_DATA_HOME') or os.path.join(
        os.path.expanduser('~'), '.local', 'share')
    return os.path.join(xdg_data_home, 'ibus-compose-engine', 'data')

def find_table_path() -> str:
    '''Returns the path of the compiled table to use

    The environment variable IBUS_COMPOSE_ENGINE_TABLE wins if it
    is set. Otherwise “compose-table.json” (or
    “compose-table.json.gz”) is searched first in the user data
    directory, then in the system data directory.

    Returns an empty string if no table can be found.
    '''
    path = os.getenv('IBUS_COMPOSE_ENGINE_TABLE')
    if path:
        return os.path.expanduser(path)
    (path, _open_function) = ice_util.find_path_and_open_function(
        (user_datadir(), datadir()), TABLE_BASENAMES)
    if not path:
        LOGGER.warning('could not find "%s" in "%s"',
                       TABLE_BASENAMES, (user_datadir(), datadir()))
    return path

def encode_code_points(text: str) -> str:
    '''Encodes a result string as hexadecimal code points

    >>> encode_code_points('à')
    '00E0'
    >>> encode_code_points('à')
    '0061-0300'
    >>> encode_code_points('🕳️')
    '1F573-FE0F'
    '''
    return '-'.join(f'{ord(character):04X}' for character in text)

def decode_code_points(code_points: str) -> str:
    '''Decodes hexadecimal code points into the result string

    >>> decode_code_points('0061-0300') == 'à'
    True
    >>> decode_code_points('1f573-fe0f') == '🕳️'
    True
    >>> decode_code_points('xyz')
    Traceback (most recent call last):
    ...
    table_file.TableFileError: Invalid code points 'xyz'
    '''
    try:
        return ''.join(
            chr(int(code_point, 16))
            for code_point in code_points.split('-'))
    except (AttributeError, ValueError, OverflowError) as error:
        raise TableFileError(
            f'Invalid code points {code_points!r}') from error

def dumps_table(table: SequenceTable) -> str:
    '''Serializes a compose sequence table to a JSON string'''
    document: Dict[str, Any] = {
        'format': TABLE_FORMAT,
        'version': TABLE_VERSION,
        'sequences': [
            {'keys': [key.name for key in keys],
             'code_points': encode_code_points(output)}
            for keys, output in table],
    }
    return json.dumps(document, ensure_ascii=False, indent=1)

def dump_table(table: SequenceTable, path: str) -> None:
    '''Writes a compose sequence table to a file

    :param table: The table to write
    :param path: Where to write it, compressed if ending in “.gz”
    '''
    open_function = ice_util.open_function_for_path(path)
    with open_function( # type: ignore
            path, mode='wt', encoding='utf-8') as table_file:
        table_file.write(dumps_table(table))
        table_file.write('\n')
    LOGGER.info('Wrote %d compose sequences to %s', len(table), path)

def _entries(
        document: Any, source: str) -> Iterator[Tuple[List[str], str]]:
    if not isinstance(document, dict):
        raise TableFileError(f'{source}: not a JSON object')
    if document.get('format') != TABLE_FORMAT:
        raise TableFileError(
            f'{source}: unknown format {document.get("format")!r}')
    if document.get('version') != TABLE_VERSION:
        raise TableFileError(
            f'{source}: unsupported version {document.get("version")!r}')
    sequences = document.get('sequences')
    if not isinstance(sequences, list):
        raise TableFileError(f'{source}: "sequences" is not a list')
    for index, sequence in enumerate(sequences):
        if (not isinstance(sequence, dict)
            or not isinstance(sequence.get('keys'), list)
            or not all(isinstance(key, str) for key in sequence['keys'])):
            raise TableFileError(
                f'{source}: sequence {index} has no list of keys')
        if 'code_points' in sequence:
            output = decode_code_points(sequence['code_points'])
        elif isinstance(sequence.get('output'), str):
            output = sequence['output']
        else:
            raise TableFileError(
                f'{source}: sequence {index} has no result')
        yield (sequence['keys'], output)

def loads_table(text: str, source: str = '<string>') -> SequenceTable:
    '''Builds a compose sequence table from its JSON serialization

    :param text: The JSON text
    :param source: Where the text came from, used in error messages
    :raises TableFileError: if the text is not a valid table document
    :raises sequence_table.SequenceTableError: if the sequences
        in the document violate the table construction rules
    '''
    try:
        document = json.loads(text)
    except ValueError as error:
        raise TableFileError(f'{source}: invalid JSON: {error}') from error
    return build_table(_entries(document, source))

def load_table(path: Optional[str] = None) -> SequenceTable:
    '''Loads a compiled compose sequence table from a file

    :param path: The file to read, if None or empty, find_table_path()
                 is used to find it.
    :raises TableFileError: if no table is found or it cannot be read
    :raises sequence_table.SequenceTableError: if the sequences
        in the file violate the table construction rules
    '''
    if not path:
        path = find_table_path()
    if not path:
        raise TableFileError('No compiled compose sequence table found')
    LOGGER.info('Reading compose sequence table %s', path)
    open_function = ice_util.open_function_for_path(path)
    try:
        with open_function( # type: ignore
                path, mode='rt', encoding='utf-8') as table_file:
            text = table_file.read()
    except (OSError, UnicodeDecodeError) as error:
        LOGGER.exception('Error loading %s: %s: %s',
                         path, error.__class__.__name__, error)
        raise TableFileError(f'{path}: {error}') from error
    return loads_table(text, source=path)

if __name__ == "__main__":
    LOG_HANDLER = logging.StreamHandler(stream=sys.stderr)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(LOG_HANDLER)
    import doctest
    (FAILED, _ATTEMPTED) = doctest.testmod()
    sys.exit(FAILED)
