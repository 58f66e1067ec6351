# -*- coding: utf-8 -*-
# vim:et sw=4 sts=4 sw=4
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
ComposeEngine Factory
'''
from typing import Dict
from typing import Optional
import re
import logging
from gi import require_version # type: ignore
# pylint: disable=wrong-import-position
require_version('IBus', '1.0')
from gi.repository import IBus # type: ignore
# pylint: enable=wrong-import-position
import ice_util
import compose_engine
import table_file
from sequence_table import SequenceTable
from sequence_table import SequenceTableError
from sequence_table import build_table

LOGGER = logging.getLogger('ibus-compose-engine')

def load_shared_table(path: Optional[str] = None) -> SequenceTable:
    '''Loads the compose sequence table shared by all engines

    If the table cannot be loaded, the error is logged and an empty
    table is returned. The engines then pass all keys through
    unchanged, a broken table must not break typing.
    '''
    try:
        return table_file.load_table(path)
    except (table_file.TableFileError, SequenceTableError) as error:
        LOGGER.exception('Cannot use compose sequence table: %s: %s',
                         error.__class__.__name__, error)
    return build_table([])

class EngineFactory(IBus.Factory): # type: ignore
    """Compose IM Engine Factory"""
    def __init__(
            self,
            bus: IBus.Bus,
            table: Optional[SequenceTable] = None) -> None:
        self._debug_level = ice_util.get_debug_level()
        if self._debug_level > 1:
            LOGGER.debug('EngineFactory.__init__(bus=%s)\n', bus)
        if table is None:
            table = load_shared_table()
        self.table = table
        self.enginedict: Dict[str, compose_engine.ComposeEngine] = {}
        self.bus = bus
        super().__init__(
            connection=bus.get_connection(), object_path=IBus.PATH_FACTORY)
        self.engine_id = 0

    def do_create_engine( # pylint: disable=arguments-differ
            self, engine_name: str) -> compose_engine.ComposeEngine:
        if self._debug_level > 1:
            LOGGER.debug(
                'EngineFactory.do_create_engine(engine_name=%s)\n',
                engine_name)
        engine_base_path = "/com/redhat/IBus/engines/compose/%s/engine/"
        engine_path = engine_base_path % re.sub(
            r'[^a-zA-Z0-9_/]', '_', engine_name)
        try:
            if engine_name in self.enginedict:
                engine = self.enginedict[engine_name]
            else:
                engine = compose_engine.ComposeEngine(
                    self.bus, engine_path + str(self.engine_id), self.table)
                self.enginedict[engine_name] = engine
                self.engine_id += 1
            return engine
        except Exception as error:
            LOGGER.exception(
                'Failed to create engine %s: %s: %s',
                engine_name, error.__class__.__name__, error)
            raise Exception from error

    def do_destroy(self) -> None:  # pylint: disable=arguments-differ
        '''Destructor, which finish some task for IME'''
        LOGGER.info('Destroying %d engine(s)', len(self.enginedict))
        for engine in self.enginedict.values():
            engine.adapter.reset()
        super().destroy()
