# vim:et sts=4 sw=4
#
# ibus-compose-engine - A compose sequence input method for IBus
#
# Copyright (c) 2015-2025 Mike FABIAN <mfabian@redhat.com>
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
Version and installation prefix of ibus-compose-engine
'''
import os
import sys

__version__ = '0.1.0'

def get_version() -> str:
    '''Returns the version of ibus-compose-engine'''
    return __version__

def get_prefix() -> str:
    '''Returns the installation prefix

    The prefix of the Python installation the engine is installed
    into, the data files are installed below it. Can be overridden
    with the environment variable IBUS_COMPOSE_ENGINE_PREFIX.
    '''
    return os.getenv('IBUS_COMPOSE_ENGINE_PREFIX') or sys.prefix
