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
Main program of ibus-compose-engine
'''
from typing import Any
from typing import Union
import os
import sys
import argparse
import re
import logging
import logging.handlers
from signal import signal, SIGTERM, SIGINT
from xml.etree.ElementTree import Element, SubElement, tostring
# pylint: disable=wrong-import-position
from gi import require_version # type: ignore
require_version('IBus', '1.0')
from gi.repository import IBus # type: ignore
require_version('GLib', '2.0')
from gi.repository import GLib
# pylint: enable=wrong-import-position

import ice_util
import ice_version
import table_file
from sequence_table import SequenceTableError
from ice_util import _

LOGGER = logging.getLogger('ibus-compose-engine')

DEBUG_LEVEL = ice_util.get_debug_level()

if os.getenv('IBUS_COMPOSE_ENGINE_LOCATION'):
    ICON_DIR = os.path.join(
        str(os.getenv('IBUS_COMPOSE_ENGINE_LOCATION')),
        'icons')
else:
    ICON_DIR = os.path.join(
        ice_version.get_prefix(), 'share/ibus-compose-engine/icons')

COMPONENT_NAME = 'org.freedesktop.IBus.IbusComposeEngine'
ENGINE_NAME = 'compose'
ENGINE_LONGNAME = 'Compose'
ENGINE_DESCRIPTION = 'Input of characters with compose sequences.'
ENGINE_AUTHOR = 'Mike FABIAN <mfabian@redhat.com>'
ENGINE_SYMBOL = '·'

def parse_args() -> Any:
    '''Parse the command line arguments'''
    parser = argparse.ArgumentParser()
    parser.add_argument(
        '--daemon', '-d',
        action='store_true',
        dest='daemon',
        default=False,
        help='Run as daemon, default: %(default)s')
    parser.add_argument(
        '--ibus', '-i',
        action='store_true',
        dest='ibus',
        default=False,
        help='Set the IME icon file, default: %(default)s')
    parser.add_argument(
        '--xml', '-x',
        action='store_true',
        dest='xml',
        default=False,
        help='output the engines xml part, default: %(default)s')
    parser.add_argument(
        '--no-debug', '-n',
        action='store_true',
        dest='no_debug',
        default=False,
        help='Do not write log file '
        + '~/.local/share/ibus-compose-engine/debug.log, '
        + 'default: %(default)s')
    parser.add_argument(
        '--table', '-t',
        nargs='?',
        type=str,
        action='store',
        dest='table',
        default='',
        help='Compiled compose sequence table to use instead of '
        + 'the one found in the data directories, default: %(default)s')
    parser.add_argument(
        '--check-table', '-c',
        action='store_true',
        dest='check_table',
        default=False,
        help='Load the compose sequence table, print some '
        + 'statistics about it and exit, default: %(default)s')
    return parser.parse_args()

_ARGS = parse_args()

class IMApp:
    '''Input method application class'''
    def __init__(self, exec_by_ibus: bool) -> None:
        if DEBUG_LEVEL > 1:
            LOGGER.debug('IMApp.__init__(exec_by_ibus=%s)\n', exec_by_ibus)
        # Importing factory only here, “--xml” and “--check-table”
        # do not need a running ibus.
        import factory # pylint: disable=import-outside-toplevel
        self.__mainloop = GLib.MainLoop()
        self.__bus = IBus.Bus()
        self.__bus.connect("disconnected", self.__bus_destroy_cb)
        self.__factory = factory.EngineFactory(
            self.__bus, factory.load_shared_table(_ARGS.table))
        self.destroyed = False
        if exec_by_ibus:
            self.__bus.request_name(COMPONENT_NAME, 0)
        else:
            self.__component = IBus.Component(
                name=COMPONENT_NAME,
                description="Compose Engine Component",
                version=ice_version.get_version(),
                license="GPL",
                author=ENGINE_AUTHOR,
                homepage="https://github.com/mike-fabian/ibus-compose-engine",
                textdomain="ibus-compose-engine")
            self.__component.add_engine(engine_desc())
            self.__bus.register_component(self.__component)

    def run(self) -> None:
        '''Run the input method application'''
        if DEBUG_LEVEL > 1:
            LOGGER.debug('IMApp.run()\n')
        self.__mainloop.run()
        self.__bus_destroy_cb()

    def quit(self) -> None:
        '''Quit the input method application'''
        if DEBUG_LEVEL > 1:
            LOGGER.debug('IMApp.quit()\n')
        self.__bus_destroy_cb()

    def __bus_destroy_cb(self, bus: Any = None) -> None:
        if DEBUG_LEVEL > 1:
            LOGGER.debug('IMApp.__bus_destroy_cb(bus=%s)\n', bus)
        if self.destroyed:
            return
        LOGGER.info('finalizing:)')
        self.__factory.do_destroy()
        self.destroyed = True
        self.__mainloop.quit()

def engine_icon() -> str:
    '''Returns the path of the engine icon or “” if it is not installed'''
    icon = os.path.join(ICON_DIR, 'ibus-compose-engine.svg')
    if not os.access(icon, os.F_OK):
        icon = ''
    return icon

def engine_desc() -> IBus.EngineDesc:
    '''Describes the engine when not started by ibus'''
    return IBus.EngineDesc(name=ENGINE_NAME,
                           longname=ENGINE_LONGNAME,
                           description=ENGINE_DESCRIPTION,
                           language='t',
                           license='GPL',
                           author=ENGINE_AUTHOR,
                           icon=engine_icon(),
                           layout='default',
                           symbol=ENGINE_SYMBOL)

def cleanup(ima_ins: IMApp) -> None:
    '''
    Clean up when the input method application was killed by a signal
    '''
    ima_ins.quit()
    sys.exit()

def indent(element: Any, level: int = 0) -> None:
    '''Use to format xml Element pretty :)'''
    i = "\n" + level*"    "
    if element is None:
        return
    if len(element):
        if not element.text or not element.text.strip():
            element.text = i + "    "
        last_subelement = None
        for subelement in element:
            last_subelement = subelement
            indent(subelement, level+1)
            if not subelement.tail or not subelement.tail.strip():
                subelement.tail = i + "    "
        if (last_subelement is not None
            and (not last_subelement.tail or not last_subelement.tail.strip())):
            last_subelement.tail = i
    else:
        if level and (not element.tail or not element.tail.strip()):
            element.tail = i

def engines_xml() -> str:
    '''Returns the XML describing the engine, as used by “ibus write-cache”'''
    egs = Element('engines')
    _engine = SubElement(egs, 'engine')
    for tag, text in (
            ('name', ENGINE_NAME),
            ('longname', ENGINE_LONGNAME),
            ('language', 't'),
            ('license', 'GPL'),
            ('author', ENGINE_AUTHOR),
            ('icon', engine_icon()),
            ('layout', 'default'),
            ('description', ENGINE_DESCRIPTION),
            ('symbol', ENGINE_SYMBOL),
            ('rank', '0')):
        _element = SubElement(_engine, tag)
        _element.text = text
    # now format the xmlout pretty
    indent(egs)
    egsout = tostring(egs, encoding='utf8', method='xml').decode('utf-8')
    patt = re.compile(r'<\?.*\?>\n')
    return patt.sub('', egsout)

def write_xml() -> None:
    '''
    Writes the XML to describe the engine to standard output.
    '''
    sys.stdout.buffer.write((engines_xml() + '\n').encode('utf-8'))

def check_table() -> int:
    '''Loads the compose sequence table and prints some statistics

    Returns the exit status, 0 if the table is usable, 1 if not.
    '''
    try:
        table = table_file.load_table(_ARGS.table)
    except (table_file.TableFileError, SequenceTableError) as error:
        print(_('Compose sequence table is not usable: %s') % error,
              file=sys.stderr)
        return 1
    start_keys = sorted(
        {keys[0] for keys, _output in table}, key=lambda key: key.name)
    print(_('Number of compose sequences: %d') % len(table))
    print(_('Longest compose sequence: %d keys') % table.max_length)
    print(_('Keys starting compose sequences: %s')
          % ice_util.keys_to_string(start_keys))
    return 0

def main() -> None:
    '''Main program'''
    if _ARGS.xml:
        write_xml()
        return
    if _ARGS.check_table:
        sys.exit(check_table())

    log_handler: Union[
        logging.NullHandler, logging.handlers.TimedRotatingFileHandler] = (
            logging.NullHandler())
    if not _ARGS.no_debug:
        logdir = ice_util.xdg_save_data_path('ibus-compose-engine')
        log_handler = logging.handlers.TimedRotatingFileHandler(
            os.path.join(logdir, 'debug.log'),
            when='midnight',
            interval=1,
            backupCount=7,
            encoding='UTF-8',
            delay=False,
            utc=False,
            atTime=None)
    log_formatter = logging.Formatter(
        '%(asctime)s %(filename)s '
        'line %(lineno)d %(funcName)s %(levelname)s: '
        '%(message)s')
    log_handler.setFormatter(log_formatter)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.addHandler(log_handler)
    LOGGER.info('********** STARTING **********')

    IBus.init()
    if _ARGS.daemon:
        if os.fork():
            sys.exit()

    ima = IMApp(_ARGS.ibus)
    signal(SIGTERM, lambda signum, stack_frame: cleanup(ima))
    signal(SIGINT, lambda signum, stack_frame: cleanup(ima))
    try:
        ima.run()
    except KeyboardInterrupt:
        ima.quit()
    return

if __name__ == "__main__":
    main()
