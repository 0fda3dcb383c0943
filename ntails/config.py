"""
Configuration file processing, sys.argv processing, and runtime configuration
"""

import argparse
import logging
import os
from collections import namedtuple

import yaml

from . import default_config_file
from .tail import default_interval
from .util import expand_path

log = logging.getLogger()
default_lines = 10


class ConfigError(ValueError):
    """configuration file can't be read or holds invalid values"""


# options a configuration file may set, with their accepted types
config_types = {
    'follow': bool,
    'reopen': bool,
    'poll': bool,
    'interval': (int, float),
    'lines': int,
    'quiet': bool,
    'no_color': bool,
    'consistent_color': bool,
    'debug': bool,
}


class Config(namedtuple('Config', [
        'files', 'follow', 'reopen', 'poll', 'interval', 'lines',
        'quiet', 'color', 'consistent_color', 'debug'])):
    """Runtime configuration, built once at startup"""
    __slots__ = ()

    def __new__(cls, files, follow=False, reopen=False, poll=False,
                interval=default_interval, lines=default_lines, quiet=False,
                color=True, consistent_color=False, debug=False):
        return super().__new__(
            cls, tuple(files), follow or reopen, reopen, poll, interval,
            lines, quiet, color, consistent_color, debug)

    @property
    def print_filename(self):
        return len(self.files) > 1 and not self.quiet

    @classmethod
    def from_options(cls, options):
        """build from an argv_parse() namespace"""
        return cls(
            files=options.files,
            follow=options.follow,
            reopen=options.reopen,
            poll=options.poll,
            interval=options.interval,
            lines=options.lines,
            quiet=options.quiet,
            color=not options.no_color,
            consistent_color=options.consistent_color,
            debug=options.debug,
        )


def parse_config_file(config_file):
    """
    Reads config_file, returning parser defaults. A missing file gives no
    defaults.
    :param config_file:
    :raises ConfigError: unreadable or invalid file
    """
    config_file = expand_path(config_file)
    if not os.path.isfile(config_file):
        log.debug('no config %r', config_file)
        return {}
    log.debug('parsing config %r', config_file)
    try:
        with open(config_file) as fh:
            return parse_yaml_config(fh)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError('%s: %s' % (config_file, e)) from e


def parse_yaml_config(stream):
    """
    read yaml config, returning a dict of option defaults.
    expected format -
    lines: 20
    consistent-color: true
    interval: 0.5
    """
    data = yaml.safe_load(stream)
    log.debug('parse_yaml_config(stream) => %r', data)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError('expected a mapping of options, not %s'
                          % type(data).__name__)

    defaults = {}
    for key, value in data.items():
        dest = str(key).replace('-', '_')
        if dest not in config_types:
            log.warning('ignoring unknown config option %r', key)
            continue
        kind = config_types[dest]
        # bool is an int, don't let "lines: true" through
        if not isinstance(value, kind) or \
                (kind is not bool and isinstance(value, bool)):
            raise ConfigError('invalid value for %s: %r' % (key, value))
        if dest == 'lines' and value < 0:
            raise ConfigError('lines must not be negative: %r' % value)
        if dest == 'interval' and value <= 0:
            raise ConfigError('interval must be positive: %r' % value)
        defaults[dest] = value
    return defaults


def _line_count(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError('invalid number of lines: %r'
                                         % value)
    if number < 0:
        raise argparse.ArgumentTypeError('invalid number of lines: %r'
                                         % value)
    return number


def _interval(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError('invalid interval: %r' % value)
    if number <= 0:
        raise argparse.ArgumentTypeError('invalid interval: %r' % value)
    return number


def argv_parse(argv=None):
    """
    Parse argv (default sys.argv[1:]) with defaults from the config file.
    :raises ConfigError: bad config file
    """

    class ConfigAction(argparse.Action):
        """Expand file path"""

        def __call__(self, p, namespace, values, option_string=None):
            setattr(namespace, self.dest, expand_path(values))

    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument(
        '--config', '-c', default=default_config_file, action=ConfigAction
    )

    options, ignore = config_parser.parse_known_args(argv)
    log.debug('initial options %r', options)

    defaults = parse_config_file(options.config)
    log.debug('config defaults %r', defaults)

    # import the parent package high level description and version
    from . import __doc__ as desc
    from . import __version__ as version

    parser = argparse.ArgumentParser(prog='ntails', description=desc)
    parser.add_argument(
        '--version', action='version', version='%(prog)s ' + version
    )
    parser.add_argument(
        '--debug', default=False, dest='debug', action='store_true',
        help='enable debug',
    )
    parser.add_argument(
        '--config', '-c',
        metavar='CFG', default=default_config_file, action=ConfigAction,
        help='configuration file, default %(default)s',
    )
    parser.add_argument(
        '-f', default=False, dest='follow', action='store_true',
        help='keep printing lines appended to FILE(s)',
    )
    parser.add_argument(
        '-F', default=False, dest='reopen', action='store_true',
        help='like -f, and keep trying to open FILE(s) that are missing '
             'or recreated',
    )
    parser.add_argument(
        '--poll', default=False, dest='poll', action='store_true',
        help='poll for changes instead of filesystem events',
    )
    parser.add_argument(
        '-s', '--sleep-interval', metavar='SECS', default=default_interval,
        dest='interval', type=_interval,
        help='seconds between polls, default %(default)s',
    )
    parser.add_argument(
        '-n', metavar='NUM', default=default_lines, dest='lines',
        type=_line_count,
        help='output the last NUM lines, instead of last %(default)s',
    )
    parser.add_argument(
        '-q', default=False, dest='quiet', action='store_true',
        help='never print filename headers',
    )
    parser.add_argument(
        '--no-color', default=False, dest='no_color', action='store_true',
        help='disable color output',
    )
    parser.add_argument(
        '--consistent-color', default=False, dest='consistent_color',
        action='store_true',
        help='pick colors by file name, not position',
    )
    parser.add_argument(
        'files', metavar='FILE', nargs='*',
        help='input files',
    )
    parser.set_defaults(**defaults)

    options = parser.parse_args(argv)
    if not options.files:
        parser.error('at least one file is required '
                     '(standard input is not supported)')
    log.debug('final options %r', options)
    return options
