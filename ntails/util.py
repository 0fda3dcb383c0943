"""
Common utility methods
"""

import os
import logging

log = logging.getLogger()


def expand_path(path):
    """expand environment variables and tilda in path"""
    if '$' in path:
        path = os.path.expandvars(path)
    if '~' in path:
        path = os.path.expanduser(path)
    return path


def coerce_str(data, errors='strict'):
    """coerce data to str type"""
    if not isinstance(data, str) and hasattr(data, 'decode'):
        data = data.decode('utf-8', errors)
    return data


def basename(path):
    """file name used for headers and colors"""
    return os.path.basename(coerce_str(path).rstrip(os.sep)) or path


def max_base_length(paths):
    """length of the longest basename in paths, 0 if there are none"""
    return max((len(basename(p)) for p in paths), default=0)


def build_repr(clz, *attributes):
    """generate __repr__ method for builder classes"""

    def method(self):
        init = ', '.join('%s=%r' % (a, getattr(self, a)) for a in attributes)
        return '%s(%s)' % (clz, init)

    return method


class Closable:
    def __init__(self):
        self._closed = False

    @property
    def is_closed(self):
        return self._closed

    def close(self):
        log.debug('Closing %r', self)
        self._closed = True
