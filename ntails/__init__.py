#!/usr/bin/env python3 -u
"""
Tail (and follow) multiple files, labeling each line with a colored filename.
"""
# NOTES
# http://www.termsys.demon.co.uk/vtansi.htm
# https://en.wikipedia.org/wiki/ANSI_escape_code#Colors
# https://en.wikipedia.org/wiki/Adler-32

__version__ = '0.1.0'
__application__ = 'py-ntails'
default_config_file = '~/.py-ntails'
