import os
import sys
from setuptools import setup

try:
    src_dir = os.path.realpath(os.path.join(__file__, '..'))
    sys.path.append(src_dir)
    import ntails

    version = ntails.__version__
    description = ntails.__doc__.strip()
except ImportError:
    ntails = None
    version = '0.0.0'
    description = 'Tail (and follow) multiple files, labeling each line ' \
                  'with a colored filename.'

test_requires = [
    'pytest > 3.1',
]

setup(
    name='py-ntails',
    author='Peter Cooner',
    author_email='petercooner@gmail.com',
    description=description,
    version=version,
    license='GPL 3.0',
    platforms='any',
    python_requires='>=3.10',
    packages=[
        'ntails',
    ],
    entry_points={
        'console_scripts': [
            'ntails = ntails.main:main',
        ]
    },
    install_requires=[
        'colorama >= 0.4',
        'PyYAML >= 5.1',
        'watchdog >= 2.0',
    ],
    extras_require={
        'test': test_requires
    },
    setup_requires=[],
)
