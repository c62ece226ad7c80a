#! /usr/bin/env python

import os.path
import sys

from setuptools import setup

version = "1.0.0"

if (not os.path.exists(os.path.join("xmppchat","version.py"))
                                    or "make_version" in sys.argv):
    with open("xmppchat/version.py", "w") as version_py:
        version_py.write("# pylint: disable=C0111,C0103\n")
        version_py.write("version = {0!r}\n".format(version))
    if "make_version" in sys.argv:
        sys.exit(0)
else:
    exec(open(os.path.join("xmppchat", "version.py")).read())

setup(
    name =      'xmppchat',
    version =   version,
    description =   'Minimal interactive XMPP chat client',
    classifiers = [
            "Development Status :: 3 - Alpha",
            "Environment :: Console",
            "Intended Audience :: End Users/Desktop",
            "License :: OSI Approved :: GNU Library or Lesser General Public License (LGPL)",
            "Operating System :: POSIX",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Topic :: Communications",
            "Topic :: Communications :: Chat",
            "Topic :: Internet",
        ],
    license =   'LGPL',
    python_requires = '>=3.8',
    install_requires = [
        'slixmpp >=1.8.0',
        'dnspython >=2.0.0',
    ],
    extras_require = {
        'test': ['pytest'],
    },
    packages = [
        'xmppchat',
        'xmppchat.test',
    ],
    entry_points = {
        'console_scripts': [
            'xmppchat = xmppchat.main:run',
        ],
    },
    test_suite = "xmppchat.test.discover",
)
