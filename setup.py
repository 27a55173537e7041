#!/usr/bin/env python
"""Setuptools distribution file."""
import os
from setuptools import setup


def _get_here(fname):
    return os.path.join(os.path.dirname(__file__), fname)


def _get_long_description(fname, encoding='utf8'):
    with open(fname, 'r', encoding=encoding) as fin:
        return fin.read()


setup(name='telnetstream',
      version='1.0.0',
      license='ISC',
      author='Jeff Quast',
      description="Blocking Python 3 Telnet client protocol library",
      long_description=_get_long_description(fname=_get_here('README.rst')),
      packages=['telnetstream', 'telnetstream.tests'],
      package_data={'': ['README.rst'], },
      python_requires='>=3.8',
      extras_require={
          'test': ['pytest', 'pexpect'],
      },
      entry_points={
         'console_scripts': [
             'telnetstream-client = telnetstream.client:main'
         ]},
      author_email='contact@jeffquast.com',
      platforms='any',
      zip_safe=True,
      keywords=', '.join(('telnet', 'client', 'naws', 'ttype', 'tspeed',
                          'api', 'library', 'blocking')),
      classifiers=['License :: OSI Approved :: ISC License (ISCL)',
                   'Programming Language :: Python :: 3',
                   'Intended Audience :: Developers',
                   'Development Status :: 4 - Beta',
                   'Topic :: System :: Networking',
                   'Topic :: Terminals :: Telnet',
                   'Topic :: Internet',
                   ],
      )
