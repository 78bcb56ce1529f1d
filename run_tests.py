#!/usr/bin/env python3
"""Run the geograd test suite.

Extra arguments are passed to pytest, e.g. ``python run_tests.py -k anchors``.
"""

import sys

import pytest


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    return pytest.main(['tests', '-v', '--tb=short', *argv])


if __name__ == '__main__':
    sys.exit(main())
