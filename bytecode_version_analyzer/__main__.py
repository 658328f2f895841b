#!/usr/bin/env python3
"""
Entry point for running bytecode_version_analyzer as a module.
"""

import sys

from bytecode_version_analyzer import main

if __name__ == '__main__':
    sys.exit(main())
