#!/usr/bin/env python3
"""Run the giro statement analysis: ``python umsatz_giro.py -y 2023 -t moosach``."""

import sys

from giro_umsatz.umsatz import main

if __name__ == '__main__':
    sys.exit(main())
