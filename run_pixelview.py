#!/usr/bin/env python3
"""
PixelView launcher script.

Run this from the project root: ``python run_pixelview.py [file]``.
"""

import sys

if __name__ == '__main__':
    from pixelview.run_gui import main
    sys.exit(main())
