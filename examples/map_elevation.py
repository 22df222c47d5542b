"""Render figures/map_elevation.pdf and figures/map_elevation.png.

Lower --zoom if the elevation request is too large for available memory.
"""

import sys

from vnmap.cli import main

if __name__ == "__main__":
    main(["elevation", *sys.argv[1:]])
