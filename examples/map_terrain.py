"""Render figures/map_terrain.pdf and figures/map_terrain.png.

Set STADIA_API_KEY (or pass --api-key) to use the Stadia Maps tile service.
"""

import sys

from vnmap.cli import main

if __name__ == "__main__":
    main(["terrain", *sys.argv[1:]])
