"""Devstrip - Design trimmed developable surfaces.

Devstrip turns a 2D trim contour drawn on the flattened ("unfolded") layout of a
cylindrical or conical sheet into the matching curved 3D triangle mesh. The
surface itself is described by a base curve and a height, so arbitrary
non-circular profiles unfold and fold back correctly.

Example:
    $ devstrip trim lampshade.json

This will create lampshade.obj with the trimmed, curved strip mesh.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
