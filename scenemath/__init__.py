"""Linear algebra and geometry for a small interactive 3D scene viewer.

A Python project exposing the math behind the viewer: fixed-size float32
matrices, plane projection, clockwise point ordering and the data of the
drawable primitives.
"""

from __future__ import annotations

__version__ = "0.1.0"
