"""Scene graph, transform math, software audio mixing, WAV/PNG loading and camera helpers for small 3D games."""

__version__ = "0.1.0"