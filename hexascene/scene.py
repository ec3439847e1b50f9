"""Hierarchical scenes of transforms with attached drawables, cameras and lights."""

from __future__ import annotations

import dataclasses
import logging
import math
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, Optional

import numpy as np

from .chunk import read_chunk, read_chunk_bytes
from .vecmath import (
    infinite_perspective,
    pad_mat4,
    quat_inverse,
    quat_to_mat3,
)

logger = logging.getLogger(__name__)

GL_TRIANGLES = 0x0004
GL_TEXTURE_2D = 0x0DE1
TEXTURE_COUNT = 4
NO_INDEX = 0xFFFFFFFF
_PI = 3.1415926

_HIERARCHY_ENTRY = struct.Struct("<III3f4f3f")
_MESH_ENTRY = struct.Struct("<III")
_CAMERA_ENTRY = struct.Struct("<I4sfff")
_LIGHT_ENTRY = struct.Struct("<Ic3Bfff")


class SceneFormatError(ValueError):
    """Raised when a scene file is structurally invalid."""


def _array(v) -> np.ndarray:
    return np.array(v, dtype=float)


@dataclass(eq=False)
class Transform:
    """Position, rotation (w, x, y, z) and scale, optionally relative to a parent."""

    name: str = ""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0]))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    parent: Optional[Transform] = None

    def __post_init__(self) -> None:
        self.position = _array(self.position)
        self.rotation = _array(self.rotation)
        self.scale = _array(self.scale)

    def make_local_to_parent(self) -> np.ndarray:
        """3x4 matrix: translate * rotate * scale."""
        rot = quat_to_mat3(self.rotation) * _array(self.scale)[None, :]
        return np.hstack([rot, _array(self.position)[:, None]])

    def make_parent_to_local(self) -> np.ndarray:
        """3x4 inverse of make_local_to_parent; zero scales give a degenerate matrix."""
        inv_scale = np.array([0.0 if s == 0.0 else 1.0 / s for s in _array(self.scale)])
        inv_rot = quat_to_mat3(quat_inverse(self.rotation)) * inv_scale[:, None]
        return np.hstack([inv_rot, (inv_rot @ -_array(self.position))[:, None]])

    def make_local_to_world(self) -> np.ndarray:
        if self.parent is None:
            return self.make_local_to_parent()
        return self.parent.make_local_to_world() @ pad_mat4(self.make_local_to_parent())

    def make_world_to_local(self) -> np.ndarray:
        if self.parent is None:
            return self.make_parent_to_local()
        return self.make_parent_to_local() @ pad_mat4(self.parent.make_world_to_local())


@dataclass
class TextureInfo:
    texture: int = 0
    target: int = GL_TEXTURE_2D


@dataclass
class Pipeline:
    """Everything needed to draw an object; unset uniform locations are None."""

    program: int = 0
    vao: int = 0
    type: int = GL_TRIANGLES
    start: int = 0
    count: int = 0
    object_to_clip: Optional[int] = None
    object_to_light: Optional[int] = None
    normal_to_light: Optional[int] = None
    set_uniforms: Optional[Callable[[], None]] = None
    textures: list[TextureInfo] = field(
        default_factory=lambda: [TextureInfo() for _ in range(TEXTURE_COUNT)]
    )

    def _copy(self) -> Pipeline:
        return dataclasses.replace(
            self, textures=[dataclasses.replace(t) for t in self.textures]
        )


@dataclass(eq=False)
class Drawable:
    transform: Transform
    pipeline: Pipeline = field(default_factory=Pipeline)


@dataclass(eq=False)
class Camera:
    """Perspective camera looking along its transform's -z axis."""

    transform: Transform
    fovy: float = math.radians(60.0)
    aspect: float = 1.0
    near: float = 0.01

    def make_projection(self) -> np.ndarray:
        return infinite_perspective(self.fovy, self.aspect, self.near)


class LightType(Enum):
    POINT = "p"
    HEMISPHERE = "h"
    SPOT = "s"
    DIRECTIONAL = "d"


@dataclass(eq=False)
class Light:
    transform: Transform
    type: LightType = LightType.POINT
    energy: np.ndarray = field(default_factory=lambda: np.ones(3))
    spot_fov: float = math.radians(45.0)


OnDrawable = Callable[["Scene", Transform, str], None]


def _slice_name(names: bytes, begin: int, end: int) -> Optional[str]:
    if begin <= end <= len(names):
        return names[begin:end].decode("utf-8", errors="replace")
    return None


@dataclass(eq=False)
class Scene:
    transforms: list[Transform] = field(default_factory=list)
    drawables: list[Drawable] = field(default_factory=list)
    cameras: list[Camera] = field(default_factory=list)
    lights: list[Light] = field(default_factory=list)

    @classmethod
    def from_file(cls, filename, on_drawable: Optional[OnDrawable] = None) -> Scene:
        """Create a scene and load a scene file into it."""
        scene = cls()
        scene.load(filename, on_drawable)
        return scene

    def load(self, filename, on_drawable: Optional[OnDrawable] = None) -> None:
        """Add transforms, cameras and lights from a scene file; meshes go to on_drawable."""
        with open(filename, "rb") as stream:
            names = read_chunk_bytes(stream, "str0")
            hierarchy = read_chunk(stream, "xfh0", _HIERARCHY_ENTRY)
            meshes = read_chunk(stream, "msh0", _MESH_ENTRY)
            cameras = read_chunk(stream, "cam0", _CAMERA_ENTRY)
            lights = read_chunk(stream, "lmp0", _LIGHT_ENTRY)

            loaded: list[Transform] = []
            for parent, name_begin, name_end, *values in hierarchy:
                transform = Transform()
                self.transforms.append(transform)
                if parent != NO_INDEX:
                    if parent >= len(loaded):
                        raise SceneFormatError(
                            f"scene file '{filename}' did not contain transforms in topological-sort order."
                        )
                    transform.parent = loaded[parent]
                name = _slice_name(names, name_begin, name_end)
                if name is None:
                    raise SceneFormatError(
                        f"scene file '{filename}' contains hierarchy entry with invalid name indices"
                    )
                transform.name = name
                transform.position = _array(values[0:3])
                qx, qy, qz, qw = values[3:7]
                transform.rotation = _array([qw, qx, qy, qz])
                transform.scale = _array(values[7:10])
                loaded.append(transform)

            for index, name_begin, name_end in meshes:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{filename}' contains mesh entry with invalid transform index ({index})"
                    )
                name = _slice_name(names, name_begin, name_end)
                if name is None:
                    raise SceneFormatError(
                        f"scene file '{filename}' contains mesh entry with invalid name indices"
                    )
                if on_drawable is not None:
                    on_drawable(self, loaded[index], name)

            for index, kind, data, clip_near, _clip_far in cameras:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{filename}' contains camera entry with invalid transform index ({index})"
                    )
                kind_text = kind.decode("latin-1")
                if kind_text != "pers":
                    logger.info("Ignoring non-perspective camera (%s) stored in file.", kind_text)
                    continue
                self.cameras.append(
                    Camera(loaded[index], fovy=data / 180.0 * _PI, near=clip_near)
                )

            for index, kind, r, g, b, energy, _distance, fov in lights:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{filename}' contains lamp entry with invalid transform index ({index})"
                    )
                kind_text = kind.decode("latin-1")
                try:
                    light_type = LightType(kind_text)
                except ValueError:
                    logger.info("Ignoring unrecognized lamp type (%s) stored in file.", kind_text)
                    continue
                self.lights.append(
                    Light(
                        loaded[index],
                        type=light_type,
                        energy=_array([r, g, b]) / 255.0 * energy,
                        spot_fov=fov / 180.0 * _PI,
                    )
                )

            self.load_extra(stream, names, loaded)

    def load_extra(self, stream: BinaryIO, names: bytes, transforms: list[Transform]) -> None:
        """Read chunks after the standard ones; the default reads none and warns on trailing data.

        Subclasses that read further chunks may call this afterwards to keep the warning.
        """
        if stream.read(1):
            filename = getattr(stream, "name", "<stream>")
            logger.warning("trailing data in scene file '%s'", filename)

    def set(self, other: Scene) -> dict[Optional[Transform], Optional[Transform]]:
        """Replace contents with a copy of other; returns the old-to-new transform map."""
        mapping: dict[Optional[Transform], Optional[Transform]] = {None: None}
        transforms = []
        for t in other.transforms:
            copy = Transform(
                name=t.name,
                position=t.position.copy(),
                rotation=t.rotation.copy(),
                scale=t.scale.copy(),
                parent=t.parent,
            )
            mapping[t] = copy
            transforms.append(copy)
        for t in transforms:
            t.parent = mapping[t.parent]

        drawables = [Drawable(mapping[d.transform], d.pipeline._copy()) for d in other.drawables]
        cameras = [dataclasses.replace(c, transform=mapping[c.transform]) for c in other.cameras]
        lights = [
            dataclasses.replace(l, transform=mapping[l.transform], energy=l.energy.copy())
            for l in other.lights
        ]
        self.transforms = transforms
        self.drawables = drawables
        self.cameras = cameras
        self.lights = lights
        return mapping

    def copy(self) -> Scene:
        """Deep copy with all transform references remapped."""
        scene = type(self)()
        scene.set(self)
        return scene

    __copy__ = copy