# hexascene

Building blocks for a small 3D game: a scene graph that loads from a
chunked binary scene file, the matrix and quaternion math behind it, a
software stereo mixer with 2D and 3D panning, WAV and PNG loading, an
orbit ("trackball") camera for viewers, and a hexapod play mode that
ties them together.

It needs Python 3.10 or later, with `numpy` and `pillow`.

## Modules

| Module | What it holds |
| --- | --- |
| `hexascene.chunk` | Tagged chunks: a four-byte magic, a little-endian 32-bit size, then packed records (`read_chunk`, `read_chunk_bytes`, `write_chunk`, `write_chunk_bytes`, `ChunkError`). |
| `hexascene.vecmath` | Quaternions in (w, x, y, z) order and numpy matrices: `quat_multiply`, `quat_inverse`, `quat_to_mat3`, `quat_rotate`, `angle_axis`, `normalize`, `pad_mat4`, `infinite_perspective`. |
| `hexascene.scene` | `Scene`, `Transform`, `Drawable`, `Pipeline`, `TextureInfo`, `Camera`, `Light`, `LightType`, `SceneFormatError`. |
| `hexascene.wav` | `load_wav` reads a WAV file as 48 kHz mono float32 samples. |
| `hexascene.sound` | `Sample`, `PlayingSample`, `Ramp`, `Listener`, `Mixer` and the helpers `compute_pan_weights`, `compute_pan_from_listener_and_position`, `step_value_ramp`, `step_position_ramp`, `step_direction_ramp`. |
| `hexascene.png_io` | `load_png` and `save_png` for 8-bit RGBA images, with an `Origin` choosing which row comes first. |
| `hexascene.orbit` | `OrbitCamera` and the `select_prev` / `select_next` helpers that step through a sorted set of names. |
| `hexascene.data_path` | `data_path` builds a path in the directory of the running program. |
| `hexascene.play` | `PlayMode` and its `Button` input state. |

## Chunks

```python
import io
from hexascene.chunk import read_chunk, write_chunk

buffer = io.BytesIO()
write_chunk(buffer, "pts0", "<3f", [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)])
buffer.seek(0)
points = read_chunk(buffer, "pts0", "<3f")
```

The layout is a `struct` format string or a `struct.Struct`. A short
header or payload, a wrong magic, or a size that is not a whole number of
records raises `ChunkError`.

## Loading a scene

A scene file holds a string table (`str0`), the transform hierarchy
(`xfh0`), meshes (`msh0`), cameras (`cam0`) and lamps (`lmp0`).
Transforms must be stored parents-first. Malformed files raise
`SceneFormatError`.

```python
from hexascene.scene import Scene

def on_drawable(scene, transform, mesh_name):
    print("mesh", mesh_name, "at", transform.name)

scene = Scene.from_file("hexapod.scene", on_drawable)

for transform in scene.transforms:
    print(transform.name, transform.make_local_to_world())

camera = scene.cameras[0]
projection = camera.make_projection()
```

Transform matrices are 3x4 numpy arrays whose last column is the
translation; `pad_mat4` extends them to 4x4. Only perspective cameras are
kept, with their field of view converted to radians; lamps of an unknown
type are skipped. Both are reported through the `hexascene.scene` logger.

`Scene.copy()` (or `Scene.set(other)`, which also returns the mapping from
old to new transforms) makes an independent copy in which parents,
drawables, cameras and lights all point at the new transforms.
Subclasses can override `Scene.load_extra` to read further chunks after
the standard ones; the default logs a warning if data is left over.

## Mixing sound

The mixer produces stereo audio at 48 kHz in blocks of 1024 frames.
Sounds are played either in 2D, with a pan from -1 (left) to 1 (right),
or in 3D, panned and attenuated by their position relative to the
listener.

```python
from hexascene.sound import Mixer, Sample

mixer = Mixer()
sample = Sample.from_file("dusty-floor.wav")

loop = mixer.loop_3d(sample, 1.0, (0.0, 0.0, 0.0), 10.0)
loop.set_position((2.0, 0.0, 0.0), 1.0 / 60.0)
mixer.listener.set_position_right((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))

block = mixer.mix()   # float32 array of shape (1024, 2)
```

Volume, pan, position and radius changes are ramped over the given time
to avoid clicks. `set_pan` does nothing on a 3D sound, and
`set_position` / `set_half_volume_radius` do nothing on a 2D one.
`PlayingSample.stop` fades a sound out before it is removed, and
`Mixer.stop_all_samples` does that for every sound. Sounds that reach
the end of their data without looping are removed and marked `stopped`.

`Sample.from_file` accepts `.wav` files only; any other name raises
`ValueError`. A `Sample` can also be built directly from an array of
samples.

## Images

```python
from hexascene.png_io import Origin, load_png, save_png

size, pixels = load_png("texture.png", Origin.LOWER_LEFT)
save_png("copy.png", size, pixels, Origin.LOWER_LEFT)
```

`load_png` returns `((width, height), pixels)` with pixels of shape
`(height, width, 4)`, converting any colour type to RGBA. A missing file
raises `OSError`; a file that is not a readable PNG raises `ValueError`.
`save_png` raises `ValueError` when the data does not hold exactly
width × height RGBA pixels.

## Orbit camera

`OrbitCamera` keeps a target, radius, azimuth and elevation. `drag`
tumbles it (or pans the target, when `pan` is true), `begin_tumble`
reverses horizontal drags while the camera is upside-down, `dolly` zooms
with mouse-wheel steps within fixed limits, and `apply` writes the
resulting rotation and position into a scene `Transform`.

## Play mode

`PlayMode` takes a scene containing transforms named `Hip.FL`,
`UpperLeg.FL` and `LowerLeg.FL` and exactly one camera, and works on its
own copy of it. `handle_key` takes key names (`"a"`, `"d"`, `"w"`, `"s"`,
`"escape"`), `handle_mouse_button` grabs the mouse, and
`handle_mouse_motion` turns the camera while it is grabbed. `update`
wobbles the leg, moves the camera and the mixer's listener, and, when a
sample was given, keeps a looping 3D sound at `leg_tip_position()`.

## What this package does not do

There is no window, no input handling from a real device and no
drawing: `Pipeline` records what a renderer would need, but nothing here
talks to a graphics API. The mixer fills blocks of samples; sending them
to a sound card is left to the caller. Mesh data is not loaded —
`Scene.load` hands each mesh name to your `on_drawable` callback instead.
Only WAV audio is read. There are no command-line viewers.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.