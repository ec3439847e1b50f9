"""Game mode: a wobbling hexapod leg with a sound at its tip and a free-flying camera."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .scene import Scene
from .sound import Mixer, PlayingSample, Sample
from .vecmath import angle_axis, normalize, quat_multiply

PLAYER_SPEED = 30.0
LEG_TIP = np.array([-1.26137, -11.861, 0.0, 1.0])
_SOUND_RAMP = 1.0 / 60.0
_Y_AXIS = (0.0, 1.0, 0.0)
_X_AXIS = (1.0, 0.0, 0.0)
_Z_AXIS = (0.0, 0.0, 1.0)


@dataclass
class Button:
    """Key state: presses since the last update and whether it is held."""

    downs: int = 0
    pressed: bool = False


class PlayMode:
    """Play state over a private copy of a scene holding the hexapod and one camera."""

    def __init__(self, scene: Scene, mixer: Optional[Mixer] = None,
                 sample: Optional[Sample] = None) -> None:
        self.scene = scene.copy()
        self.left = Button()
        self.right = Button()
        self.down = Button()
        self.up = Button()
        self.wobble = 0.0
        self.mouse_grabbed = False

        by_name = {}
        for transform in self.scene.transforms:
            by_name.setdefault(transform.name, transform)
        for attr, name, label in (
            ("hip", "Hip.FL", "Hip"),
            ("upper_leg", "UpperLeg.FL", "Upper leg"),
            ("lower_leg", "LowerLeg.FL", "Lower leg"),
        ):
            if name not in by_name:
                raise ValueError(f"{label} not found.")
            setattr(self, attr, by_name[name])

        self.hip_base_rotation = self.hip.rotation.copy()
        self.upper_leg_base_rotation = self.upper_leg.rotation.copy()
        self.lower_leg_base_rotation = self.lower_leg.rotation.copy()

        if len(self.scene.cameras) != 1:
            raise ValueError(
                "Expecting scene to have exactly one camera, but it has "
                f"{len(self.scene.cameras)}"
            )
        self.camera = self.scene.cameras[0]

        self.mixer = mixer if mixer is not None else Mixer()
        self.leg_tip_loop: Optional[PlayingSample] = None
        if sample is not None:
            self.leg_tip_loop = self.mixer.loop_3d(sample, 1.0, self.leg_tip_position(), 10.0)

    def _buttons(self) -> dict[str, Button]:
        return {"a": self.left, "d": self.right, "w": self.up, "s": self.down}

    def handle_key(self, key: str, down: bool) -> bool:
        """Handle a key press or release; returns True if the key was used."""
        key = key.lower()
        if down and key == "escape":
            self.mouse_grabbed = False
            return True
        button = self._buttons().get(key)
        if button is None:
            return False
        if down:
            button.downs += 1
            button.pressed = True
        else:
            button.pressed = False
        return True

    def handle_mouse_button(self) -> bool:
        """Grab the mouse on click; returns True if it was not already grabbed."""
        if not self.mouse_grabbed:
            self.mouse_grabbed = True
            return True
        return False

    def handle_mouse_motion(self, xrel: float, yrel: float, window_size) -> bool:
        """Rotate the camera by mouse motion while the mouse is grabbed."""
        if not self.mouse_grabbed:
            return False
        height = float(window_size[1])
        motion_x = xrel / height
        motion_y = -yrel / height
        transform = self.camera.transform
        rotation = quat_multiply(
            quat_multiply(transform.rotation,
                          angle_axis(-motion_x * self.camera.fovy, _Y_AXIS)),
            angle_axis(motion_y * self.camera.fovy, _X_AXIS),
        )
        transform.rotation = normalize(rotation)
        return True

    def update(self, elapsed: float) -> None:
        """Advance the leg animation, move the camera and the listener, reset press counts."""
        self.wobble += elapsed / 10.0
        self.wobble -= math.floor(self.wobble)

        turn = self.wobble * 2.0 * math.pi
        self.hip.rotation = quat_multiply(
            self.hip_base_rotation,
            angle_axis(math.radians(5.0 * math.sin(turn)), _Y_AXIS),
        )
        self.upper_leg.rotation = quat_multiply(
            self.upper_leg_base_rotation,
            angle_axis(math.radians(7.0 * math.sin(2.0 * turn)), _Z_AXIS),
        )
        self.lower_leg.rotation = quat_multiply(
            self.lower_leg_base_rotation,
            angle_axis(math.radians(10.0 * math.sin(3.0 * turn)), _Z_AXIS),
        )

        if self.leg_tip_loop is not None:
            self.leg_tip_loop.set_position(self.leg_tip_position(), _SOUND_RAMP)

        move = np.zeros(2)
        if self.left.pressed and not self.right.pressed:
            move[0] = -1.0
        if not self.left.pressed and self.right.pressed:
            move[0] = 1.0
        if self.down.pressed and not self.up.pressed:
            move[1] = -1.0
        if not self.down.pressed and self.up.pressed:
            move[1] = 1.0
        if move.any():
            move = normalize(move) * PLAYER_SPEED * elapsed

        transform = self.camera.transform
        frame = transform.make_local_to_parent()
        right = frame[:, 0]
        forward = -frame[:, 2]
        transform.position = transform.position + move[0] * right + move[1] * forward

        frame = transform.make_local_to_parent()
        self.mixer.listener.set_position_right(frame[:, 3], frame[:, 0], _SOUND_RAMP)

        for button in self._buttons().values():
            button.downs = 0

    def leg_tip_position(self) -> np.ndarray:
        """World-space position of the tip of the lower leg."""
        return self.lower_leg.make_local_to_world() @ LEG_TIP