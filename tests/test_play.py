import math

import numpy as np
import pytest

from hexascene.play import PLAYER_SPEED, Button, PlayMode
from hexascene.scene import Camera, Scene, Transform
from hexascene.sound import Mixer, Sample


def make_scene(cameras=1, leg_names=("Hip.FL", "UpperLeg.FL", "LowerLeg.FL")):
    scene = Scene()
    parent = None
    for name in leg_names:
        t = Transform(name=name, parent=parent)
        scene.transforms.append(t)
        parent = t
    for i in range(cameras):
        cam_t = Transform(name=f"Camera{i}")
        scene.transforms.append(cam_t)
        scene.cameras.append(Camera(cam_t))
    return scene


def test_missing_hip_raises():
    with pytest.raises(ValueError, match="Hip not found"):
        PlayMode(make_scene(leg_names=("UpperLeg.FL", "LowerLeg.FL")))


def test_missing_lower_leg_raises():
    with pytest.raises(ValueError, match="Lower leg not found"):
        PlayMode(make_scene(leg_names=("Hip.FL", "UpperLeg.FL")))


def test_camera_count_must_be_one():
    with pytest.raises(ValueError, match="exactly one camera"):
        PlayMode(make_scene(cameras=2))


def test_scene_is_copied():
    original = make_scene()
    mode = PlayMode(original)
    mode.camera.transform.position = np.array([5.0, 5.0, 5.0])
    assert np.allclose(original.cameras[0].transform.position, 0.0)
    assert mode.camera.transform is not original.cameras[0].transform


def test_key_press_and_release():
    mode = PlayMode(make_scene())
    assert mode.handle_key("a", True) is True
    assert mode.left == Button(downs=1, pressed=True)
    assert mode.handle_key("a", False) is True
    assert mode.left.pressed is False
    assert mode.left.downs == 1


def test_unknown_key_not_handled():
    mode = PlayMode(make_scene())
    assert mode.handle_key("q", True) is False
    assert mode.handle_key("escape", False) is False


def test_update_resets_downs_but_keeps_pressed():
    mode = PlayMode(make_scene())
    mode.handle_key("w", True)
    mode.update(0.0)
    assert mode.up.downs == 0
    assert mode.up.pressed is True


def test_forward_moves_along_negative_z():
    mode = PlayMode(make_scene())
    mode.handle_key("w", True)
    mode.update(0.1)
    pos = mode.camera.transform.position
    assert pos[2] == pytest.approx(-PLAYER_SPEED * 0.1)
    assert pos[0] == pytest.approx(0.0)


def test_diagonal_not_faster():
    mode = PlayMode(make_scene())
    mode.handle_key("w", True)
    mode.handle_key("d", True)
    mode.update(0.1)
    pos = mode.camera.transform.position
    assert np.linalg.norm(pos) == pytest.approx(PLAYER_SPEED * 0.1)
    assert pos[0] > 0.0


def test_opposite_keys_cancel():
    mode = PlayMode(make_scene())
    mode.handle_key("a", True)
    mode.handle_key("d", True)
    mode.update(0.1)
    assert np.allclose(mode.camera.transform.position, 0.0)


def test_mouse_motion_requires_grab():
    mode = PlayMode(make_scene())
    before = mode.camera.transform.rotation.copy()
    assert mode.handle_mouse_motion(10, 5, (800, 600)) is False
    assert np.allclose(mode.camera.transform.rotation, before)


def test_grab_then_motion_rotates_unit_quaternion():
    mode = PlayMode(make_scene())
    assert mode.handle_mouse_button() is True
    assert mode.handle_mouse_button() is False
    assert mode.handle_mouse_motion(40, -20, (800, 600)) is True
    rot = mode.camera.transform.rotation
    assert np.linalg.norm(rot) == pytest.approx(1.0)
    assert not np.allclose(rot, [1.0, 0.0, 0.0, 0.0])


def test_escape_releases_grab():
    mode = PlayMode(make_scene())
    mode.handle_mouse_button()
    assert mode.handle_key("escape", True) is True
    assert mode.mouse_grabbed is False


def test_leg_tip_position_with_identity_transforms():
    mode = PlayMode(make_scene())
    assert np.allclose(mode.leg_tip_position(), [-1.26137, -11.861, 0.0])


def test_zero_wobble_keeps_base_rotations():
    mode = PlayMode(make_scene())
    mode.update(0.0)
    assert np.allclose(mode.hip.rotation, mode.hip_base_rotation)
    assert np.allclose(mode.lower_leg.rotation, mode.lower_leg_base_rotation)


def test_wobble_stays_in_unit_interval():
    mode = PlayMode(make_scene())
    for _ in range(30):
        mode.update(0.7)
        assert 0.0 <= mode.wobble < 1.0


def test_wobble_moves_leg_tip():
    mode = PlayMode(make_scene())
    start = mode.leg_tip_position()
    mode.update(0.5)
    moved = mode.leg_tip_position()
    assert not np.allclose(start, moved)
    assert np.linalg.norm(moved) == pytest.approx(np.linalg.norm(start))


def test_sound_loop_follows_leg_tip_and_listener_follows_camera():
    mixer = Mixer()
    mode = PlayMode(make_scene(), mixer=mixer, sample=Sample(np.zeros(16)))
    assert mixer.playing_samples == [mode.leg_tip_loop]
    assert mode.leg_tip_loop.loop is True
    mode.handle_key("s", True)
    mode.update(0.2)
    assert np.allclose(mode.leg_tip_loop.position.target, mode.leg_tip_position())
    assert np.allclose(mixer.listener.position.target, mode.camera.transform.position)
    assert np.allclose(mixer.listener.right.target, [1.0, 0.0, 0.0])


def test_no_sample_means_no_loop():
    mixer = Mixer()
    mode = PlayMode(make_scene(), mixer=mixer)
    mode.update(0.1)
    assert mode.leg_tip_loop is None
    assert mixer.playing_samples == []
    assert math.isclose(mode.wobble, 0.01)