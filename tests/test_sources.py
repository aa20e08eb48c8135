import cv2
import numpy as np
import pytest
from PIL import Image

from glyphrain.cli import main
from glyphrain.sources import CameraSource, StillSource


class FakeCapture:
    """Stands in for cv2.VideoCapture, serving queued BGR frames."""

    opened = True
    frames: list = []

    def __init__(self, device):
        self.device = device
        self.props = {}
        self.released = False
        self.queue = list(self.frames)

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if not self.queue:
            return False, None
        return True, self.queue.pop(0)

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    blue = np.zeros((48, 64, 3), dtype=np.uint8)
    blue[..., 0] = 255  # blue in BGR order
    monkeypatch.setattr(FakeCapture, "opened", True)
    monkeypatch.setattr(FakeCapture, "frames", [blue])
    monkeypatch.setattr(cv2, "VideoCapture", FakeCapture)
    return FakeCapture


def test_camera_requests_capture_size(fake_capture):
    camera = CameraSource(2, width=1280, height=720, fps=30)
    assert camera.capture.device == 2
    assert camera.capture.props[cv2.CAP_PROP_FRAME_WIDTH] == 1280
    assert camera.capture.props[cv2.CAP_PROP_FRAME_HEIGHT] == 720
    assert camera.capture.props[cv2.CAP_PROP_FPS] == 30


def test_camera_not_ready_until_first_frame(fake_capture):
    camera = CameraSource(0)
    assert not camera.is_ready()
    assert camera.update()
    assert camera.is_ready()
    assert (camera.width, camera.height) == (64, 48)


def test_camera_keeps_last_frame_when_read_fails(fake_capture):
    camera = CameraSource(0)
    camera.update()
    assert not camera.update()
    assert camera.is_ready()


def test_camera_draw_converts_to_rgb_in_place(fake_capture):
    camera = CameraSource(0)
    camera.update()
    dest = np.zeros((4, 8, 3), dtype=np.uint8)
    camera.draw(dest)
    assert (dest == (0, 0, 255)).all()


def test_camera_release_drops_frame(fake_capture):
    camera = CameraSource(0)
    camera.update()
    camera.release()
    assert camera.capture.released
    assert not camera.is_ready()


def test_unopenable_camera_raises(fake_capture, monkeypatch):
    monkeypatch.setattr(FakeCapture, "opened", False)
    with pytest.raises(RuntimeError, match="Could not open camera device 3"):
        CameraSource(3)


def test_cli_exits_when_camera_cannot_open(fake_capture, monkeypatch, capsys):
    monkeypatch.setattr(FakeCapture, "opened", False)
    assert main(["--device", "3", "--frames", "1"]) == 1
    assert "Could not open camera device 3" in capsys.readouterr().err


def test_still_source_from_array():
    source = StillSource(np.full((10, 20, 3), 77, dtype=np.uint8))
    assert (source.width, source.height) == (20, 10)
    assert source.is_ready()
    dest = np.zeros((2, 4, 3), dtype=np.uint8)
    source.draw(dest)
    assert (dest == 77).all()


def test_still_source_from_path(tmp_path):
    path = tmp_path / "frame.png"
    Image.new("L", (30, 20), 200).save(path)
    source = StillSource(path)
    dest = np.zeros((2, 3, 3), dtype=np.uint8)
    source.draw(dest)
    assert (dest == 200).all()
