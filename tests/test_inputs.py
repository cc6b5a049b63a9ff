import numpy as np
import pytest

from vehicle_tracker.inputs.video_input import VideoInput


def test_video_input_does_not_open_until_started():
    vi = VideoInput("/tmp/does-not-exist/video.mp4")
    assert str(vi.path) == "/tmp/does-not-exist/video.mp4"
    assert vi.cap is None
    assert vi.meta is None
    assert vi.fps == 30.0
    vi.stop()  # no-op before start


def test_missing_video_raises_on_start():
    with pytest.raises(FileNotFoundError):
        with VideoInput("/tmp/does-not-exist/video.mp4"):
            pass


def test_frames_require_start():
    vi = VideoInput("/tmp/does-not-exist/video.mp4")
    with pytest.raises(RuntimeError, match="not started"):
        list(vi.frames())


def test_reads_frames_and_releases_capture(tmp_path):
    import cv2

    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    assert writer.isOpened()
    for i in range(3):
        writer.write(np.full((48, 64, 3), 40 * i, dtype=np.uint8))
    writer.release()

    with VideoInput(path) as vin:
        assert vin.meta.width == 64
        assert vin.meta.height == 48
        packets = list(vin.frames())
    assert [idx for idx, _ in packets] == [1, 2, 3]
    assert packets[0][1].frame.shape == (48, 64, 3)
    assert vin.cap is None
