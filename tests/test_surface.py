from __future__ import annotations

import threading
import unittest

import numpy as np
import torch

from pnc_scatter.surface import CanvasSurface


class CanvasSurfaceTests(unittest.TestCase):
    def test_starts_filled_with_background(self) -> None:
        surface = CanvasSurface(4, 3, background=(1, 2, 3, 255))
        snap = surface.read_snapshot()
        self.assertEqual(tuple(snap.shape), (3, 4, 4))
        self.assertEqual(snap.dtype, torch.uint8)
        self.assertEqual(snap[2, 3].tolist(), [1, 2, 3, 255])
        self.assertEqual(surface.revision, 0)

    def test_commit_replaces_frame_and_bumps_revision(self) -> None:
        surface = CanvasSurface(4, 3)
        frame = np.full((3, 4, 4), 7, dtype=np.uint8)
        event = surface.commit(frame)
        self.assertEqual(event.revision, 1)
        self.assertEqual(event.offending_pixels, 0)
        self.assertTrue(np.array_equal(surface.to_numpy(), frame))
        frame[0, 0] = 0
        self.assertEqual(surface.to_numpy()[0, 0].tolist(), [7, 7, 7, 7])

    def test_shape_mismatch_raises(self) -> None:
        surface = CanvasSurface(4, 3)
        with self.assertRaises(ValueError):
            surface.commit(np.zeros((4, 3, 4), dtype=np.uint8))

    def test_invalid_float_pixels_are_marked_magenta(self) -> None:
        surface = CanvasSurface(2, 2)
        frame = np.zeros((2, 2, 4), dtype=np.float32)
        frame[0, 1, 0] = np.nan
        frame[1, 0, 2] = 300.0
        with self.assertLogs("pnc_scatter.surface", level="WARNING"):
            event = surface.commit(frame)
        self.assertEqual(event.offending_pixels, 2)
        out = surface.to_numpy()
        self.assertEqual(out[0, 1].tolist(), [255, 0, 255, 255])
        self.assertEqual(out[1, 0].tolist(), [255, 0, 255, 255])
        self.assertEqual(out[0, 0].tolist(), [0, 0, 0, 0])

    def test_released_surface_rejects_commits(self) -> None:
        surface = CanvasSurface(2, 2)
        surface.release()
        self.assertTrue(surface.released)
        with self.assertRaises(RuntimeError):
            surface.commit(np.zeros((2, 2, 4), dtype=np.uint8))

    def test_snapshots_are_safe_from_another_thread(self) -> None:
        surface = CanvasSurface(8, 8, background=(0, 0, 0, 0))
        snapshots: list[torch.Tensor] = []

        def reader() -> None:
            for _ in range(50):
                snapshots.append(surface.read_snapshot())

        thread = threading.Thread(target=reader)
        thread.start()
        for value in range(50):
            surface.commit(np.full((8, 8, 4), value, dtype=np.uint8))
        thread.join()
        for snap in snapshots:
            self.assertEqual(int(snap.min()), int(snap.max()))

    def test_rejects_non_positive_size(self) -> None:
        with self.assertRaises(ValueError):
            CanvasSurface(0, 10)


if __name__ == "__main__":
    unittest.main()
