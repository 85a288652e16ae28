from .frames import FrameData, coerce_frame, coerce_points, coerce_pose

__all__ = [
    "FrameData",
    "coerce_frame",
    "coerce_points",
    "coerce_pose",
]
