from __future__ import annotations

from .errors import DegenerateSourceDimensions


def plan_resolution(cur_w: int, cur_h: int, req_w: int, req_h: int) -> tuple[int, int]:
    """
    Returns the (width, height) a resize should force.

    - both requested 0: the current size, nothing to resize.
    - one requested 0: that side follows the source aspect ratio, truncated
      toward zero.
    - both requested: exactly the request, even if it distorts.
    """
    for name, value in (("current width", cur_w), ("current height", cur_h), ("width", req_w), ("height", req_h)):
        if value < 0:
            raise ValueError(f"{name} must be >= 0 (got {value})")

    if req_w == 0 and req_h == 0:
        return (cur_w, cur_h)
    if req_w and req_h:
        return (req_w, req_h)

    if cur_w == 0 or cur_h == 0:
        raise DegenerateSourceDimensions(cur_w, cur_h)

    if req_w == 0:
        return (cur_w * req_h // cur_h, req_h)
    return (req_w, cur_h * req_w // cur_w)


def resize_geometry(width: int, height: int) -> str:
    # `!` forces the exact size instead of fitting inside the box.
    return f"{width}x{height}!"
