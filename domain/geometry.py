from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from domain.models import BoxInfo, Point, Size

_DEGENERATE_SEGMENT_SQ = 1e-6


def distance_to_segment(point: Point, a: Point, b: Point) -> float:
    ab_x = b.x - a.x
    ab_y = b.y - a.y
    ap_x = point.x - a.x
    ap_y = point.y - a.y
    ab_len_sq = ab_x * ab_x + ab_y * ab_y
    if ab_len_sq <= _DEGENERATE_SEGMENT_SQ:
        return math.hypot(ap_x, ap_y)
    t = max(0.0, min(1.0, (ap_x * ab_x + ap_y * ab_y) / ab_len_sq))
    closest_x = a.x + ab_x * t
    closest_y = a.y + ab_y * t
    return math.hypot(point.x - closest_x, point.y - closest_y)


def circle_intersects_box(center: Point, radius: float, box: BoxInfo) -> bool:
    closest_x = max(box.x, min(center.x, box.x + box.size))
    closest_y = max(box.y, min(center.y, box.y + box.size))
    return math.hypot(center.x - closest_x, center.y - closest_y) <= radius


def circle_intersects_path(center: Point, radius: float, path: Sequence[Point]) -> bool:
    for index in range(1, len(path)):
        if distance_to_segment(center, path[index - 1], path[index]) <= radius:
            return True
    return False


def box_at_point(point: Point, boxes: Iterable[BoxInfo]) -> BoxInfo | None:
    for box in boxes:
        if box.contains(point):
            return box
    return None


def box_edge_point(box: BoxInfo, toward: Point) -> Point:
    center = box.center
    dx = toward.x - center.x
    dy = toward.y - center.y
    half = box.size / 2
    if dx == 0 and dy == 0:
        return Point(center.x + half, center.y)
    scale = half / max(abs(dx), abs(dy))
    return Point(center.x + dx * scale, center.y + dy * scale)


def append_path_point(points: list[Point], point: Point, min_distance: float) -> None:
    if not points:
        points.append(point)
        return
    if points[-1].distance_to(point) > min_distance:
        points.append(point)
    else:
        points[-1] = point


def replace_last_point(points: Sequence[Point], anchor: Point) -> list[Point]:
    if not points:
        return [anchor]
    return [*points[:-1], anchor]


def is_near_view_edge(point: Point, view_size: Size, margin: float) -> bool:
    return (
        point.x <= margin
        or point.y <= margin
        or point.x >= view_size.width - margin
        or point.y >= view_size.height - margin
    )


def nearest_edge_point(point: Point, view_size: Size) -> Point:
    distances = {
        "left": point.x,
        "right": view_size.width - point.x,
        "top": point.y,
        "bottom": view_size.height - point.y,
    }
    side = min(distances, key=lambda key: distances[key])
    if side == "left":
        return Point(0.0, point.y)
    if side == "right":
        return Point(view_size.width, point.y)
    if side == "top":
        return Point(point.x, 0.0)
    return Point(point.x, view_size.height)
