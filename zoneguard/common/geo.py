"""
Geographic utilities for ZoneGuard.

This module provides the stateless geometry engine: distance and
bearing, point containment, area/perimeter/centroid, bounding boxes
and intersection-area estimation between zone shapes.

The circle/polygon and polygon/polygon intersection areas are
vertex-fraction approximations, not exact clipping results.
"""

import math
from typing import List, Sequence, Union
from zoneguard.core.models import (
    BoundingBox,
    CircularGeometry,
    Coordinates,
    PolygonGeometry,
)

# 지구 반지름 (미터)
EARTH_RADIUS_M = 6_371_000.0

Geometry = Union[CircularGeometry, PolygonGeometry]


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (미터).

    Args:
        a: 첫 번째 지점
        b: 두 번째 지점

    Returns:
        두 지점 간의 대권 거리 (미터)
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(b.longitude - a.longitude)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    # 부동소수 오차로 1을 넘지 않도록
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def calculate_bearing(a: Coordinates, b: Coordinates) -> float:
    """
    a에서 b로 향하는 초기 방위각을 계산합니다.

    Returns:
        [0, 360) 범위의 방위각 (도)
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    y = math.sin(dlon) * math.cos(lat2_rad)
    x = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon))

    bearing = (math.degrees(math.atan2(y, x)) + 360) % 360
    # -0.0 등으로 360.0이 나오는 경우 방지
    return 0.0 if bearing >= 360 else bearing


def calculate_destination(start: Coordinates, distance_m: float, bearing_deg: float) -> Coordinates:
    """시작점에서 주어진 거리와 방위각만큼 이동한 지점을 반환합니다."""
    angular = distance_m / EARTH_RADIUS_M
    bearing = math.radians(bearing_deg)
    lat1 = math.radians(start.latitude)
    lon1 = math.radians(start.longitude)

    lat2 = math.asin(math.sin(lat1) * math.cos(angular) +
                     math.cos(lat1) * math.sin(angular) * math.cos(bearing))
    lon2 = lon1 + math.atan2(math.sin(bearing) * math.sin(angular) * math.cos(lat1),
                             math.cos(angular) - math.sin(lat1) * math.sin(lat2))

    lon_deg = (math.degrees(lon2) + 540) % 360 - 180
    return Coordinates(latitude=math.degrees(lat2), longitude=lon_deg)


def calculate_midpoint(a: Coordinates, b: Coordinates) -> Coordinates:
    """대권 경로상의 중간 지점을 반환합니다."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    lon1 = math.radians(a.longitude)
    dlon = math.radians(b.longitude - a.longitude)

    bx = math.cos(lat2) * math.cos(dlon)
    by = math.cos(lat2) * math.sin(dlon)
    lat3 = math.atan2(math.sin(lat1) + math.sin(lat2),
                      math.sqrt((math.cos(lat1) + bx) ** 2 + by ** 2))
    lon3 = lon1 + math.atan2(by, math.cos(lat1) + bx)

    lon_deg = (math.degrees(lon3) + 540) % 360 - 180
    return Coordinates(latitude=math.degrees(lat3), longitude=lon_deg)


def point_in_circle(point: Coordinates, circle: CircularGeometry) -> bool:
    """점이 원 내부(경계 포함)에 있는지 확인합니다."""
    return haversine_distance(point, circle.center) <= circle.radius


def point_in_polygon(point: Coordinates, polygon: PolygonGeometry) -> bool:
    """
    점이 폴리곤 내부에 있는지 Ray casting 알고리즘으로 확인합니다.

    경계선 위의 점은 어느 쪽으로든 판정될 수 있습니다.

    Args:
        point: 확인할 점
        polygon: 암묵적으로 닫힌 폴리곤

    Returns:
        점이 폴리곤 내부에 있으면 True
    """
    vertices = polygon.points
    if len(vertices) < 3:
        return False

    x, y = point.longitude, point.latitude
    inside = False

    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i].longitude, vertices[i].latitude
        xj, yj = vertices[j].longitude, vertices[j].latitude
        if (yi > y) != (yj > y):
            xinters = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < xinters:
                inside = not inside
        j = i

    return inside


def polygon_area(polygon: PolygonGeometry) -> float:
    """
    폴리곤 면적을 근사합니다 (제곱미터).

    평균 위도 기준 등장방형 투영 위에서 신발끈 공식을 적용하고
    지구 반지름 제곱으로 스케일합니다.
    """
    vertices = polygon.points
    n = len(vertices)
    if n < 3:
        return 0.0

    mean_lat = math.radians(sum(v.latitude for v in vertices) / n)
    lon_scale = math.cos(mean_lat)
    xs = [math.radians(v.longitude) * lon_scale for v in vertices]
    ys = [math.radians(v.latitude) for v in vertices]

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += xs[i] * ys[j] - xs[j] * ys[i]

    return abs(area) / 2 * EARTH_RADIUS_M * EARTH_RADIUS_M


def polygon_perimeter(polygon: PolygonGeometry) -> float:
    """닫는 변을 포함한 폴리곤 둘레 (미터)"""
    vertices = polygon.points
    n = len(vertices)
    return sum(haversine_distance(vertices[i], vertices[(i + 1) % n]) for i in range(n))


def polygon_centroid(polygon: PolygonGeometry) -> Coordinates:
    """
    폴리곤 무게중심을 계산합니다.

    Raises:
        ValueError: 면적이 0인 퇴화 폴리곤
    """
    vertices = polygon.points
    n = len(vertices)
    signed_area = 0.0
    c_lat = 0.0
    c_lon = 0.0

    for i in range(n):
        j = (i + 1) % n
        cross = (vertices[i].latitude * vertices[j].longitude -
                 vertices[j].latitude * vertices[i].longitude)
        signed_area += cross
        c_lat += (vertices[i].latitude + vertices[j].latitude) * cross
        c_lon += (vertices[i].longitude + vertices[j].longitude) * cross

    signed_area /= 2
    if abs(signed_area) < 1e-15:
        raise ValueError("degenerate polygon has no centroid")

    return Coordinates(latitude=c_lat / (6 * signed_area),
                       longitude=c_lon / (6 * signed_area))


def calculate_bounding_box(points: Sequence[Coordinates]) -> BoundingBox:
    """좌표 목록의 경계 상자를 계산합니다."""
    if not points:
        raise ValueError("bounding box of an empty point set")

    lats = [p.latitude for p in points]
    lons = [p.longitude for p in points]

    return BoundingBox(
        northeast=Coordinates(latitude=max(lats), longitude=max(lons)),
        southwest=Coordinates(latitude=min(lats), longitude=min(lons)),
    )


def circle_bounding_box(circle: CircularGeometry) -> BoundingBox:
    """원의 전체 범위를 포함하는 경계 상자 (경도 180도 경계는 처리하지 않음)"""
    lat = circle.center.latitude
    lon = circle.center.longitude
    dlat = math.degrees(circle.radius / EARTH_RADIUS_M)

    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-12:
        dlon = 180.0
    else:
        dlon = math.degrees(circle.radius / (EARTH_RADIUS_M * cos_lat))

    return BoundingBox(
        northeast=Coordinates(latitude=min(90.0, lat + dlat),
                              longitude=min(180.0, lon + dlon)),
        southwest=Coordinates(latitude=max(-90.0, lat - dlat),
                              longitude=max(-180.0, lon - dlon)),
    )


def bounding_boxes_intersect(a: BoundingBox, b: BoundingBox) -> bool:
    """두 경계 상자가 겹치는지 O(1)로 확인합니다."""
    return not (a.northeast.latitude < b.southwest.latitude or
                a.southwest.latitude > b.northeast.latitude or
                a.northeast.longitude < b.southwest.longitude or
                a.southwest.longitude > b.northeast.longitude)


def circle_area(circle: CircularGeometry) -> float:
    return math.pi * circle.radius ** 2


def circle_circle_intersection_area(c1: CircularGeometry, c2: CircularGeometry) -> float:
    """
    두 원의 교차 면적 (렌즈 공식).

    겹치지 않으면 0, 한 원이 다른 원을 포함하면 작은 원의 면적.
    """
    d = haversine_distance(c1.center, c2.center)
    r1 = c1.radius
    r2 = c2.radius

    if d >= r1 + r2:
        return 0.0

    if d <= abs(r1 - r2):
        smaller = min(r1, r2)
        return math.pi * smaller * smaller

    cos1 = max(-1.0, min(1.0, (d * d + r1 * r1 - r2 * r2) / (2 * d * r1)))
    cos2 = max(-1.0, min(1.0, (d * d + r2 * r2 - r1 * r1) / (2 * d * r2)))
    part1 = r1 * r1 * math.acos(cos1)
    part2 = r2 * r2 * math.acos(cos2)
    part3 = 0.5 * math.sqrt(max(0.0, (-d + r1 + r2) * (d + r1 - r2) *
                                     (d - r1 + r2) * (d + r1 + r2)))

    return part1 + part2 - part3


def circle_polygon_intersection_area(circle: CircularGeometry, polygon: PolygonGeometry) -> float:
    """원 내부 폴리곤 꼭짓점 비율 × min(폴리곤 면적, 원 면적) (근사)"""
    inside = sum(1 for p in polygon.points if point_in_circle(p, circle))
    ratio = inside / len(polygon.points)
    return min(polygon_area(polygon), circle_area(circle)) * ratio


def polygon_polygon_intersection_area(poly1: PolygonGeometry, poly2: PolygonGeometry) -> float:
    """서로의 내부에 있는 꼭짓점 비율 × min(면적1, 면적2) (근사)"""
    box1 = calculate_bounding_box(poly1.points)
    box2 = calculate_bounding_box(poly2.points)
    if not bounding_boxes_intersect(box1, box2):
        return 0.0

    inside = sum(1 for p in poly1.points if point_in_polygon(p, poly2))
    inside += sum(1 for p in poly2.points if point_in_polygon(p, poly1))
    ratio = inside / (len(poly1.points) + len(poly2.points))

    return min(polygon_area(poly1), polygon_area(poly2)) * ratio


# ---- 형상 태그 기반 디스패치 ----

def point_in_geometry(point: Coordinates, geometry: Geometry) -> bool:
    if isinstance(geometry, CircularGeometry):
        return point_in_circle(point, geometry)
    if isinstance(geometry, PolygonGeometry):
        return point_in_polygon(point, geometry)
    raise TypeError(f"unsupported geometry: {type(geometry).__name__}")


def geometry_area(geometry: Geometry) -> float:
    if isinstance(geometry, CircularGeometry):
        return circle_area(geometry)
    if isinstance(geometry, PolygonGeometry):
        return polygon_area(geometry)
    raise TypeError(f"unsupported geometry: {type(geometry).__name__}")


def geometry_perimeter(geometry: Geometry) -> float:
    if isinstance(geometry, CircularGeometry):
        return 2 * math.pi * geometry.radius
    if isinstance(geometry, PolygonGeometry):
        return polygon_perimeter(geometry)
    raise TypeError(f"unsupported geometry: {type(geometry).__name__}")


def geometry_bounding_box(geometry: Geometry) -> BoundingBox:
    if isinstance(geometry, CircularGeometry):
        return circle_bounding_box(geometry)
    if isinstance(geometry, PolygonGeometry):
        return calculate_bounding_box(geometry.points)
    raise TypeError(f"unsupported geometry: {type(geometry).__name__}")


def geometry_center(geometry: Geometry) -> Coordinates:
    """원은 중심, 폴리곤은 무게중심 (퇴화 시 경계 상자 중심)"""
    if isinstance(geometry, CircularGeometry):
        return geometry.center
    if isinstance(geometry, PolygonGeometry):
        try:
            return polygon_centroid(geometry)
        except ValueError:
            box = calculate_bounding_box(geometry.points)
            return Coordinates(
                latitude=(box.northeast.latitude + box.southwest.latitude) / 2,
                longitude=(box.northeast.longitude + box.southwest.longitude) / 2,
            )
    raise TypeError(f"unsupported geometry: {type(geometry).__name__}")


def geometry_intersection_area(g1: Geometry, g2: Geometry) -> float:
    """두 형상의 교차 면적 (조합별 공식 선택)"""
    if isinstance(g1, CircularGeometry) and isinstance(g2, CircularGeometry):
        return circle_circle_intersection_area(g1, g2)
    if isinstance(g1, CircularGeometry) and isinstance(g2, PolygonGeometry):
        return circle_polygon_intersection_area(g1, g2)
    if isinstance(g1, PolygonGeometry) and isinstance(g2, CircularGeometry):
        return circle_polygon_intersection_area(g2, g1)
    if isinstance(g1, PolygonGeometry) and isinstance(g2, PolygonGeometry):
        return polygon_polygon_intersection_area(g1, g2)
    raise TypeError(f"unsupported geometry pair: {type(g1).__name__}, {type(g2).__name__}")


def validate_coordinates(lat: float, lon: float) -> bool:
    """좌표가 유효한지 확인합니다."""
    return -90 <= lat <= 90 and -180 <= lon <= 180


def to_coordinates(points: Sequence[Sequence[float]]) -> List[Coordinates]:
    """(위도, 경도) 튜플 목록을 Coordinates 목록으로 변환합니다."""
    return [Coordinates(latitude=lat, longitude=lon) for lat, lon in points]
