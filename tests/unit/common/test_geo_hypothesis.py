"""
hypothesis를 활용한 geo 모듈 테스트

이 모듈은 거리, 포함 판정, 면적, 경계 상자 및 교차 면적 계산의
속성 기반 테스트와 예제 기반 테스트를 수행합니다.
"""

import math
import pytest
from hypothesis import given, assume, strategies as st
from hypothesis.strategies import composite

from zoneguard.common.geo import (
    EARTH_RADIUS_M,
    bounding_boxes_intersect,
    calculate_bearing,
    calculate_bounding_box,
    calculate_destination,
    calculate_midpoint,
    circle_area,
    circle_bounding_box,
    circle_circle_intersection_area,
    circle_polygon_intersection_area,
    geometry_area,
    geometry_center,
    geometry_intersection_area,
    geometry_perimeter,
    haversine_distance,
    point_in_circle,
    point_in_geometry,
    point_in_polygon,
    polygon_area,
    polygon_centroid,
    polygon_perimeter,
    polygon_polygon_intersection_area,
    to_coordinates,
    validate_coordinates,
)
from zoneguard.core.models import CircularGeometry, Coordinates, PolygonGeometry


latitudes = st.floats(min_value=-89.0, max_value=89.0, allow_nan=False)
longitudes = st.floats(min_value=-179.0, max_value=179.0, allow_nan=False)


@composite
def coordinates(draw):
    return Coordinates(latitude=draw(latitudes), longitude=draw(longitudes))


@composite
def circles(draw):
    center = draw(coordinates())
    radius = draw(st.floats(min_value=1.0, max_value=50_000.0))
    return CircularGeometry(center=center, radius=radius)


@composite
def convex_polygons(draw):
    """중심 주변에 각도순으로 배치한 볼록 다각형"""
    lat = draw(st.floats(min_value=-60.0, max_value=60.0))
    lon = draw(st.floats(min_value=-170.0, max_value=170.0))
    n = draw(st.integers(min_value=3, max_value=12))
    radius = draw(st.floats(min_value=0.01, max_value=1.0))
    points = []
    for i in range(n):
        angle = 2 * math.pi * i / n
        points.append(Coordinates(latitude=lat + radius * math.sin(angle),
                                  longitude=lon + radius * math.cos(angle)))
    return PolygonGeometry(points=points)


def square(south, west, size):
    return PolygonGeometry(points=to_coordinates([
        (south, west), (south, west + size), (south + size, west + size), (south + size, west),
    ]))


class TestDistance:
    """거리 및 방위각 테스트"""

    @given(a=coordinates(), b=coordinates())
    def test_distance_is_symmetric(self, a, b):
        """거리 대칭성 테스트"""
        assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a), abs=1e-6)

    @given(a=coordinates())
    def test_distance_to_self_is_zero(self, a):
        """자기 자신과의 거리 테스트"""
        assert haversine_distance(a, a) == 0.0

    @given(a=coordinates(), b=coordinates())
    def test_distance_bounded_by_half_circumference(self, a, b):
        d = haversine_distance(a, b)
        assert 0.0 <= d <= math.pi * EARTH_RADIUS_M + 1e-6

    def test_known_distance(self):
        """서울-부산 거리 테스트 (약 325km)"""
        seoul = Coordinates(latitude=37.5665, longitude=126.9780)
        busan = Coordinates(latitude=35.1796, longitude=129.0756)
        assert 320_000 < haversine_distance(seoul, busan) < 330_000

    @given(a=coordinates(), b=coordinates())
    def test_bearing_range(self, a, b):
        """방위각 범위 테스트"""
        bearing = calculate_bearing(a, b)
        assert 0.0 <= bearing < 360.0

    def test_bearing_due_east(self):
        a = Coordinates(latitude=0.0, longitude=0.0)
        b = Coordinates(latitude=0.0, longitude=1.0)
        assert calculate_bearing(a, b) == pytest.approx(90.0)

    @given(start=coordinates(),
           distance=st.floats(min_value=1.0, max_value=100_000.0),
           bearing=st.floats(min_value=0.0, max_value=359.9))
    def test_destination_distance_roundtrip(self, start, distance, bearing):
        """목적지 계산 후 거리 확인 테스트"""
        assume(abs(start.latitude) < 80)
        end = calculate_destination(start, distance, bearing)
        assert haversine_distance(start, end) == pytest.approx(distance, rel=1e-6, abs=1e-3)

    def test_midpoint_is_equidistant(self):
        a = Coordinates(latitude=37.0, longitude=127.0)
        b = Coordinates(latitude=38.0, longitude=128.0)
        mid = calculate_midpoint(a, b)
        assert haversine_distance(a, mid) == pytest.approx(haversine_distance(mid, b), rel=1e-6)


class TestContainment:
    """포함 판정 테스트"""

    @given(point=coordinates(), circle=circles())
    def test_point_in_circle_matches_distance(self, point, circle):
        """원 포함 판정과 거리 비교 일치 테스트"""
        expected = haversine_distance(point, circle.center) <= circle.radius
        assert point_in_circle(point, circle) == expected

    @given(polygon=convex_polygons())
    def test_centroid_inside_convex_polygon(self, polygon):
        """볼록 다각형의 무게중심은 내부 테스트"""
        centroid = polygon_centroid(polygon)
        assert point_in_polygon(centroid, polygon)

    def test_point_in_square(self):
        poly = square(37.0, 126.0, 1.0)
        assert point_in_polygon(Coordinates(latitude=37.5, longitude=126.5), poly)
        assert not point_in_polygon(Coordinates(latitude=38.5, longitude=126.5), poly)
        assert not point_in_polygon(Coordinates(latitude=37.5, longitude=125.5), poly)

    def test_point_in_concave_polygon(self):
        """오목 다각형 (L자형) 테스트"""
        poly = PolygonGeometry(points=to_coordinates([
            (0, 0), (0, 2), (1, 2), (1, 1), (2, 1), (2, 0),
        ]))
        assert point_in_polygon(Coordinates(latitude=0.5, longitude=0.5), poly)
        assert point_in_polygon(Coordinates(latitude=1.5, longitude=0.5), poly)
        # 오목한 부분
        assert not point_in_polygon(Coordinates(latitude=1.5, longitude=1.5), poly)

    def test_point_in_geometry_dispatch(self):
        center = Coordinates(latitude=28.6129, longitude=77.2295)
        circle = CircularGeometry(center=center, radius=500)
        assert point_in_geometry(Coordinates(latitude=28.6130, longitude=77.2296), circle)
        assert not point_in_geometry(Coordinates(latitude=28.7000, longitude=77.3000), circle)

    def test_point_in_geometry_rejects_unknown(self):
        with pytest.raises(TypeError):
            point_in_geometry(Coordinates(latitude=0, longitude=0), object())


class TestAreaAndShape:
    """면적, 둘레, 무게중심 테스트"""

    def test_square_area_near_equator(self):
        """적도 부근 0.01도 정사각형 면적 (약 1.236 km²)"""
        poly = square(0.0, 0.0, 0.01)
        side = math.radians(0.01) * EARTH_RADIUS_M
        assert polygon_area(poly) == pytest.approx(side * side, rel=1e-3)

    def test_area_shrinks_with_latitude(self):
        """같은 도 단위 크기라도 고위도에서 면적이 작음"""
        assert polygon_area(square(60.0, 10.0, 0.01)) < polygon_area(square(0.0, 10.0, 0.01))

    @given(polygon=convex_polygons())
    def test_area_independent_of_winding(self, polygon):
        reversed_poly = PolygonGeometry(points=list(reversed(polygon.points)))
        assert polygon_area(polygon) == pytest.approx(polygon_area(reversed_poly))

    def test_square_perimeter(self):
        poly = square(0.0, 0.0, 0.01)
        side = math.radians(0.01) * EARTH_RADIUS_M
        assert polygon_perimeter(poly) == pytest.approx(4 * side, rel=1e-3)

    def test_centroid_of_square(self):
        centroid = polygon_centroid(square(10.0, 20.0, 2.0))
        assert centroid.latitude == pytest.approx(11.0)
        assert centroid.longitude == pytest.approx(21.0)

    def test_degenerate_polygon_centroid_raises(self):
        """면적이 0인 폴리곤 무게중심 테스트"""
        line = PolygonGeometry(points=to_coordinates([(0, 0), (1, 1), (2, 2)]))
        with pytest.raises(ValueError):
            polygon_centroid(line)

    def test_geometry_center_falls_back_for_degenerate(self):
        line = PolygonGeometry(points=to_coordinates([(0, 0), (1, 1), (2, 2)]))
        center = geometry_center(line)
        assert center.latitude == pytest.approx(1.0)
        assert center.longitude == pytest.approx(1.0)

    def test_circle_measures(self):
        circle = CircularGeometry(center=Coordinates(latitude=0, longitude=0), radius=100)
        assert geometry_area(circle) == pytest.approx(math.pi * 10_000)
        assert geometry_perimeter(circle) == pytest.approx(2 * math.pi * 100)
        assert geometry_center(circle) == circle.center


class TestBoundingBoxes:
    """경계 상자 테스트"""

    @given(points=st.lists(coordinates(), min_size=1, max_size=20))
    def test_bounding_box_contains_all_points(self, points):
        """경계 상자는 모든 점을 포함"""
        box = calculate_bounding_box(points)
        for p in points:
            assert box.southwest.latitude <= p.latitude <= box.northeast.latitude
            assert box.southwest.longitude <= p.longitude <= box.northeast.longitude

    def test_empty_bounding_box_raises(self):
        with pytest.raises(ValueError):
            calculate_bounding_box([])

    @given(circle=circles(), bearing=st.floats(min_value=0.0, max_value=359.9))
    def test_circle_bounding_box_contains_extent(self, circle, bearing):
        """원 경계 상자는 원 둘레의 점을 포함"""
        assume(abs(circle.center.latitude) < 80)
        box = circle_bounding_box(circle)
        edge = calculate_destination(circle.center, circle.radius * 0.999, bearing)
        assume(abs(edge.longitude - circle.center.longitude) < 90)
        assert box.southwest.latitude <= edge.latitude <= box.northeast.latitude
        assert box.southwest.longitude <= edge.longitude <= box.northeast.longitude

    def test_boxes_intersect(self):
        a = calculate_bounding_box(to_coordinates([(0, 0), (1, 1)]))
        b = calculate_bounding_box(to_coordinates([(0.5, 0.5), (2, 2)]))
        c = calculate_bounding_box(to_coordinates([(5, 5), (6, 6)]))
        assert bounding_boxes_intersect(a, b)
        assert bounding_boxes_intersect(b, a)
        assert not bounding_boxes_intersect(a, c)


class TestIntersectionAreas:
    """교차 면적 테스트"""

    def _circle_pair(self, distance, r1, r2):
        c1 = CircularGeometry(center=Coordinates(latitude=28.6129, longitude=77.2295), radius=r1)
        c2 = CircularGeometry(center=calculate_destination(c1.center, distance, 90.0), radius=r2)
        return c1, c2

    def test_disjoint_circles(self):
        c1, c2 = self._circle_pair(1000, 100, 100)
        assert circle_circle_intersection_area(c1, c2) == 0.0

    def test_contained_circle_returns_smaller_area(self):
        c1, c2 = self._circle_pair(10, 500, 50)
        assert circle_circle_intersection_area(c1, c2) == pytest.approx(circle_area(c2))

    def test_lens_area(self):
        """중심 간 100m, 반경 80m/60m 렌즈 면적"""
        c1, c2 = self._circle_pair(100, 80, 60)
        area = circle_circle_intersection_area(c1, c2)
        assert 0 < area < circle_area(c2)
        assert area == pytest.approx(2656, rel=0.02)

    @given(distance=st.floats(min_value=0.0, max_value=500.0),
           r1=st.floats(min_value=1.0, max_value=300.0),
           r2=st.floats(min_value=1.0, max_value=300.0))
    def test_lens_area_symmetric_and_bounded(self, distance, r1, r2):
        """렌즈 면적 대칭성 및 상한 테스트"""
        c1, c2 = self._circle_pair(distance, r1, r2)
        forward = circle_circle_intersection_area(c1, c2)
        backward = circle_circle_intersection_area(c2, c1)
        assert forward == pytest.approx(backward, rel=1e-6, abs=1e-6)
        assert 0.0 <= forward <= min(circle_area(c1), circle_area(c2)) * (1 + 1e-9)

    def test_circle_polygon_vertex_fraction(self):
        """원 내부 꼭짓점 비율 근사"""
        poly = square(0.0, 0.0, 0.001)
        corner = poly.points[0]
        circle = CircularGeometry(center=corner, radius=10)
        # 꼭짓점 4개 중 1개만 원 내부
        expected = min(polygon_area(poly), circle_area(circle)) * 0.25
        assert circle_polygon_intersection_area(circle, poly) == pytest.approx(expected)

    def test_polygon_polygon_disjoint(self):
        assert polygon_polygon_intersection_area(square(0, 0, 1), square(5, 5, 1)) == 0.0

    def test_polygon_polygon_contained(self):
        outer = square(0, 0, 1)
        inner = square(0.25, 0.25, 0.5)
        # inner의 꼭짓점 4개 모두 outer 내부, outer 꼭짓점은 inner 외부
        expected = polygon_area(inner) * 4 / 8
        assert polygon_polygon_intersection_area(outer, inner) == pytest.approx(expected)

    def test_geometry_intersection_dispatch_is_order_independent(self):
        poly = square(0.0, 0.0, 0.001)
        circle = CircularGeometry(center=poly.points[0], radius=10)
        assert geometry_intersection_area(circle, poly) == geometry_intersection_area(poly, circle)


class TestCoordinateHelpers:
    """좌표 유틸리티 테스트"""

    @given(lat=st.floats(min_value=-90, max_value=90), lon=st.floats(min_value=-180, max_value=180))
    def test_valid_coordinates(self, lat, lon):
        assert validate_coordinates(lat, lon)

    def test_invalid_coordinates(self):
        assert not validate_coordinates(91, 0)
        assert not validate_coordinates(0, -181)

    def test_to_coordinates(self):
        coords = to_coordinates([(37.5, 127.0), (35.1, 129.0)])
        assert coords[0] == Coordinates(latitude=37.5, longitude=127.0)
        assert len(coords) == 2
