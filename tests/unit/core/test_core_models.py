"""
Core 모델 및 필터 단위 테스트

이 모듈은 zone 모델의 검증 규칙과 zone 필터 매칭을 테스트합니다.
"""

import pytest
from pydantic import ValidationError

from zoneguard.common.geo import geometry_bounding_box
from zoneguard.core.errors import QueueTaskFailure, ZoneNotFoundError
from zoneguard.core.filters import apply_filter, matches_filter
from zoneguard.core.models import (
    BoundingBox,
    CircularGeometry,
    Coordinates,
    PolygonGeometry,
    RiskLevel,
    Zone,
    ZoneFilter,
    ZoneStatus,
    ZoneType,
)


def make_zone(zone_id="zone_1", name="Red Fort", lat=28.656, lon=77.241, radius=300.0, **extra):
    geometry = CircularGeometry(center=Coordinates(latitude=lat, longitude=lon), radius=radius)
    return Zone(id=zone_id, name=name, geometry=geometry,
                bounding_box=geometry_bounding_box(geometry), **extra)


class TestGeometryModels:
    """형상 모델 검증 테스트"""

    def test_coordinates_are_immutable(self):
        c = Coordinates(latitude=1.0, longitude=2.0)
        with pytest.raises(ValidationError):
            c.latitude = 3.0

    @pytest.mark.parametrize("lat,lon", [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_coordinates_out_of_range(self, lat, lon):
        with pytest.raises(ValidationError):
            Coordinates(latitude=lat, longitude=lon)

    @pytest.mark.parametrize("radius", [0, -5, 50_001])
    def test_circle_radius_bounds(self, radius):
        """반경 범위 검증 테스트"""
        with pytest.raises(ValidationError):
            CircularGeometry(center=Coordinates(latitude=0, longitude=0), radius=radius)

    def test_circle_radius_upper_bound_inclusive(self):
        circle = CircularGeometry(center=Coordinates(latitude=0, longitude=0), radius=50_000)
        assert circle.radius == 50_000

    def test_polygon_point_count_bounds(self):
        """폴리곤 꼭짓점 수 검증 테스트"""
        point = Coordinates(latitude=0, longitude=0)
        with pytest.raises(ValidationError):
            PolygonGeometry(points=[point, point])
        with pytest.raises(ValidationError):
            PolygonGeometry(points=[point] * 1001)
        assert len(PolygonGeometry(points=[point] * 3).points) == 3

    def test_geometry_discriminator(self):
        """형상 태그 기반 파싱 테스트"""
        zone = Zone.model_validate({
            "id": "z",
            "name": "n",
            "geometry": {"kind": "polygon",
                         "points": [{"latitude": 0, "longitude": 0},
                                    {"latitude": 0, "longitude": 1},
                                    {"latitude": 1, "longitude": 1}]},
            "bounding_box": {"northeast": {"latitude": 1, "longitude": 1},
                             "southwest": {"latitude": 0, "longitude": 0}},
        })
        assert isinstance(zone.geometry, PolygonGeometry)

    def test_unknown_geometry_kind_rejected(self):
        with pytest.raises(ValidationError):
            Zone.model_validate({
                "id": "z",
                "name": "n",
                "geometry": {"kind": "hexagon", "center": {"latitude": 0, "longitude": 0}},
                "bounding_box": {"northeast": {"latitude": 1, "longitude": 1},
                                 "southwest": {"latitude": 0, "longitude": 0}},
            })

    def test_zone_defaults(self):
        zone = make_zone()
        assert zone.status == ZoneStatus.ACTIVE
        assert zone.risk_level == RiskLevel.VERY_LOW
        assert zone.statistics.current_occupancy == 0
        assert zone.alert_settings.enable_entry_alerts is True
        assert zone.alert_settings.enable_exit_alerts is False

    def test_negative_occupancy_rejected(self):
        with pytest.raises(ValidationError):
            make_zone(statistics={"current_occupancy": -1})

    def test_zone_json_roundtrip(self):
        zone = make_zone()
        assert Zone.model_validate_json(zone.model_dump_json()) == zone


class TestErrors:
    """오류 타입 테스트"""

    def test_not_found_carries_zone_id(self):
        err = ZoneNotFoundError("zone_9")
        assert err.zone_id == "zone_9"
        assert "zone_9" in str(err)

    def test_queue_task_failure(self):
        cause = RuntimeError("boom")
        failure = QueueTaskFailure("risk_calculation_1", "risk_calculation", 3, cause)
        assert failure.attempts == 3
        assert failure.error is cause
        assert failure.payload == {}


class TestZoneFilter:
    """zone 필터 테스트"""

    @pytest.fixture
    def zones(self):
        return [
            make_zone("zone_1", "Red Fort", type=ZoneType.TOURIST_ATTRACTION,
                      statistics={"current_occupancy": 40, "alerts_triggered_today": 2}),
            make_zone("zone_2", "Border Post", lat=31.6, lon=74.57, type=ZoneType.BORDER_CHECKPOINT,
                      risk_level=RiskLevel.HIGH, description="Attari crossing"),
            make_zone("zone_3", "Closed Market", status=ZoneStatus.INACTIVE),
        ]

    def test_no_filter_matches_all(self, zones):
        assert apply_filter(zones, None) == zones
        assert matches_filter(zones[0], ZoneFilter())

    def test_filter_by_type(self, zones):
        result = apply_filter(zones, ZoneFilter(types=[ZoneType.BORDER_CHECKPOINT]))
        assert [z.id for z in result] == ["zone_2"]

    def test_filter_by_risk_and_status(self, zones):
        assert [z.id for z in apply_filter(zones, ZoneFilter(risk_levels=[RiskLevel.HIGH]))] == ["zone_2"]
        assert [z.id for z in apply_filter(zones, ZoneFilter(status=[ZoneStatus.INACTIVE]))] == ["zone_3"]

    def test_search_term_matches_description(self, zones):
        """이름/설명 검색 테스트 (대소문자 무시)"""
        result = apply_filter(zones, ZoneFilter(search_term="attari"))
        assert [z.id for z in result] == ["zone_2"]

    def test_filter_by_bounding_box(self, zones):
        box = BoundingBox(northeast=Coordinates(latitude=29, longitude=78),
                          southwest=Coordinates(latitude=28, longitude=77))
        result = apply_filter(zones, ZoneFilter(bounding_box=box))
        assert "zone_2" not in [z.id for z in result]
        assert "zone_1" in [z.id for z in result]

    def test_filter_by_alerts_and_occupancy(self, zones):
        assert [z.id for z in apply_filter(zones, ZoneFilter(has_alerts=True))] == ["zone_1"]
        assert [z.id for z in apply_filter(zones, ZoneFilter(min_occupancy=10))] == ["zone_1"]
        assert "zone_1" not in [z.id for z in apply_filter(zones, ZoneFilter(max_occupancy=10))]
