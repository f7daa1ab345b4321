import pytest

from astrosched.config import Config
from astrosched.errors import ConfigError
from astrosched.scheduler.horizon import ArtificialHorizon, HorizonRegion, horizon_from_config


@pytest.fixture
def trees():
    return HorizonRegion(name="trees", points=[(90.0, 20.0), (180.0, 40.0)])


@pytest.fixture
def house():
    # Wraps through north
    return HorizonRegion(name="house", points=[(330.0, 30.0), (30.0, 30.0)])


def test_region_interpolates_between_points(trees):
    assert trees.altitude_floor(90.0) == pytest.approx(20.0)
    assert trees.altitude_floor(135.0) == pytest.approx(30.0)
    assert trees.altitude_floor(180.0) == pytest.approx(40.0)


def test_region_outside_its_azimuths_has_no_floor(trees):
    assert trees.altitude_floor(200.0) is None
    assert trees.altitude_floor(45.0) is None


def test_region_wraps_through_north(house):
    assert house.altitude_floor(350.0) == pytest.approx(30.0)
    assert house.altitude_floor(0.0) == pytest.approx(30.0)
    assert house.altitude_floor(10.0) == pytest.approx(30.0)
    assert house.altitude_floor(90.0) is None


def test_region_needs_two_points():
    with pytest.raises(ConfigError):
        HorizonRegion(name="bad", points=[(10.0, 10.0)])


def test_region_rejects_out_of_range_points():
    with pytest.raises(ConfigError):
        HorizonRegion(name="bad", points=[(10.0, 10.0), (400.0, 10.0)])


def test_horizon_uses_highest_enabled_floor(trees, house):
    wall = HorizonRegion(name="wall", points=[(100.0, 50.0), (120.0, 50.0)], enabled=False)
    horizon = ArtificialHorizon([trees, house, wall])

    assert horizon.has_constraints()
    floor, name = horizon.altitude_floor(110.0)
    assert name == "trees"
    assert floor == pytest.approx(24.444, abs=1e-3)


def test_is_altitude_ok_reports_region(trees):
    horizon = ArtificialHorizon([trees])

    ok, reason = horizon.is_altitude_ok(135.0, 25.0)
    assert not ok
    assert "trees" in reason
    assert "altitude 25.0" in reason

    assert horizon.is_altitude_ok(135.0, 35.0) == (True, None)
    assert horizon.is_altitude_ok(270.0, 5.0) == (True, None)


def test_disabled_regions_are_not_constraints(trees):
    trees.enabled = False
    horizon = ArtificialHorizon([trees])
    assert not horizon.has_constraints()
    assert horizon.is_altitude_ok(135.0, 0.0) == (True, None)


def test_horizon_from_config():
    config = Config(
        {
            "horizon": {
                "regions": [
                    {"name": "trees", "points": [[90, 20], [180, 40]]},
                    {"points": [[200, 10], [220, 10]], "enabled": False},
                ]
            }
        }
    )
    horizon = horizon_from_config(config)

    assert [r.name for r in horizon.regions] == ["trees", "region2"]
    assert horizon.regions[1].enabled is False
    assert horizon.is_altitude_ok(135.0, 25.0)[0] is False


def test_horizon_from_config_rejects_bad_points():
    config = Config({"horizon": {"regions": [{"name": "x", "points": [["a", 1], [2, 3]]}]}})
    with pytest.raises(ConfigError):
        horizon_from_config(config)
