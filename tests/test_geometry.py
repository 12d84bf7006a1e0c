import numpy as np
import pytest

from heliopick.geometry import (
    CenteredDetection,
    ContourBasedDetection,
    DiskGeometry,
    DiskParams,
    resolve_geometry,
)
from heliopick.errors import InvalidGeometry


def test_fallback_is_centered_estimate():
    geo = resolve_geometry(800, 600)
    assert (geo.center_x, geo.center_y, geo.radius_px) == (400.0, 300.0, 270.0)
    assert (geo.b0_deg, geo.l0_deg, geo.p_angle_deg) == (0.0, 0.0, 0.0)


@pytest.mark.parametrize("w,h", [(0, 600), (800, 0), (-1, 600), (float("nan"), 600)])
def test_bad_image_size_rejected(w, h):
    with pytest.raises(InvalidGeometry):
        resolve_geometry(w, h)


def test_trusted_params_used_verbatim():
    geo = resolve_geometry(1024, 1024, {"cx": 511.3, "cy": 498.7, "radius": 401.2})
    assert geo.params == DiskParams(511.3, 498.7, 401.2)


def test_trusted_params_as_tuple():
    geo = resolve_geometry(1024, 1024, DiskParams(10, 20, 30))
    assert geo.params == DiskParams(10.0, 20.0, 30.0)


@pytest.mark.parametrize("radius", [0, -5.0, float("inf")])
def test_non_positive_trusted_radius_rejected(radius):
    with pytest.raises(InvalidGeometry):
        resolve_geometry(800, 600, {"cx": 400, "cy": 300, "radius": radius})


def test_malformed_trusted_params_fall_back(caplog):
    geo = resolve_geometry(800, 600, {"cx": 400, "radius": 100})
    assert geo.radius_px == 270.0
    assert "malformed" in caplog.text.lower()


def test_orientation_defaults_and_values():
    geo = resolve_geometry(800, 600, trusted_orientation={"B0": -3.2, "P_ANGLE": 12.5})
    assert geo.b0_deg == -3.2
    assert geo.l0_deg == 0.0
    assert geo.p_angle_deg == 12.5


def test_non_numeric_orientation_rejected():
    with pytest.raises(InvalidGeometry):
        resolve_geometry(800, 600, trusted_orientation={"B0": "north"})


def test_resolve_is_deterministic():
    args = (1920, 1080, {"cx": 955.25, "cy": 540.5, "radius": 470.125}, {"B0": 4.1, "L0": 287.3, "P_ANGLE": -20.0})
    assert resolve_geometry(*args) == resolve_geometry(*args)


def test_radius_fraction_configurable():
    geo = resolve_geometry(1000, 500, strategy=CenteredDetection(radius_fraction=0.5))
    assert geo.radius_px == 250.0


def test_geometry_rejects_bad_radius():
    with pytest.raises(InvalidGeometry):
        DiskGeometry(10, 10, 0)


def test_corrected_returns_new_geometry():
    geo = DiskGeometry(400, 300, 200, b0_deg=1.0)
    adj = geo.corrected(radius_correction=1.1, x_offset=5, y_offset=-3)
    assert adj is not geo
    assert (adj.center_x, adj.center_y) == (405.0, 297.0)
    assert adj.radius_px == pytest.approx(220.0)
    assert adj.b0_deg == 1.0
    assert geo.radius_px == 200


def test_corrected_rejects_zero_scale():
    with pytest.raises(InvalidGeometry):
        DiskGeometry(400, 300, 200).corrected(radius_correction=0)


def test_scaled():
    geo = DiskGeometry(400, 300, 200).scaled(0.5)
    assert geo.params == DiskParams(200.0, 150.0, 100.0)


class _BrightestRing(ContourBasedDetection):
    def fit_limb(self, pixels):
        ys, xs = np.nonzero(pixels > self.threshold)
        cx, cy = xs.mean(), ys.mean()
        return DiskParams(cx, cy, (xs.max() - xs.min()) / 2)


def test_contour_detection_requires_pixels():
    with pytest.raises(InvalidGeometry):
        resolve_geometry(64, 64, strategy=_BrightestRing())


def test_contour_detection_uses_subclass_fit():
    y, x = np.mgrid[0:64, 0:80]
    disk = ((x - 40) ** 2 + (y - 30) ** 2 <= 20 ** 2).astype(float)
    geo = resolve_geometry(80, 64, strategy=_BrightestRing(), pixels=disk)
    assert geo.center_x == pytest.approx(40.0)
    assert geo.center_y == pytest.approx(30.0)
    assert geo.radius_px == pytest.approx(20.0)


def test_contour_detection_shape_mismatch():
    with pytest.raises(InvalidGeometry):
        resolve_geometry(80, 64, strategy=_BrightestRing(), pixels=np.zeros((10, 10)))


def test_contour_base_is_abstract():
    with pytest.raises(TypeError):
        ContourBasedDetection()
