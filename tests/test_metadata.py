import json
from datetime import datetime, timezone

import pytest
from astropy.io import fits

from heliopick.errors import MetadataError
from heliopick.geometry import DiskParams
from heliopick.metadata import (
    header_xml_to_fits_header,
    observation_time_from_header,
    orientation_from_header,
    params_from_header,
    parse_observation_time,
    parse_sidecar,
)

HV_XML = """<?xml version="1.0" encoding="utf-8"?>
<meta>
  <fits>
    <NAXIS1>4096</NAXIS1>
    <NAXIS2>4096</NAXIS2>
    <DATE-OBS>2014-01-01T23:59:59.34Z</DATE-OBS>
    <CRPIX1>2048.5</CRPIX1>
    <CRPIX2>2048.5</CRPIX2>
    <CRVAL1>0.0</CRVAL1>
    <CRVAL2>0.0</CRVAL2>
    <CDELT1>0.6</CDELT1>
    <CDELT2>0.6</CDELT2>
    <RSUN_OBS>975.0</RSUN_OBS>
    <CRLT_OBS>-3.0</CRLT_OBS>
    <CRLN_OBS>12.5</CRLN_OBS>
    <QUALITY>nan</QUALITY>
    <TELESCOP>SDO/AIA</TELESCOP>
  </fits>
  <helioviewer>
    <HV_ROTATION>0.0</HV_ROTATION>
  </helioviewer>
</meta>
"""


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_xml_header_conversion():
    hdr = header_xml_to_fits_header(HV_XML)
    assert hdr["NAXIS1"] == 4096
    assert hdr["CDELT1"] == 0.6
    assert hdr["QUALITY"] == 0
    assert hdr["TELESCOP"] == "SDO/AIA"
    assert "META" not in hdr
    assert "HV_ROTAT" in hdr


def test_xml_header_collisions_suffixed():
    hdr = header_xml_to_fits_header("<m><KEYWORD_A>1</KEYWORD_A><KEYWORD_B>2</KEYWORD_B></m>")
    assert hdr["KEYWORD_"] == 1
    assert hdr["KEYWORD0"] == 2


def test_xml_header_malformed():
    with pytest.raises(MetadataError):
        header_xml_to_fits_header("<meta><fits>")


def test_params_from_limb_fit_keywords():
    hdr = fits.Header()
    hdr["FNDLMBXC"] = 1020.5
    hdr["FNDLMBYC"] = 1030.0
    hdr["FNDLMBMI"] = 940.0
    hdr["FNDLMBMA"] = 960.0
    assert params_from_header(hdr) == DiskParams(1020.5, 1030.0, 950.0)


def test_params_from_single_limb_axis():
    hdr = {"FNDLMBXC": 10, "FNDLMBYC": 20, "FNDLMBMA": 30}
    assert params_from_header(hdr) == DiskParams(10.0, 20.0, 30.0)


def test_params_from_wcs_keywords():
    hdr = header_xml_to_fits_header(HV_XML)
    params = params_from_header(hdr)
    assert params.cx == pytest.approx(2047.5)
    assert params.cy == pytest.approx(4095.0 - 2047.5)
    assert params.radius == pytest.approx(1625.0)


def test_params_absent():
    assert params_from_header({"TELESCOP": "SDO"}) is None


def test_orientation_from_header_preference():
    assert orientation_from_header({"B0": 1.5, "CRLT_OBS": -3.0, "SOLAR_P": 4}) == {
        "B0": 1.5,
        "L0": 0.0,
        "P_ANGLE": 4.0,
    }
    hdr = header_xml_to_fits_header(HV_XML)
    assert orientation_from_header(hdr) == {"B0": -3.0, "L0": 12.5, "P_ANGLE": 0.0}


def test_parse_observation_time_variants():
    assert abs(parse_observation_time("2014-01-01T23:59:59Z") - _utc(2014, 1, 1, 23, 59, 59)).total_seconds() < 1e-3
    assert abs(parse_observation_time("2014-01-01 12:00:00") - _utc(2014, 1, 1, 12)).total_seconds() < 1e-3
    with pytest.raises(MetadataError):
        parse_observation_time("yesterday")


def test_observation_time_date_and_time_split():
    t = observation_time_from_header({"DATE-OBS": "2015-06-10", "TIME-OBS": "12:30:00"})
    assert abs(t - _utc(2015, 6, 10, 12, 30)).total_seconds() < 1e-3
    assert observation_time_from_header({}) is None


def test_sidecar_full():
    text = json.dumps(
        {
            "sun_params": {"cx": 512, "cy": 500, "radius": 420.5},
            "observation_time": "2020-01-01T00:00:00Z",
            "header": {"B0": -2.9, "L0": 101.0, "P_ANGLE": 2.1, "DATE-OBS": "2020-01-02", "TIME-OBS": "06:00:00"},
        }
    )
    md = parse_sidecar(text)
    assert md.sun_params == DiskParams(512.0, 500.0, 420.5)
    assert md.orientation == {"B0": -2.9, "L0": 101.0, "P_ANGLE": 2.1}
    # DATE-OBS wins over observation_time
    assert abs(md.observation_time - _utc(2020, 1, 2, 6)).total_seconds() < 1e-3


def test_sidecar_minimal():
    md = parse_sidecar("{}")
    assert md.sun_params is None
    assert md.orientation == {"B0": 0.0, "L0": 0.0, "P_ANGLE": 0.0}
    assert md.observation_time is None


@pytest.mark.parametrize(
    "text",
    ["{not json", "[1, 2]", '{"header": 5}'],
)
def test_sidecar_errors(text):
    with pytest.raises(MetadataError):
        parse_sidecar(text)


def test_sidecar_bad_fields_dropped_individually(caplog):
    text = json.dumps(
        {
            "sun_params": {"cx": 400, "cy": 300},
            "observation_time": "01/02/2014 10:00",
            "header": {"B0": 7, "L0": 120, "P_ANGLE": -20},
        }
    )
    md = parse_sidecar(text)
    assert md.sun_params is None
    assert md.observation_time is None
    assert md.orientation == {"B0": 7.0, "L0": 120.0, "P_ANGLE": -20.0}
    assert "sun_params" in caplog.text
    assert "01/02/2014" in caplog.text


def test_sidecar_bad_header_date_keeps_observation_time():
    text = json.dumps({"observation_time": "2020-01-01T00:00:00Z", "header": {"DATE-OBS": "garbage"}})
    md = parse_sidecar(text)
    assert abs(md.observation_time - _utc(2020, 1, 1)).total_seconds() < 1e-3
