from heliopick import SOURCE_IDS, resolve_geometry
from heliopick.hv_api import fetch_header
from heliopick.metadata import orientation_from_header, params_from_header

hdr = fetch_header("2014-01-01T23:59:59Z", SOURCE_IDS["SDO_HMI_continuum"])

if hdr is not None:
    geometry = resolve_geometry(
        hdr["NAXIS1"],
        hdr["NAXIS2"],
        trusted_params=params_from_header(hdr),
        trusted_orientation=orientation_from_header(hdr),
    )
    print(geometry)
