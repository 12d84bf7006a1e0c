import argparse
import dataclasses
import json
import logging
import sys

from .config import Settings
from .errors import HelioPickError
from .geometry import resolve_geometry
from .hv_api import fetch_header
from .loader import load_image_entry
from .measurements import measure
from .metadata import orientation_from_header, params_from_header
from .transform import OFF_DISK, ProjectionModel, is_within_disk, percent_distance

logger = logging.getLogger(__name__)


def _settings(args) -> Settings:
    cfg = Settings.load(args.config) if args.config else Settings()
    for attr, name in (
        ("radius_correction", "RADIUS_CORRECTION"),
        ("x_offset", "CENTER_X_OFFSET"),
        ("y_offset", "CENTER_Y_OFFSET"),
        ("model", "PROJECTION"),
    ):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(cfg, name, value)
    if getattr(args, "no_boundary_check", False):
        cfg.BOUNDARY_CHECK = False
    cfg.normalize()
    return cfg


def _cmd_geometry(args) -> int:
    entry = load_image_entry(args.image, sidecar_path=args.sidecar, settings=_settings(args))
    out = {
        "image": entry.name,
        "width": entry.width,
        "height": entry.height,
        "source": entry.geometry_source,
        "observation_time": entry.observation_time.isoformat() if entry.observation_time else None,
        "geometry": entry.geometry.to_dict(),
    }
    print(json.dumps(out, indent=2))
    return 0


def _cmd_locate(args) -> int:
    cfg = _settings(args)
    entry = load_image_entry(args.image, sidecar_path=args.sidecar, settings=cfg)
    geometry = cfg.correct(entry.geometry)
    point = (args.x, args.y)

    if cfg.BOUNDARY_CHECK and not is_within_disk(point, geometry, cfg.LIMB_TOLERANCE):
        logger.info("Pick (%s, %s) rejected: outside %.2f disk radii", args.x, args.y, cfg.LIMB_TOLERANCE)
        print(json.dumps({"off_disk": True, "distance_percent": percent_distance(point, geometry)}))
        return 2

    m = measure(entry, point, label=args.label, geometry=geometry, model=cfg.PROJECTION)
    if m is OFF_DISK:
        print(json.dumps({"off_disk": True, "distance_percent": percent_distance(point, geometry)}))
        return 2
    print(json.dumps(dataclasses.asdict(m), indent=2))
    return 0


def _cmd_header(args) -> int:
    hdr = fetch_header(args.date, args.source_id)
    if hdr is None:
        logger.error("No Helioviewer header for %s (sourceId=%s)", args.date, args.source_id)
        return 1
    params = params_from_header(hdr)
    orientation = orientation_from_header(hdr)
    out = {"date": args.date, "source_id": args.source_id, "orientation": orientation, "geometry": None}
    if params is not None:
        out["geometry"] = resolve_geometry(
            hdr.get("NAXIS1", 0), hdr.get("NAXIS2", 0), params, orientation
        ).to_dict()
    print(json.dumps(out, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="heliopick")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_geo = sub.add_parser("geometry", help="Print the disk geometry resolved for an image.")
    p_geo.add_argument("image")
    p_geo.add_argument("--sidecar", type=str, default=None, help="JSON metadata file.")
    p_geo.add_argument("--config", type=str, default=None, help="Settings JSON file.")
    p_geo.set_defaults(func=_cmd_geometry)

    p_loc = sub.add_parser("locate", help="Heliographic coordinates of a pixel.")
    p_loc.add_argument("image")
    p_loc.add_argument("--x", type=float, required=True)
    p_loc.add_argument("--y", type=float, required=True)
    p_loc.add_argument("--sidecar", type=str, default=None)
    p_loc.add_argument("--config", type=str, default=None)
    p_loc.add_argument("--radius-correction", type=float, default=None)
    p_loc.add_argument("--x-offset", type=float, default=None)
    p_loc.add_argument("--y-offset", type=float, default=None)
    p_loc.add_argument("--model", choices=[m.value for m in ProjectionModel], default=None)
    p_loc.add_argument("--label", type=str, default="")
    p_loc.add_argument("--no-boundary-check", action="store_true")
    p_loc.set_defaults(func=_cmd_locate)

    p_hdr = sub.add_parser("header", help="Fetch orientation from the closest Helioviewer image.")
    p_hdr.add_argument("--date", type=str, required=True, help="ISO date, e.g. 2014-01-01T23:59:59Z")
    p_hdr.add_argument("--source-id", type=int, required=True)
    p_hdr.set_defaults(func=_cmd_header)
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except HelioPickError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
