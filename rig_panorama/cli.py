# -*- coding: utf-8 -*-
"""
Command line entry point.

    rig-panorama calibrate [options] left right   register the rig, write crop and stitching map
    rig-panorama compose --map result.map left right   replay a stitching map on new frames
"""
import argparse
import logging
import sys

from .calibration import run_calibration
from .compositor import compose_files
from .config import StitchConfig, load_config
from .errors import StitchError
from .log_config import setup_logging

logger = logging.getLogger(__name__)


def parse_dim(value):
    try:
        width, height = (int(v) for v in value.lower().split('x'))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected <width>x<height>, got {value!r}")
    return width, height


def add_frame_options(parser):
    parser.add_argument("images", nargs=2, help="Left and right frame")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--dim", type=parse_dim, help="Dimension of the source frames, e.g. 2880x1620")
    parser.add_argument("--scaled-dim", type=parse_dim, help="Scale the frames down to this size after loading")
    parser.add_argument("--raw", action="store_true", help="Frames are raw I420 instead of RGBA")
    parser.add_argument("--encoded", action="store_true", help="Frames are encoded image files (PNG, JPEG, ...)")
    parser.add_argument("--map", default="result.map", help="Stitching map file (default: result.map)")
    parser.add_argument("--output", default="result.jpg", help="Output image (default: result.jpg)")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("--verbose", action="store_true")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="rig-panorama",
        description="Two-camera panorama calibration and stitching-map compositing.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    calibrate = subparsers.add_parser("calibrate", help="Register the two views and build the stitching map")
    add_frame_options(calibrate)
    calibrate.add_argument("--mapgen", action="store_true", default=None,
                           help="Generate the stitching map used for runtime compositing")
    calibrate.add_argument("--debug-dir", help="Write the raw panorama, mask and matches here")
    calibrate.add_argument("--work-megapix", type=float, help="Feature resolution budget (default 0.6)")
    calibrate.add_argument("--seam-megapix", type=float, help="Seam resolution budget (default 0.1)")
    calibrate.add_argument("--compose-megapix", type=float, help="Compose resolution budget (default: native)")
    calibrate.add_argument("--conf-thresh", type=float, help="Pair and bundle adjustment confidence (default 0.7)")
    calibrate.add_argument("--match-conf", type=float, help="Matcher confidence (default 0.54)")
    calibrate.add_argument("--target-aspect", type=float, help="Output aspect ratio width/height (default 32/9)")
    calibrate.add_argument("--target-dim", type=parse_dim, help="Output size, e.g. 3840x1080")

    compose = subparsers.add_parser("compose", help="Composite new frames with an existing stitching map")
    add_frame_options(compose)
    return parser


def config_from_args(args):
    config = load_config(args.config) if args.config else StitchConfig()
    changes = {}
    if args.dim:
        changes['frame_width'], changes['frame_height'] = args.dim
    if args.scaled_dim:
        changes['scaled_width'], changes['scaled_height'] = args.scaled_dim
    if args.raw:
        changes['pixel_format'] = 'i420'
    elif args.encoded:
        changes['pixel_format'] = 'encoded'
    if args.command == "calibrate":
        changes.update(
            mapgen=args.mapgen,
            work_megapix=args.work_megapix,
            seam_megapix=args.seam_megapix,
            compose_megapix=args.compose_megapix,
            conf_thresh=args.conf_thresh,
            match_conf=args.match_conf,
            target_aspect=args.target_aspect,
        )
        if args.target_dim:
            changes['target_width'], changes['target_height'] = args.target_dim
    return config.override(**changes)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    try:
        config = config_from_args(args)
        if args.command == "calibrate":
            run_calibration(args.images, config, args.output, args.map, args.debug_dir)
        else:
            compose_files(args.map, args.images, config, args.output)
    except StitchError as e:
        logger.error("Error: %s", e)
        return 1
    logger.info("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
