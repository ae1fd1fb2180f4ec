#!/usr/bin/env python3
"""
lesvox CLI - Inspect, validate, convert and generate .leS voxel files.

Usage:
    lesvox info volume.leS
    lesvox validate a.leS b.leS.gz
    lesvox convert volume.leS volume.leS.gz
    lesvox generate out.leS.gz --pattern spheres --dims 128 128 128 --pitch 2e-8
"""

import argparse
import sys

from lesvox.validation import ParseError


def _describe_error(e: Exception) -> str:
    if isinstance(e, ParseError) and e.location():
        return f"{e} [{e.location()}]"
    return str(e)


def cmd_info(args):
    """Show header and statistics of a .leS file."""
    from lesvox.fileio import read_les
    from lesvox.units import calculate_scale_bars, format_physical_length

    try:
        dataset = read_les(args.les_file)
        stats = dataset.get_stats()

        print(f"File: {dataset.source_name}")
        print(f"Dimensions: {dataset.dimensions.x} x {dataset.dimensions.y} x {dataset.dimensions.z}")
        print(f"Voxel pitch: {format_physical_length(dataset.voxel_pitch)} ({dataset.voxel_pitch:.6e} m)")

        size = ", ".join(format_physical_length(s) for s in stats["physical_size_m"])
        print(f"Physical size: {size}")

        print(f"\nVoxels: {stats['total_voxels']}")
        print(f"  non-zero: {stats['nonzero_voxels']} ({stats['fill_ratio'] * 100:.1f}%)")
        print(f"  distinct values: {stats['distinct_values']}")
        print(f"  value range: {stats['min_value']}-{stats['max_value']}")

        print("\nScale bars:")
        for axis, bar in calculate_scale_bars(dataset.dimensions, dataset.voxel_pitch).items():
            print(f"  {axis}: {bar.label} ({bar.length_in_voxels:.1f} voxels)")

        return 0
    except Exception as e:
        print(f"Error: {_describe_error(e)}", file=sys.stderr)
        return 1


def cmd_validate(args):
    """Validate one or more .leS files."""
    from lesvox.fileio import read_les

    failures = 0
    for path in args.les_files:
        try:
            dataset = read_les(path)
            print(f"✓ {path}: {dataset.dimensions}")
        except Exception as e:
            failures += 1
            print(f"✗ {path}: {_describe_error(e)}")

    return 1 if failures else 0


def cmd_convert(args):
    """Decode a .leS file and write it back out normalised."""
    from lesvox.fileio import read_les, write_les

    try:
        dataset = read_les(args.input)
        result = write_les(args.output, dataset, compress=args.gzip)
        print(f"Success: {result}")
        return 0
    except Exception as e:
        print(f"Error: {_describe_error(e)}", file=sys.stderr)
        return 1


def cmd_generate(args):
    """Generate a synthetic .leS file."""
    from pathlib import Path
    from lesvox.fileio import write_les
    from lesvox.layout import Dimensions
    from lesvox.synth import make_dataset

    try:
        kwargs = {}
        if args.pattern == "spheres":
            kwargs["seed"] = args.seed

        dataset = make_dataset(
            args.pattern,
            Dimensions(*args.dims),
            voxel_pitch=args.pitch,
            source_name=Path(args.output).name,
            **kwargs,
        )
        result = write_les(args.output, dataset, compress=args.gzip)

        size_mb = result.stat().st_size / (1024 * 1024)
        print(f"Generated: {result}")
        print(f"  Shape: {dataset.dimensions}, size: {size_mb:.2f} MB")
        return 0
    except Exception as e:
        print(f"Error: {_describe_error(e)}", file=sys.stderr)
        return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="lesvox - Inspect and convert .leS voxel files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lesvox info volume.leS
  lesvox validate a.leS b.leS.gz
  lesvox convert volume.leS volume.leS.gz
  lesvox generate out.leS.gz --pattern regions --dims 64 64 64
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # info
    info_parser = subparsers.add_parser(
        "info",
        help="Show header and statistics of a .leS file",
    )
    info_parser.add_argument("les_file", help="Path to .leS or .leS.gz file")
    info_parser.set_defaults(func=cmd_info)

    # validate
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check that .leS files parse",
    )
    validate_parser.add_argument("les_files", nargs="+", help="Files to check")
    validate_parser.set_defaults(func=cmd_validate)

    # convert
    convert_parser = subparsers.add_parser(
        "convert",
        help="Re-encode a .leS file (normalises whitespace, optional gzip)",
    )
    convert_parser.add_argument("input", help="Input .leS or .leS.gz file")
    convert_parser.add_argument("output", help="Output .leS or .leS.gz file")
    convert_parser.add_argument(
        "--gzip", action=argparse.BooleanOptionalAction, default=None,
        help="Force gzip on or off (default: by output extension)",
    )
    convert_parser.set_defaults(func=cmd_convert)

    # generate
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate a synthetic .leS file",
    )
    gen_parser.add_argument("output", help="Output .leS or .leS.gz file")
    gen_parser.add_argument(
        "--pattern", "-p", default="spheres",
        choices=["spheres", "regions", "gradient", "checkerboard"],
        help="Volume pattern (default: spheres)",
    )
    gen_parser.add_argument(
        "--dims", type=int, nargs=3, metavar=("X", "Y", "Z"), default=[32, 32, 32],
        help="Grid dimensions (default: 32 32 32)",
    )
    gen_parser.add_argument("--pitch", type=float, default=5e-8, help="Voxel pitch in meters (default: 5e-8)")
    gen_parser.add_argument("--seed", type=int, default=42, help="Random seed for spheres (default: 42)")
    gen_parser.add_argument(
        "--gzip", action=argparse.BooleanOptionalAction, default=None,
        help="Force gzip on or off (default: by output extension)",
    )
    gen_parser.set_defaults(func=cmd_generate)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
