"""Command line runner exporting EBSD maps to CTF files."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from ebsdExport.ctf_export.acquisition import ConsoleParameterPrompt, CprMetadata
from ebsdExport.ctf_export.errors import CtfExportError, InvalidParameter
from ebsdExport.ctf_export.exporter import CtfExporter, ExportOptions
from ebsdExport.ctf_export.readers.crystal_map import load_grid
from ebsdExport.ctf_export.simulated import SimulatedMapFactory
from ebsdExport.ctf_export.utils import configure_logging, load_export_config

DEFAULT_CONFIG_PATH = Path("configs/ctf_export_config.yml")


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        ArgumentParser instance.
    """

    parser = argparse.ArgumentParser(description="Export an EBSD map to a Channel Text File")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to the CTF export config.",
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=False,
        help="EBSD map file readable by orix (.ang, .ctf, .h5).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Destination CTF file.",
    )
    parser.add_argument(
        "--cpr",
        type=Path,
        help="Oxford .cpr file providing microscope acquisition parameters.",
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Enter microscope acquisition parameters on the console.",
    )
    parser.add_argument(
        "--flipud",
        action="store_true",
        help="Flip the spatial data upside down (orientations are kept).",
    )
    parser.add_argument(
        "--fliplr",
        action="store_true",
        help="Flip the spatial data left right (orientations are kept).",
    )
    parser.add_argument(
        "--author",
        help="Author written into the file header.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and export a simulated map if --input is omitted.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the CTF exporter."""

    args = build_arg_parser().parse_args(argv)
    config = {}
    if args.config.exists():
        try:
            config = load_export_config(args.config)
        except (InvalidParameter, OSError) as exc:
            raise SystemExit(f"Invalid config: {exc}") from exc
    elif args.config != DEFAULT_CONFIG_PATH:
        raise SystemExit(f"Config file not found: {args.config}")
    configure_logging(args.debug, config.get("logging"))
    logger = logging.getLogger(__name__)

    if args.author is not None:
        config["author"] = args.author
    try:
        options = ExportOptions.from_config(config)
        exporter = CtfExporter(options=options, logger=logger)
        if args.input:
            grid = load_grid(args.input, prop_aliases=config.get("prop_aliases"), logger=logger)
        elif args.debug:
            grid = SimulatedMapFactory.from_config(config.get("debug") or {}, logger).create()
        else:
            raise SystemExit("Provide --input or use --debug for a simulated map.")
        metadata = CprMetadata.from_cpr(args.cpr) if args.cpr else None
        result = exporter.export(
            grid,
            args.output,
            metadata=metadata,
            manual=args.manual,
            prompt=ConsoleParameterPrompt() if args.manual else None,
            flip_ud=args.flipud,
            flip_lr=args.fliplr,
        )
    except (CtfExportError, OSError, ValueError) as exc:
        logger.error("CTF export failed: %s", exc)
        raise SystemExit(f"CTF export failed: {exc}") from exc
    logger.info("All done: %s", result.output_path)


if __name__ == "__main__":
    main()
