#!/usr/bin/env python3
"""
Command line montage of several stacks.

Usage example:
  stackmontage c1.tif c2.tif c3.tif none -o montage.tif --rows 2 --columns 2
"""

from pathlib import Path
from typing import List, Optional
import argparse
import logging
import sys

from .core.config import Config, BLIT_MODES
from .core.exceptions import DimensionMismatch, UnsupportedKind
from .core.utils import setup_logging
from .data_processing import StackLoader, save_stack
from .montage import montage_stacks


logger = logging.getLogger(__name__)

# Input placeholder that is skipped
NONE_PLACEHOLDER = 'none'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackmontage",
        description="Montage several equally shaped stacks or hyperstacks into one.",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        help=f"Input images in montage order; '{NONE_PLACEHOLDER}' entries are skipped",
    )
    parser.add_argument("-o", "--output", type=Path, help="Output TIFF (default: <output_dir>/montage.tif)")
    parser.add_argument("--rows", type=int, help="Number of grid rows")
    parser.add_argument("--columns", type=int, help="Number of grid columns")
    parser.add_argument("--blit-mode", choices=list(BLIT_MODES), help="How tiles are written")
    parser.add_argument("--workers", type=int, help="Threads used to composite planes")
    parser.add_argument("--config", type=Path, help="JSON or YAML configuration file")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config) if args.config else Config()
        if args.blit_mode:
            config.compositing.blit_mode = args.blit_mode
        if args.workers is not None:
            config.compositing.n_workers = args.workers
        if args.log_level:
            config.logging.log_level = args.log_level
        config.validate()
    except (OSError, TypeError, ValueError) as e:
        parser.error(f"Invalid configuration: {e}")
    for name in ("rows", "columns"):
        value = getattr(args, name)
        if value is not None and value < 1:
            parser.error(f"--{name} must be >= 1")

    setup_logging(config.logging.log_level, config.logging.verbose)

    inputs = [Path(item) for item in args.inputs if item.lower() != NONE_PLACEHOLDER]
    if not inputs:
        logger.error("No input images given")
        return 1

    output = args.output or config.output.output_dir / "montage.tif"

    try:
        stacks = StackLoader(config).load_many(inputs)
        montage = montage_stacks(stacks, rows=args.rows, columns=args.columns, config=config)
        save_stack(montage, output, compression=config.output.compression)
    except (DimensionMismatch, UnsupportedKind) as e:
        logger.error(f"Montage failed: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not read or write images: {e}")
        return 1

    logger.info(f"Montage written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
