#!/usr/bin/env python3
"""
Command-line driver.

    cellgrid partition IMAGE [--cell-width N] [--cell-height N] [--sensitivity S] [--save]
    cellgrid stitch DIR [--output PATH]
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..models.errors import CellGridError
from ..pipeline.partition_image import partition_image
from ..services.cell_analysis_service import COLOR_SENSITIVITY, CellAnalysisService
from ..services.image_service import CELLS_OUTPUT_DIR, STITCHED_IMAGE_PATH, ImageService

logger = logging.getLogger("cellgrid")


def _configure_logging(verbose: bool) -> None:
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="cellgrid",
                                 description="Partition images into cells and report per-cell statistics.")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    part = sub.add_parser("partition", help="cut an image into cells and analyse them")
    part.add_argument("image", help="path of the image to partition")
    part.add_argument("--cell-width", type=int, default=None, help="default: image width // 5")
    part.add_argument("--cell-height", type=int, default=None, help="default: image height // 5")
    part.add_argument("--sensitivity", type=float, default=COLOR_SENSITIVITY,
                      help="colour quantization step used for entropy")
    part.add_argument("--save", action="store_true", help="write each cell as cell_<row>_<col>.png")
    part.add_argument("--output-dir", default=CELLS_OUTPUT_DIR, help="where tiles are written")
    part.add_argument("--json", action="store_true", help="print reports as JSON lines")

    stitch = sub.add_parser("stitch", help="rebuild an image from cell_<row>_<col> tiles")
    stitch.add_argument("directory", nargs="?", default=CELLS_OUTPUT_DIR)
    stitch.add_argument("--output", default=STITCHED_IMAGE_PATH)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "partition":
            analysis_service = CellAnalysisService(color_sensitivity=args.sensitivity)
            registry, reports = partition_image(
                args.image,
                cell_width=args.cell_width,
                cell_height=args.cell_height,
                save=args.save,
                output_dir=args.output_dir,
                analysis_service=analysis_service,
            )
            if args.json:
                for report in reports:
                    print(json.dumps(report.as_dict()))
            else:
                analysis_service.log_reports(reports)
            logger.info(f"{len(registry)} cells")
        else:
            store = ImageService().stitch_cells(args.directory, args.output)
            logger.info(f"Stitched image is {store.width}x{store.height}")
    except (CellGridError, FileNotFoundError, NotADirectoryError) as err:
        logger.error(str(err))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
