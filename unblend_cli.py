"""
Command line entry point for Overlay Unblend.

Recovers an image that had a solid color overlaid on part of it:

    overlay-unblend --image shot.webp --mask mask.webp --output restored.webp \\
        --alpha 0.5 --r 255 --g 255 --b 255

The mask marks overlaid pixels with any non-black color.
"""

from typing import List, Optional
import argparse
import logging
import sys

from UB_Libs.ImageEditingLib.errors import UnblendError
from UB_Libs.NodesLib.unblend_node import UnblendNodeConfig
from UB_Libs.PipelineLib.node_executors import get_default_registry
from UB_Libs.PipelineLib.pipeline_builder import (
    build_pipeline_from_graph,
    build_unblend_graph,
    execute_pipeline,
)
from UB_Libs.ImageEditingLib.unblend_filter import BACKENDS, ROUNDING_MODES
from UB_Libs.constants import DEFAULT_OUTPUT_FORMAT, NODE_ID_OUTPUT

logger = logging.getLogger("unblend")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="overlay-unblend",
        description="Restore the original colors of an image overlaid with a known color and alpha.",
    )
    parser.add_argument("--image", required=True, help="input image")
    parser.add_argument("--mask", required=True, help="mask image (black = untouched)")
    parser.add_argument("--output", required=True, help="output image")
    parser.add_argument("--alpha", required=True, type=float, help="alpha value")
    parser.add_argument("--r", required=True, type=int, help="overlay color red")
    parser.add_argument("--g", required=True, type=int, help="overlay color green")
    parser.add_argument("--b", required=True, type=int, help="overlay color blue")
    parser.add_argument("--rounding", choices=ROUNDING_MODES, default="truncate",
                        help="how recovered channels are narrowed to 8 bits")
    parser.add_argument("--backend", choices=BACKENDS, default="python",
                        help="computation backend")
    parser.add_argument("--workers", type=int, default=None,
                        help="threads for the python backend")
    parser.add_argument("--format", dest="save_format", default=DEFAULT_OUTPUT_FORMAT,
                        help="output image format (default: WEBP, lossless)")
    parser.add_argument("--overwrite", action="store_true", help="replace an existing output file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def run(args: argparse.Namespace) -> int:
    config = UnblendNodeConfig(
        alpha=args.alpha,
        overlay_color=(args.r, args.g, args.b),
        rounding=args.rounding,
        backend=args.backend,
        workers=args.workers,
    )
    options = config.to_options()

    logger.info(f"alpha={options.alpha}")
    logger.info(f"overlay_color=[{args.r},{args.g},{args.b}]")
    logger.info("using equation c_original=(c_final-c_overlay*(1-alpha))/alpha to restore image colors")

    nodes, connections = build_unblend_graph(
        args.image,
        args.mask,
        args.output,
        config,
        save_format=args.save_format,
        overwrite=args.overwrite,
    )
    pipeline = build_pipeline_from_graph(nodes, connections)
    results = execute_pipeline(pipeline, get_default_registry().as_executor_map())

    logger.info(f"Recovered image written to {results[NODE_ID_OUTPUT]}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except (UnblendError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
