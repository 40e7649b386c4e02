"""Command-line interface for cava-filter.

Reads raw pcm_s16le from a file or stdin and writes one line of spectrum bar
heights per output frame. Exit codes: 0 when the input ran out cleanly, 1
when reading failed or an unexpected error occurred, 2 for invalid options
or a transform that could not be initialized.
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, TextIO

from . import __version__
from .config import (
    DEFAULT_CHANNELS,
    DEFAULT_EXEC_LEN_PER_CHANNEL,
    DEFAULT_FRAMERATE,
    DEFAULT_SAMPLE_RATE,
    ConfigError,
    StreamConfig,
)
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    DEFAULT_BARS,
    FilterOptions,
    normalize_weighting_scheme,
    resolve_log_level,
)
from .services.frame_pipeline import StreamRunResult, process_stream
from .services.output_emitter import OutputEmitter
from .services.pcm_stream import PcmStreamReader
from .services.spectrum_accumulator import WEIGHTING_SCHEMES
from .services.spectrum_transform import CavaSpectrumTransform, TransformInitError
from .version import build_help_epilog

STDIO_NAME = "-"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cava-filter",
        description=(
            "Convert raw pcm_s16le audio to frequency spectrum bars, one line "
            "per output frame. Reads standard input if no input file is given."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=STDIO_NAME,
        help="Input file of raw samples (default: standard input).",
    )
    parser.add_argument(
        "-b",
        "--bars",
        type=int,
        default=DEFAULT_BARS,
        help="Number of bars per channel, 2 to 200 (default: 10).",
    )
    parser.add_argument(
        "-f",
        "--framerate",
        type=float,
        default=DEFAULT_FRAMERATE,
        help="Output frames per second (default: 25).",
    )
    parser.add_argument(
        "-S",
        "--stereo",
        action="store_true",
        help="Print left channel bars followed by right channel bars.",
    )
    parser.add_argument(
        "-s",
        "--smooth",
        type=float,
        default=1.0,
        help="Smooth factor: 1 normal, >1 smoother, <1 more responsive.",
    )
    parser.add_argument(
        "-a",
        "--autosens",
        type=int,
        default=0,
        help="Auto sensitivity setting (default: 0, disabled).",
    )
    parser.add_argument(
        "-F",
        "--print-freq-bands",
        action="store_true",
        help="Print band cutoff frequencies as the first line.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=STDIO_NAME,
        help="Write output to a file (default: standard output).",
    )
    parser.add_argument(
        "-r",
        "--rate",
        type=int,
        default=DEFAULT_SAMPLE_RATE,
        help="Input sample rate in Hz (default: 44100).",
    )
    parser.add_argument(
        "-c",
        "--channels",
        type=int,
        choices=(1, 2),
        default=DEFAULT_CHANNELS,
        help="Interleaved input channels (default: 2).",
    )
    parser.add_argument(
        "--exec-len",
        type=int,
        default=DEFAULT_EXEC_LEN_PER_CHANNEL,
        help="Samples per channel in one transform call (default: 512).",
    )
    parser.add_argument(
        "--weighting",
        choices=WEIGHTING_SCHEMES,
        default="proportional",
        help="How transform calls are combined into a frame.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    return parser


def build_options(args: argparse.Namespace) -> FilterOptions:
    """Validate parsed arguments into run options."""
    stream = StreamConfig.from_exec_len(
        sample_rate=args.rate,
        channels=args.channels,
        framerate=args.framerate,
        exec_len_per_channel=args.exec_len,
    )
    return FilterOptions(
        stream=stream,
        bars_per_channel=args.bars,
        channels_out=2 if args.stereo else 1,
        smooth_factor=args.smooth,
        autosens=args.autosens,
        print_freq_bands=args.print_freq_bands,
        weighting=normalize_weighting_scheme(args.weighting),
    )


def run_filter(
    options: FilterOptions, source: BinaryIO, sink: TextIO
) -> StreamRunResult:
    """Run the filter over open streams with the default cava transform."""
    emitter = OutputEmitter(
        sink,
        bars_per_channel=options.bars_per_channel,
        channels=options.stream.channels,
        channels_out=options.channels_out,
    )
    result = process_stream(
        PcmStreamReader(source),
        emitter,
        options.stream,
        lambda capacity: CavaSpectrumTransform(options.transform_config(capacity)),
        print_cutoffs=options.print_freq_bands,
        scheme=options.weighting,
    )
    sink.flush()
    return result


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        try:
            options = build_options(args)
        except ConfigError as exc:
            return _usage_error(str(exc))

        with ExitStack() as stack:
            try:
                source = _open_input(stack, args.input)
                sink = _open_output(stack, args.output)
            except OSError as exc:
                return _usage_error(str(exc))
            try:
                result = run_filter(options, source, sink)
            except TransformInitError as exc:
                logger.error("Spectrum transform init failed: %s", exc)
                return _usage_error(f"spectrum transform: {exc}")

        if not result.ok:
            logger.error("Input read failed: %s", result.error)
            print(f"cava-filter: read failed: {result.error}", file=sys.stderr)
            return EXIT_FAILURE
        return EXIT_OK
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return EXIT_FAILURE


def _usage_error(message: str) -> int:
    print(f"cava-filter: error: {message}", file=sys.stderr)
    return EXIT_USAGE


def _open_input(stack: ExitStack, name: str) -> BinaryIO:
    if name == STDIO_NAME:
        return sys.stdin.buffer
    try:
        return stack.enter_context(open(name, "rb"))
    except OSError as exc:
        raise OSError(
            f"could not open file for reading '{name}': {exc.strerror}"
        ) from exc


def _open_output(stack: ExitStack, name: str) -> TextIO:
    if name == STDIO_NAME:
        return sys.stdout
    try:
        return stack.enter_context(open(name, "w", encoding="utf-8"))
    except OSError as exc:
        raise OSError(
            f"could not open file for writing '{name}': {exc.strerror}"
        ) from exc


if __name__ == "__main__":
    raise SystemExit(main())
