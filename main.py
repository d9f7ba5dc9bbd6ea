import argparse
import errno
import os
import sys
import time

from typing import List, Tuple
from codec import compress_file, decompress_file
from errors import CodecError
from frequency import FrequencyTable

EXTENSION = ".huf"  #: Suffix of containers written in batch mode
TOP_SYMBOLS = 10  #: Default number of bytes listed by ``analyze``


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Huffman coding file compressor"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    compress = subparsers.add_parser(
        "compress", aliases=["c"], help="Compress a single file"
    )
    compress.add_argument("input", help="File to compress")
    compress.add_argument(
        "-o", "--output", required=True, help="Output container path"
    )
    compress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    decompress = subparsers.add_parser(
        "decompress", aliases=["d"], help="Decompress a container"
    )
    decompress.add_argument("input", help="Container to decompress")
    decompress.add_argument(
        "-o", "--output", required=True, help="Output file path"
    )
    decompress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    analyze = subparsers.add_parser(
        "analyze", help="Report byte frequencies and entropy of a file"
    )
    analyze.add_argument("input", help="File to analyze")
    analyze.add_argument(
        "--top",
        type=int,
        default=TOP_SYMBOLS,
        help=f"Number of most frequent bytes to list (default: {TOP_SYMBOLS})",
    )

    batch = subparsers.add_parser(
        "batch", aliases=["b"], help="Compress several files one by one"
    )
    batch.add_argument("files", nargs="+", help="Files to compress")
    batch.add_argument(
        "-o", "--output", required=True, help="Output directory"
    )
    batch.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


def _symbol_label(symbol: int) -> str:
    """Printable name for a byte value in the analysis report."""
    names = {0x20: "SPACE", 0x0A: "NEWLINE", 0x09: "TAB", 0x0D: "CR"}
    if symbol in names:
        return names[symbol]
    if 0x21 <= symbol <= 0x7E:
        return chr(symbol)
    return f"0x{symbol:02X}"


def _rating(savings: float) -> str:
    """Map a space-savings percentage to a one-word rating."""
    if savings > 50:
        return "EXCELLENT"
    if savings > 30:
        return "GOOD"
    if savings > 10:
        return "FAIR"
    return "POOR"


def _target_path(src: str, out_dir: str) -> str:
    """Container path for ``src`` inside ``out_dir`` in batch mode.

    :param src: Source file path.
    :type src: str
    :param out_dir: Destination directory.
    :type out_dir: str
    :returns: ``out_dir/<name without extension>.huf``.
    :rtype: str
    """
    stem = os.path.splitext(os.path.basename(src))[0]
    return os.path.join(out_dir, stem + EXTENSION)


class ProgressLine:
    """Callable progress reporter to avoid nested callback functions.

    Renders a single-line progress with per-file and overall percentages.

    :ivar label: Action label (e.g., "Compressing" or "Decompressing").
    :type label: str
    :ivar name: File name displayed for the current operation.
    :type name: str
    :ivar overall_base: Overall bytes already completed before this file.
    :type overall_base: int
    :ivar overall_total: Total bytes across all files for the operation.
    :type overall_total: int
    """

    def __init__(
        self, label: str, name: str, overall_base: int, overall_total: int
    ) -> None:
        """Initialize progress reporter for a single file.

        :param label: Action label (e.g., ``"Compressing"``).
        :type label: str
        :param name: File name to display.
        :type name: str
        :param overall_base: Overall bytes completed before this file starts.
        :type overall_base: int
        :param overall_total: Total bytes across all files for the operation.
        :type overall_total: int
        :returns: None
        :rtype: None
        """
        self.label = label
        self.name = name
        self.overall_base = int(overall_base)
        self.overall_total = int(overall_total)
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display for the current file.

        :param done: Bytes processed for the current file.
        :type done: int
        :param total: Total bytes for the current file.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        cur_overall = self.overall_base + done
        overall_total = self.overall_total or total
        line = (
            f"{self.label} {self.name}  {_fmt_pct(done, total)}"
            f"  | Overall {_fmt_pct(cur_overall, overall_total)}"
        )
        _print_progress(line)


def _print_stats(
    original: int, compressed: int, unique: int, elapsed: float
) -> None:
    """Print the statistics report of one compression.

    :param original: Input size in bytes.
    :type original: int
    :param compressed: Container size in bytes.
    :type compressed: int
    :param unique: Number of distinct byte values in the input.
    :type unique: int
    :param elapsed: Processing time in seconds.
    :type elapsed: float
    :returns: None
    :rtype: None
    """
    savings = (1.0 - compressed / original) * 100 if original else 0.0
    print("Size before compression: ", _fmt_bytes(original))
    print("Size after compression: ", _fmt_bytes(compressed))
    if compressed:
        print(f"Compression ratio: {original / compressed:.2f}")
    print(f"Space savings: {savings:.1f}%")
    print(f"Unique bytes: {unique}")
    print(f"Processing time: {elapsed:.3f} s")
    print(f"Rating: {_rating(savings)}")


def compress_single(
    src: str, dst: str, hide_progress: bool,
    overall_base: int = 0, overall_total: int = 0,
) -> Tuple[int, int, float]:
    """Compress ``src`` into ``dst``, optionally rendering progress.

    :param src: File to compress.
    :type src: str
    :param dst: Output container path.
    :type dst: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :param overall_base: Bytes of earlier files already done (batch mode).
    :type overall_base: int
    :param overall_total: Total bytes of the whole run; ``0`` means this file only.
    :type overall_total: int
    :returns: Tuple ``(original_size, compressed_size, seconds)``.
    :rtype: Tuple[int, int, float]
    """
    if not overall_total:
        overall_total = os.path.getsize(src)
    on_prog = None
    if not hide_progress:
        on_prog = ProgressLine(
            "Compressing", os.path.basename(src), overall_base, overall_total
        )
    start = time.perf_counter()
    original, compressed = compress_file(src, dst, on_progress=on_prog)
    elapsed = time.perf_counter() - start
    if not hide_progress:
        sys.stdout.write("\n")
        sys.stdout.flush()
    return original, compressed, elapsed


def compress_command(src: str, dst: str, hide_progress: bool) -> None:
    """Compress one file and print its statistics report.

    :param src: File to compress.
    :type src: str
    :param dst: Output container path.
    :type dst: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :returns: None
    :rtype: None
    """
    original, compressed, elapsed = compress_single(src, dst, hide_progress)
    with open(src, "rb") as f:
        unique = len(FrequencyTable.build(f.read()))
    _print_stats(original, compressed, unique, elapsed)


def decompress_command(src: str, dst: str, hide_progress: bool) -> None:
    """Decompress one container and report the time taken.

    :param src: Container to read.
    :type src: str
    :param dst: Output file path.
    :type dst: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :returns: None
    :rtype: None
    """
    on_prog = None
    if not hide_progress:
        on_prog = ProgressLine("Decompressing", os.path.basename(src), 0, 0)
    start = time.perf_counter()
    _, original = decompress_file(src, dst, on_progress=on_prog)
    elapsed = time.perf_counter() - start
    if not hide_progress:
        sys.stdout.write("\n")
        sys.stdout.flush()
    print(f"Decompressed {_fmt_bytes(original)} to {dst}")
    print(f"Processing time: {elapsed:.3f} s")


def analyze_file(path: str, top: int = TOP_SYMBOLS) -> FrequencyTable:
    """Print size, entropy and the most frequent bytes of ``path``.

    :param path: File to analyze.
    :type path: str
    :param top: How many of the most frequent bytes to list.
    :type top: int
    :returns: The frequency table of the file.
    :rtype: FrequencyTable
    """
    with open(path, "rb") as f:
        table = FrequencyTable.build(f.read())
    print(f"File analysis report for: {path}")
    print(f"File size: {_fmt_bytes(table.total)} ({table.total} bytes)")
    print(f"Unique bytes: {len(table)}")
    print(f"Entropy: {table.entropy():.4f} bits per byte")
    if table.total:
        print(f"Top {min(top, len(table))} most frequent bytes:")
        for rank, (symbol, count) in enumerate(table.most_common(top), 1):
            print(
                f"  {rank:>2}. '{_symbol_label(symbol)}' : {count}"
                f" ({100.0 * count / table.total:.2f}%)"
            )
    return table


def batch_compress(
    files: List[str], out_dir: str, hide_progress: bool
) -> List[Tuple[str, int, int]]:
    """Compress each file of ``files`` into its own container in ``out_dir``.

    :param files: Files to compress.
    :type files: List[str]
    :param out_dir: Destination directory, created if missing.
    :type out_dir: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :returns: ``(container_path, original_size, compressed_size)`` per file.
    :rtype: List[Tuple[str, int, int]]
    :raises FileNotFoundError: If any of the files does not exist.
    """
    for src in files:
        if not os.path.isfile(src):
            raise FileNotFoundError(errno.ENOENT, "File not found", src)
    os.makedirs(out_dir, exist_ok=True)

    total_bytes = sum(os.path.getsize(src) for src in files)
    overall_done = 0
    total_compressed = 0
    total_time = 0.0
    results = []
    print(f"Processing {len(files)} files...")
    for i, src in enumerate(files, 1):
        dst = _target_path(src, out_dir)
        if hide_progress:
            print(f"[{i}/{len(files)}] {src}")
        original, compressed, elapsed = compress_single(
            src, dst, hide_progress, overall_done, total_bytes or 1
        )
        overall_done += original
        total_compressed += compressed
        total_time += elapsed
        results.append((dst, original, compressed))
        print(f"  Saved as: {dst}")

    savings = (1.0 - total_compressed / total_bytes) * 100 if total_bytes else 0.0
    print("Total size before compression: ", _fmt_bytes(total_bytes))
    print("Total size after compression: ", _fmt_bytes(total_compressed))
    print(f"Overall space savings: {savings:.1f}%")
    print(f"Total processing time: {total_time:.2f} s")
    return results


def main(argv=None) -> int:
    """Entry point for the CLI tool.

    :param argv: Argument list; ``sys.argv[1:]`` when ``None``.
    :type argv: List[str] | None
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)
    hide_progress = getattr(args, "no_progress", False)

    try:
        if args.cmd in ["compress", "c"]:
            compress_command(args.input, args.output, hide_progress)
        elif args.cmd in ["decompress", "d"]:
            decompress_command(args.input, args.output, hide_progress)
        elif args.cmd == "analyze":
            analyze_file(args.input, args.top)
        elif args.cmd in ["batch", "b"]:
            batch_compress(args.files, args.output, hide_progress)
    except FileNotFoundError as e:
        print(f"[!] File not found: {e.filename}")
        return 1
    except (CodecError, OSError) as e:
        print(f"[!] {type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
