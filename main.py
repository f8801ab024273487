import argparse
import os
import sys

from typing import List, Optional

from container import Container
from errors import LZ77Error
from lz77 import LZ77
from tokens import MAX_DISTANCE, MAX_LENGTH, iter_tokens

DEFAULT_SUFFIX = ".lz77"  #: Appended to the input name when no output given


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="LZ77 compressor with fixed 3-byte tokens"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    compress = subparsers.add_parser(
        "compress", aliases=["c"], help="Compress a file"
    )
    compress.add_argument("input", help="File to compress")
    compress.add_argument(
        "-o",
        "--output",
        help=f"Output file path (default: input + {DEFAULT_SUFFIX})",
    )
    compress.add_argument(
        "-d",
        "--dictionary-size",
        type=int,
        default=LZ77.DEFAULT_MAX_DICTIONARY_SIZE,
        help=f"History window size, 0..{MAX_DISTANCE} "
        f"(default: {LZ77.DEFAULT_MAX_DICTIONARY_SIZE})",
    )
    compress.add_argument(
        "-l",
        "--lookahead-size",
        type=int,
        default=LZ77.DEFAULT_LOOKAHEAD_BUFFER_SIZE,
        help=f"Lookahead window size, 0..{MAX_LENGTH} "
        f"(default: {LZ77.DEFAULT_LOOKAHEAD_BUFFER_SIZE})",
    )
    compress.add_argument(
        "-r",
        "--raw",
        action="store_true",
        help="Write the bare token stream without the size header",
    )
    compress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide progress",
    )

    decompress = subparsers.add_parser(
        "decompress", aliases=["d"], help="Decompress a file"
    )
    decompress.add_argument("input", help="File to decompress")
    decompress.add_argument(
        "-o", "--output", required=True, help="Output file path"
    )
    decompress.add_argument(
        "-r",
        "--raw",
        action="store_true",
        help="Input is a bare token stream without the size header",
    )
    decompress.add_argument(
        "--strict",
        action="store_true",
        help="Fail on back-references outside the decoded data",
    )
    decompress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide progress",
    )

    inspect = subparsers.add_parser(
        "inspect", aliases=["i"], help="List the tokens of a compressed file"
    )
    inspect.add_argument("input", help="Compressed file")

    return parser


def _print_progress(line: str) -> None:
    """Redraw the progress line in place.

    :param line: Progress text, without the leading carriage return.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format how much of a stream has been processed, like `` 41.46%``.

    :param done: Bytes consumed so far (input bytes when compressing,
        compressed bytes when decompressing).
    :type done: int
    :param total: Size of the stream being processed.
    :type total: int
    :returns: Percentage, or ``"0%"`` for an empty stream.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    return f"{100.0 * done / total:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a file size: exact bytes below 1 KiB, binary units above.

    :param n: Size in bytes.
    :type n: int
    :returns: Human-readable size such as ``"41 B"`` or ``"1.50 KiB"``.
    :rtype: str
    """
    if abs(n) < 1024:
        return f"{n} B"
    size = float(n)
    for unit in ("KiB", "MiB", "GiB", "TiB"):
        size /= 1024
        if abs(size) < 1024:
            break
    return f"{size:.2f} {unit}"


def _fmt_ratio(raw_size: int, compressed_size: int) -> str:
    """Format ``raw_size / compressed_size``; ``"n/a"`` for empty output."""
    if compressed_size <= 0:
        return "n/a"
    return f"{raw_size / compressed_size:.2f}"


def _fmt_token(index: int, distance: int, length: int, literal: int) -> str:
    """Format one token for ``inspect``.

    Printable literals are shown as characters, others as hex.
    """
    if 0x20 <= literal < 0x7F:
        lit = repr(chr(literal))
    else:
        lit = f"0x{literal:02x}"
    return f"{index:6d}  dist={distance:4d}  len={length:2d}  lit={lit}"


class Progress:
    """Callable progress reporter.

    Redraws the progress line only when the whole percentage changes.

    :ivar label: Action label (e.g., "Compressing").
    :type label: str
    :ivar name: File name shown next to the label.
    :type name: str
    """

    def __init__(self, label: str, name: str) -> None:
        """Start a reporter that has not drawn anything yet.

        :param label: Action label (e.g., ``"Compressing"``).
        :type label: str
        :param name: File name shown next to the label.
        :type name: str
        :returns: None
        :rtype: None
        """
        self.label = label
        self.name = name
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Units processed.
        :type done: int
        :param total: Total units.
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
        _print_progress(f"{self.label} {self.name}  {_fmt_pct(done, total)}")


def _read_input(path: str) -> Optional[bytes]:
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError:
        print(f"[!] Input file not found: {path}")
        return None


def compress_file(
    input_path: str,
    output_path: Optional[str],
    dictionary_size: int = LZ77.DEFAULT_MAX_DICTIONARY_SIZE,
    lookahead_size: int = LZ77.DEFAULT_LOOKAHEAD_BUFFER_SIZE,
    raw: bool = False,
    hide_progress: bool = False,
) -> int:
    """Compress ``input_path`` into ``output_path``.

    Unless ``raw`` is set the output is framed by :class:`Container`.

    :param input_path: File to compress.
    :type input_path: str
    :param output_path: Destination; ``input_path + ".lz77"`` if ``None``.
    :type output_path: Optional[str]
    :param dictionary_size: History window size.
    :type dictionary_size: int
    :param lookahead_size: Lookahead window size.
    :type lookahead_size: int
    :param raw: Write the bare token stream.
    :type raw: bool
    :param hide_progress: Whether to hide progress.
    :type hide_progress: bool
    :returns: Process exit code.
    :rtype: int
    """
    try:
        lz77 = LZ77(dictionary_size, lookahead_size)
    except ValueError as e:
        print(f"[!] {e}")
        return 2
    data = _read_input(input_path)
    if data is None:
        return 1
    if output_path is None:
        output_path = input_path + DEFAULT_SUFFIX

    on_prog = None
    if not hide_progress and data:
        on_prog = Progress("Compressing", os.path.basename(input_path))
    if raw:
        comp = lz77.compress(data, on_progress=on_prog)
    else:
        comp = Container(lz77).pack(data, on_progress=on_prog)
    if on_prog is not None:
        sys.stdout.write("\n")
        sys.stdout.flush()

    with open(output_path, "wb") as out:
        out.write(comp)

    if raw and data.endswith(b"\x00"):
        print("[!] Input ends with a zero byte, "
              "raw streams drop it on decompression")
    print("Size before compression: ", _fmt_bytes(len(data)))
    print("Size after compression: ", _fmt_bytes(len(comp)))
    print("Compression ratio: ", _fmt_ratio(len(data), len(comp)))
    return 0


def decompress_file(
    input_path: str,
    output_path: str,
    raw: bool = False,
    strict: bool = False,
    hide_progress: bool = False,
) -> int:
    """Decompress ``input_path`` into ``output_path``.

    :param input_path: Compressed file.
    :type input_path: str
    :param output_path: Destination file.
    :type output_path: str
    :param raw: Input is a bare token stream.
    :type raw: bool
    :param strict: Fail on out-of-range back-references.
    :type strict: bool
    :param hide_progress: Whether to hide progress.
    :type hide_progress: bool
    :returns: Process exit code.
    :rtype: int
    """
    comp = _read_input(input_path)
    if comp is None:
        return 1

    on_prog = None
    if not hide_progress and comp:
        on_prog = Progress("Decompressing", os.path.basename(input_path))
    try:
        if raw:
            data = LZ77.decompress(comp, strict=strict, on_progress=on_prog)
        else:
            data = Container().unpack(comp, strict=strict, on_progress=on_prog)
    except ValueError as e:
        if on_prog is not None:
            sys.stdout.write("\n")
        print(f"[!] Cannot decompress {input_path}: {e}")
        return 1
    if on_prog is not None:
        sys.stdout.write("\n")
        sys.stdout.flush()

    with open(output_path, "wb") as out:
        out.write(data)
    return 0


def inspect_file(input_path: str) -> int:
    """Print every token of a compressed file, framed or raw.

    :param input_path: Compressed file.
    :type input_path: str
    :returns: Process exit code.
    :rtype: int
    """
    comp = _read_input(input_path)
    if comp is None:
        return 1
    try:
        if Container.is_framed(comp):
            orig_size = Container.read_header(comp)
            print(f"Framed stream, original size {_fmt_bytes(orig_size)}")
            comp = comp[Container.HEADER.size:]
        for index, token in enumerate(iter_tokens(comp)):
            print(_fmt_token(index, *token))
    except LZ77Error as e:
        print(f"[!] Malformed stream: {e}")
        return 1
    except ValueError as e:
        print(f"[!] {e}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments (default: ``sys.argv[1:]``).
    :type argv: Optional[List[str]]
    :returns: Process exit code.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["compress", "c"]:
        return compress_file(
            args.input,
            args.output,
            dictionary_size=args.dictionary_size,
            lookahead_size=args.lookahead_size,
            raw=args.raw,
            hide_progress=getattr(args, "no_progress", False),
        )
    elif args.cmd in ["decompress", "d"]:
        return decompress_file(
            args.input,
            args.output,
            raw=args.raw,
            strict=args.strict,
            hide_progress=getattr(args, "no_progress", False),
        )
    elif args.cmd in ["inspect", "i"]:
        return inspect_file(args.input)
    return 2


if __name__ == "__main__":
    sys.exit(main())
