"""
kvinspect CLI - Inspect and rewrite stored key-value payloads.

Commands:
  kvinspect identify - Show which wire format a buffer looks like
  kvinspect decode   - Decode a buffer to editable text
  kvinspect encode   - Encode text into a wire format
  kvinspect recode   - Decode a buffer and re-encode it in another format
  kvinspect format   - Pretty-print or minify a JSON object/array
  kvinspect view     - View a decoded buffer (TUI)

PATH arguments accept "-" for stdin, except for view, which needs the
terminal for keyboard input.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path


def _read_input(path: str) -> bytes:
    """Read raw bytes from a file or stdin, enforcing the size limit."""
    from kvinspect.formats import MAX_BUFFER_SIZE

    if path == "-":
        data = sys.stdin.buffer.read(MAX_BUFFER_SIZE + 1)
    else:
        input_path = Path(path)
        if not input_path.is_file():
            print(f"Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)
        file_size = input_path.stat().st_size
        if file_size > MAX_BUFFER_SIZE:
            print(
                f"Error: File size {file_size} exceeds maximum {MAX_BUFFER_SIZE} bytes",
                file=sys.stderr,
            )
            sys.exit(1)
        data = input_path.read_bytes()
    if len(data) > MAX_BUFFER_SIZE:
        print(f"Error: Input exceeds maximum {MAX_BUFFER_SIZE} bytes", file=sys.stderr)
        sys.exit(1)
    return data


def _write_output(data: bytes, output: str | None) -> None:
    """Write bytes to a file, or to stdout when no output path is given."""
    if output:
        # Reject path traversal in output path
        if ".." in Path(output).parts:
            print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
            sys.exit(1)
        Path(output).write_bytes(data)
        print(f"Wrote {output} ({len(data)} bytes)", file=sys.stderr)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()


def _resolve_encoding(tag: str | None):
    from kvinspect.formats import ENCODING_TAGS, EncodingKind

    raw = tag or os.environ.get("KVINSPECT_ENCODING", "") or "plain"
    kind = EncodingKind.parse(raw)
    if kind is None:
        print(
            f"Error: Unknown encoding: {raw}. Supported: {', '.join(ENCODING_TAGS)}",
            file=sys.stderr,
        )
        sys.exit(1)
    return kind


def cmd_identify(args: argparse.Namespace) -> None:
    """Show the sniffed candidate and the rule trace."""
    from kvinspect.sniffer import classify, explain

    data = _read_input(args.path)
    candidate = classify(data)

    print(f"SIZE: {len(data)} bytes")
    print(f"HEAD: {data[:16].hex(' ') or '(empty)'}")
    print()
    print("RULES:")
    for rule, matched in explain(data):
        mark = "x" if matched else " "
        print(f"  [{mark}] {rule.kind.tag:12s} {rule.rationale}")
    print()
    print(f"CANDIDATE: {candidate.tag}")


def cmd_decode(args: argparse.Namespace) -> None:
    """Decode a buffer and print its text."""
    from kvinspect.formats import text_to_buffer
    from kvinspect.jsonfmt import format_json
    from kvinspect.pipeline import decode_sync

    data = _read_input(args.path)
    result = decode_sync(data)

    content = result.content
    if args.pretty or args.minify:
        formatted = format_json(content, beautify=args.pretty)
        if formatted is None:
            print("Warning: content is not a JSON object or array; printing as-is", file=sys.stderr)
        else:
            content = formatted

    if args.show_encoding:
        print(f"encoding: {result.encoding.tag}", file=sys.stderr)
    _write_output(text_to_buffer(content), args.output)


def cmd_encode(args: argparse.Namespace) -> None:
    """Encode text into the requested wire format."""
    from kvinspect.formats import buffer_to_text
    from kvinspect.pipeline import encode_sync

    kind = _resolve_encoding(args.encoding)
    text = buffer_to_text(_read_input(args.path))

    try:
        data = encode_sync(text, kind)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    _write_output(data, args.output)


def cmd_recode(args: argparse.Namespace) -> None:
    """Decode a buffer, then write it back in another format."""
    from kvinspect.pipeline import decode_sync, encode_sync

    kind = _resolve_encoding(args.encoding)
    result = decode_sync(_read_input(args.path))

    try:
        data = encode_sync(result.content, kind)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Recoded {result.encoding.tag} -> {kind.tag}", file=sys.stderr)
    _write_output(data, args.output)


def cmd_format(args: argparse.Namespace) -> None:
    """Pretty-print or minify a JSON object or array."""
    from kvinspect.formats import buffer_to_text, text_to_buffer
    from kvinspect.jsonfmt import format_json

    text = buffer_to_text(_read_input(args.path))
    formatted = format_json(text, beautify=not args.minify)
    if formatted is None:
        print("FAIL: content is not a JSON object or array", file=sys.stderr)
        sys.exit(1)
    _write_output(text_to_buffer(formatted + "\n"), args.output)


def cmd_view(args: argparse.Namespace) -> None:
    """View a decoded buffer in the TUI."""
    if args.path == "-":
        print("Error: view reads from a file, not stdin", file=sys.stderr)
        sys.exit(1)
    try:
        from kvinspect.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"kvinspect[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path)


def build_parser() -> argparse.ArgumentParser:
    from kvinspect import __version__
    from kvinspect.formats import ENCODING_TAGS

    parser = argparse.ArgumentParser(
        prog="kvinspect",
        description="kvinspect - decode, edit and re-encode key-value store payloads.",
    )
    parser.add_argument("--version", action="version", version=f"kvinspect {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log decode decisions to stderr")
    sub = parser.add_subparsers(dest="command")

    # identify
    p_identify = sub.add_parser("identify", help="Show which wire format a buffer looks like")
    p_identify.add_argument("path", help="Path to raw value file (or - for stdin)")

    # decode
    p_decode = sub.add_parser("decode", help="Decode a buffer to text")
    p_decode.add_argument("path", help="Path to raw value file (or - for stdin)")
    group = p_decode.add_mutually_exclusive_group()
    group.add_argument("--pretty", action="store_true", help="Pretty-print JSON content")
    group.add_argument("--minify", action="store_true", help="Minify JSON content")
    p_decode.add_argument("--show-encoding", action="store_true", help="Print the detected encoding to stderr")
    p_decode.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # encode
    p_encode = sub.add_parser("encode", help="Encode text into a wire format")
    p_encode.add_argument("path", help="Path to UTF-8 text file (or - for stdin)")
    p_encode.add_argument(
        "-e", "--encoding", choices=ENCODING_TAGS,
        help="Target encoding (default: $KVINSPECT_ENCODING or plain)",
    )
    p_encode.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # recode
    p_recode = sub.add_parser("recode", help="Decode a buffer and re-encode it")
    p_recode.add_argument("path", help="Path to raw value file (or - for stdin)")
    p_recode.add_argument(
        "-e", "--encoding", choices=ENCODING_TAGS,
        help="Target encoding (default: $KVINSPECT_ENCODING or plain)",
    )
    p_recode.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # format
    p_format = sub.add_parser("format", help="Pretty-print or minify JSON")
    p_format.add_argument("path", help="Path to JSON text file (or - for stdin)")
    p_format.add_argument("--minify", action="store_true", help="Compact single-line output")
    p_format.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # view
    p_view = sub.add_parser("view", help="View a decoded buffer (TUI)")
    p_view.add_argument("path", help="Path to raw value file")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    if not args.command:
        print("kvinspect - decode, edit and re-encode key-value store payloads\n")
        print("Usage:")
        print("  kvinspect identify value.bin")
        print("  kvinspect decode value.bin --pretty --show-encoding")
        print("  kvinspect encode edited.json -e messagepack -o value.bin")
        print("  kvinspect recode value.bin -e gz64 -o value.gz64")
        print("  kvinspect format data.json --minify")
        print("  kvinspect view value.bin")
        print()
        print("Pipe from stdin:")
        print("  cat value.bin | kvinspect decode -")
        print()
        print("Run 'kvinspect <command> --help' for details on any command.")
        sys.exit(0)

    commands = {
        "identify": cmd_identify,
        "decode": cmd_decode,
        "encode": cmd_encode,
        "recode": cmd_recode,
        "format": cmd_format,
        "view": cmd_view,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
