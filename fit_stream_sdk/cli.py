'''cli.py: Command line entry point that decodes a FIT file and reports the outcome.'''

import argparse
import logging
import sys

from .decoder import DecodeMode, Decoder
from .errors import FitIOError, FitRuntimeError
from .profile_lookup import messages_key
from .stream import Stream


EXIT_OK = 0
EXIT_DECODE_ERROR = 1
EXIT_IO_ERROR = 2


def _build_parser():
    parser = argparse.ArgumentParser(prog="fit-stream", description="Decode a FIT file.")
    parser.add_argument("path", help="path to the .fit file")
    parser.add_argument("--strict", action="store_true",
                        help="treat reserved bits and checksum mismatches as errors")
    parser.add_argument("--fail-fast", action="store_true",
                        help="abort on the first error instead of reporting partial output")
    parser.add_argument("-v", "--verbose", action="store_true", help="log record level detail")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        stream = Stream.from_file(args.path)
    except FitIOError as error:
        print(f"❌ {error}")
        return EXIT_IO_ERROR

    mode = DecodeMode.FAIL_FAST if args.fail_fast else DecodeMode.BEST_EFFORT
    try:
        result = Decoder(stream).read(mode=mode, strict=args.strict)
    except FitRuntimeError as error:
        print(f"❌ {error}")
        return EXIT_DECODE_ERROR

    counts = {}
    for message in result.messages:
        key = messages_key(message.global_mesg_num)
        counts[key] = counts.get(key, 0) + 1

    print(f"Decoded {len(result.messages)} messages from {args.path}")
    for key, count in counts.items():
        print(f"  - {key}: {count} messages")

    if result.warnings:
        print(f"⚠ {len(result.warnings)} warning(s), see log")

    if result.errors:
        print(f"❌ Decoding stopped early with {len(result.errors)} error(s), see log")
        return EXIT_DECODE_ERROR

    print("✓ File decoded successfully")
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
