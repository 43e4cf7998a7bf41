"""
Командная строка для компрессора Хаффмана.
"""

import argparse
import sys
from compressor import FileCompressor
from errors import HuffmanError
from format import default_compressed_path, default_decompressed_path, TREE_SUFFIX


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Huffman file compressor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
The tree is stored next to the compressed data as <data>{TREE_SUFFIX}
unless --tree is given. Both files are needed to decompress.

Examples:
  python main.py compress input.txt -o input.huff
  python main.py decompress input.huff -o restored.txt
  python main.py info input.huff
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    compress_parser = subparsers.add_parser('compress', help='Compress a file')
    compress_parser.add_argument('source', help='File to compress')
    compress_parser.add_argument('-o', '--output', help='Compressed data path (default: <source>.huff)')
    compress_parser.add_argument('-t', '--tree', help='Tree path (default: <output>.tree)')
    compress_parser.add_argument('-q', '--quiet', action='store_true', help='Do not print progress')
    compress_parser.add_argument('-s', '--stats', action='store_true', help='Print compression statistics')

    decompress_parser = subparsers.add_parser('decompress', help='Decompress a file')
    decompress_parser.add_argument('source', help='Compressed data path')
    decompress_parser.add_argument('-o', '--output', help='Output path (default: <source> without .huff)')
    decompress_parser.add_argument('-t', '--tree', help='Tree path (default: <source>.tree)')
    decompress_parser.add_argument('-q', '--quiet', action='store_true', help='Do not print progress')

    info_parser = subparsers.add_parser('info', help='Show the code table of a compressed file')
    info_parser.add_argument('source', help='Compressed data path')
    info_parser.add_argument('-t', '--tree', help='Tree path (default: <source>.tree)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    compressor = FileCompressor(verbose=not getattr(args, 'quiet', False))

    try:
        if args.command == 'compress':
            output = args.output or default_compressed_path(args.source)
            stats = compressor.compress_file(args.source, output, args.tree)
            if args.stats:
                stats.print_stats()

        elif args.command == 'decompress':
            output = args.output or default_decompressed_path(args.source)
            compressor.decompress_file(args.source, output, args.tree)

        elif args.command == 'info':
            compressor.describe(args.source, args.tree)

    except HuffmanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
