"""
Главный класс для сжатия и разжатия файлов.

Сжатие создаёт два файла: сами данные и дерево Хаффмана рядом с ними
(по умолчанию с суффиксом .tree). Без дерева данные не восстановить.
"""

import os
from typing import Optional

from errors import SourceCorrupt, SinkWriteFailed
from format import ArtifactPaths, read_all, write_all, remove_quietly
from huffman import HuffmanTree, BitStream, HuffmanEncoder, count_frequencies


class CompressionStats:
    def __init__(self, original_size: int, compressed_size: int,
                 tree_size: int, symbol_count: int):
        self.original_size = original_size
        self.compressed_size = compressed_size
        self.tree_size = tree_size
        self.symbol_count = symbol_count

        self.total_size = compressed_size + tree_size

        self.compression_ratio = (
            self.total_size / original_size * 100
            if original_size > 0 else 0
        )

    def print_stats(self):
        print(f"Huffman Compression Statistics:")
        print(f"  Original size:       {self.original_size} bytes")
        print(f"  Distinct symbols:    {self.symbol_count}")
        print(f"  Encoded data:        {self.compressed_size} bytes")
        print(f"  Tree:                {self.tree_size} bytes")
        print(f"  Total compressed:    {self.total_size} bytes")
        print(f"  Compression ratio:   {self.compression_ratio:.1f}%")


class FileCompressor:
    def __init__(self, verbose: bool = True):
        self.verbose = verbose

    def _report(self, message: str, end: str = "\n"):
        if self.verbose:
            print(message, end=end, flush=True)

    def compress_file(self, source_path: str, destination_path: str,
                      tree_path: Optional[str] = None) -> CompressionStats:
        paths = ArtifactPaths.for_data(destination_path, tree_path)

        if os.path.abspath(paths.tree_path) == os.path.abspath(paths.data_path):
            raise SinkWriteFailed("Tree path must differ from data path", paths.tree_path)

        data = read_all(source_path)

        self._report(f"Compressing {source_path}...", end=" ")

        tree_data, encoded_data = HuffmanEncoder.encode(data)

        self._write_pair(paths, tree_data, encoded_data)

        stats = CompressionStats(
            original_size=len(data),
            compressed_size=len(encoded_data),
            tree_size=len(tree_data),
            symbol_count=len(count_frequencies(data))
        )

        self._report(f"OK ({stats.compression_ratio:.1f}%)")
        self._report(f"Data: {paths.data_path}")
        self._report(f"Tree: {paths.tree_path}")

        return stats

    def _write_pair(self, paths: ArtifactPaths, tree_data: bytes, encoded_data: bytes):
        write_all(paths.tree_path, tree_data)

        try:
            write_all(paths.data_path, encoded_data)
        except SinkWriteFailed:
            remove_quietly(paths.tree_path)
            raise

    def decompress_file(self, source_path: str, destination_path: str,
                        tree_path: Optional[str] = None) -> int:
        paths = ArtifactPaths.for_data(source_path, tree_path)

        tree_data = read_all(paths.tree_path)
        encoded_data = read_all(paths.data_path)

        self._report(f"Decompressing {paths.data_path}...", end=" ")

        tree = self._load_tree(paths, tree_data)

        if tree.root is None:
            decompressed = b''
        else:
            try:
                bitstream = BitStream.from_bytes(encoded_data)
                decompressed = tree.decode_bits(bitstream.bits)
            except SourceCorrupt as e:
                raise e.with_path(paths.data_path) from e

        write_all(destination_path, decompressed)

        if tree.root is None:
            self._report("OK (input was empty)")
        else:
            self._report(f"OK ({len(decompressed)} bytes)")
        self._report(f"Output: {destination_path}")

        return len(decompressed)

    @staticmethod
    def _load_tree(paths: ArtifactPaths, tree_data: bytes) -> HuffmanTree:
        try:
            return HuffmanTree.deserialize(tree_data)
        except SourceCorrupt as e:
            raise e.with_path(paths.tree_path) from e

    def describe(self, source_path: str, tree_path: Optional[str] = None):
        paths = ArtifactPaths.for_data(source_path, tree_path)

        tree_data = read_all(paths.tree_path)
        tree = self._load_tree(paths, tree_data)
        encoded_data = read_all(paths.data_path)

        try:
            bitstream = BitStream.from_bytes(encoded_data)
        except SourceCorrupt as e:
            raise e.with_path(paths.data_path) from e

        print(f"Data file: {paths.data_path} ({len(encoded_data)} bytes)")
        print(f"Tree file: {paths.tree_path} ({len(tree_data)} bytes)")
        print(f"Padding bits: {bitstream.padding}")
        print(f"Encoded bits: {len(bitstream)}")
        print()

        if not tree.codes:
            print("Empty tree (original input was empty)")
            return

        print(f"{'Symbol':<10} {'Bits':>6}  {'Code'}")
        print("-" * 50)

        for symbol, code in sorted(tree.codes.items(), key=lambda item: (len(item[1]), item[0])):
            print(f"{symbol_label(symbol):<10} {len(code):>6}  {code}")

        print("-" * 50)
        print(f"{len(tree.codes)} symbols")


def symbol_label(symbol: int) -> str:
    char = chr(symbol)
    if char.isprintable() and symbol < 128 and char != ' ':
        return f"'{char}'"
    return f"0x{symbol:02x}"
