import unittest
import tempfile
import os
import sys
import random
import shutil
import contextlib
import io

from huffman import (HuffmanTree, BitStream, HuffmanEncoder,
                     count_frequencies)
from format import (ArtifactPaths, read_all, write_all, default_compressed_path,
                    default_decompressed_path)
from compressor import FileCompressor, CompressionStats
from errors import HuffmanError, SourceNotFound, SourceCorrupt, SinkWriteFailed
import main


def build_tree(data: bytes) -> HuffmanTree:
    tree = HuffmanTree()
    tree.build(count_frequencies(data))
    return tree


class TestFrequencyTable(unittest.TestCase):
    def test_counts(self):
        self.assertEqual(count_frequencies(b"abacabad"),
                         {ord('a'): 4, ord('b'): 2, ord('c'): 1, ord('d'): 1})

    def test_empty(self):
        self.assertEqual(count_frequencies(b""), {})

    def test_absent_symbols_not_listed(self):
        freqs = count_frequencies(b"\x00\xff\x00")
        self.assertEqual(set(freqs), {0, 255})


class TestHuffmanTree(unittest.TestCase):
    def test_empty_tree(self):
        tree = build_tree(b"")
        self.assertIsNone(tree.root)
        self.assertEqual(tree.codes, {})

    def test_single_symbol_is_leaf_root(self):
        tree = build_tree(b"aaaa")
        self.assertTrue(tree.root.is_leaf)
        self.assertEqual(tree.root.symbol, ord('a'))
        self.assertEqual(tree.codes, {ord('a'): '0'})

    def test_abacabad_codes(self):
        tree = build_tree(b"abacabad")
        codes = tree.codes
        shortest = min(len(code) for code in codes.values())
        self.assertEqual(len(codes[ord('a')]), shortest)
        self.assertEqual(codes, {
            ord('a'): '0',
            ord('b'): '10',
            ord('c'): '110',
            ord('d'): '111',
        })

    def test_ties_resolved_consistently(self):
        first = build_tree(b"abcdefgh")
        second = build_tree(b"hgfedcba")
        self.assertEqual(first.codes, second.codes)
        self.assertTrue(first.root.same_shape(second.root))

    def test_prefix_code(self):
        random.seed(7)
        data = bytes(random.choice(b"abcdefghijklmnop") for _ in range(2000))
        codes = list(build_tree(data).codes.values())
        for i, code in enumerate(codes):
            self.assertTrue(code)
            for j, other in enumerate(codes):
                if i != j:
                    self.assertFalse(other.startswith(code))

    def test_one_code_per_leaf(self):
        data = bytes(range(256))
        tree = build_tree(data)
        self.assertEqual(set(tree.codes), set(range(256)))
        self.assertTrue(all(len(code) == 8 for code in tree.codes.values()))

    def test_internal_nodes_have_two_children(self):
        def check(node):
            if node.is_leaf:
                self.assertIsNone(node.left)
                self.assertIsNone(node.right)
                return
            self.assertIsNotNone(node.left)
            self.assertIsNotNone(node.right)
            check(node.left)
            check(node.right)

        check(build_tree(b"The quick brown fox jumps over the lazy dog").root)


class TestTreeCodec(unittest.TestCase):
    def test_serialize_abacabad(self):
        self.assertEqual(build_tree(b"abacabad").serialize(), b"01a01b01c1d")

    def test_serialize_empty(self):
        self.assertEqual(HuffmanTree().serialize(), b"")
        self.assertIsNone(HuffmanTree.deserialize(b"").root)

    def test_serialize_single_leaf(self):
        self.assertEqual(build_tree(b"zzz").serialize(), b"1z")

    def test_shape_preserved(self):
        tree = build_tree(b"Lorem ipsum dolor sit amet " * 20)
        restored = HuffmanTree.deserialize(tree.serialize())
        self.assertTrue(tree.root.same_shape(restored.root))
        self.assertEqual(tree.codes, restored.codes)

    def test_symbol_bytes_matching_markers(self):
        tree = build_tree(b"0011100")
        restored = HuffmanTree.deserialize(tree.serialize())
        self.assertEqual(tree.codes, restored.codes)

    def test_truncated_tree(self):
        blob = build_tree(b"abacabad").serialize()
        for size in range(1, len(blob)):
            with self.assertRaises(SourceCorrupt):
                HuffmanTree.deserialize(blob[:size])

    def test_invalid_marker(self):
        with self.assertRaises(SourceCorrupt):
            HuffmanTree.deserialize(b"01a2b")

    def test_trailing_bytes(self):
        with self.assertRaises(SourceCorrupt):
            HuffmanTree.deserialize(b"1a1b")

    def test_duplicate_symbol(self):
        with self.assertRaises(SourceCorrupt):
            HuffmanTree.deserialize(b"01a1a")

    def test_too_deep(self):
        with self.assertRaises(SourceCorrupt):
            HuffmanTree.deserialize(b"0" * 1000)

    def test_deepest_valid_tree(self):
        # Веса Фибоначчи дают вырожденное дерево глубиной 255.
        weights = [1, 1]
        while len(weights) < 256:
            weights.append(weights[-1] + weights[-2])

        tree = HuffmanTree()
        tree.build({symbol: weight for symbol, weight in enumerate(weights)})
        self.assertEqual(max(len(code) for code in tree.codes.values()), 255)

        restored = HuffmanTree.deserialize(tree.serialize())
        self.assertTrue(tree.root.same_shape(restored.root))
        self.assertEqual(tree.codes, restored.codes)


class TestBitStream(unittest.TestCase):
    def test_pack(self):
        stream = BitStream()
        stream.write_bits("01001100100111")
        self.assertEqual(stream.to_bytes(), b"\x02\x4c\x9c")
        self.assertEqual(stream.padding, 2)

    def test_pack_empty(self):
        self.assertEqual(BitStream().to_bytes(), b"\x00")

    def test_padding_bound(self):
        for length in range(0, 40):
            stream = BitStream()
            stream.write_bits("1" * length)
            packed = stream.to_bytes()
            self.assertLessEqual(packed[0], 7)
            self.assertEqual(packed[0], (8 - length % 8) % 8)
            self.assertEqual(len(packed), 1 + (length + 7) // 8)

    def test_unpack(self):
        stream = BitStream.from_bytes(b"\x02\x4c\x9c")
        self.assertEqual("".join(map(str, stream.bits)), "01001100100111")

    def test_unpack_rejects_bad_padding(self):
        with self.assertRaises(SourceCorrupt):
            BitStream.from_bytes(b"\x08\xff")

    def test_unpack_rejects_missing_header(self):
        with self.assertRaises(SourceCorrupt):
            BitStream.from_bytes(b"")

    def test_unpack_rejects_padding_without_payload(self):
        with self.assertRaises(SourceCorrupt):
            BitStream.from_bytes(b"\x03")


class TestHuffmanEncoding(unittest.TestCase):
    def roundtrip(self, data):
        tree_data, encoded_data = HuffmanEncoder.encode(data)
        self.assertEqual(HuffmanEncoder.decode(tree_data, encoded_data), data)
        return tree_data, encoded_data

    def test_simple_huffman(self):
        self.roundtrip(b"aaabbc")

    def test_empty_huffman(self):
        tree_data, encoded_data = self.roundtrip(b"")
        self.assertEqual(tree_data, b"")
        self.assertEqual(encoded_data, b"\x00")

    def test_single_char(self):
        tree_data, encoded_data = self.roundtrip(b"aaaa")
        self.assertEqual(tree_data, b"1a")
        self.assertEqual(encoded_data, b"\x04\x00")

    def test_single_byte(self):
        self.roundtrip(b"\x00")

    def test_single_char_length_matters(self):
        _, short = HuffmanEncoder.encode(b"a" * 3)
        _, long = HuffmanEncoder.encode(b"a" * 300)
        self.assertNotEqual(short, long)

    def test_abacabad(self):
        tree_data, encoded_data = self.roundtrip(b"abacabad")
        self.assertEqual(encoded_data, b"\x02\x4c\x9c")

    def test_all_bytes(self):
        self.roundtrip(bytes(range(256)))

    def test_random_data(self):
        random.seed(42)
        self.roundtrip(bytes(random.randint(0, 255) for _ in range(5000)))

    def test_deterministic(self):
        data = b"The quick brown fox jumps over the lazy dog"
        self.assertEqual(HuffmanEncoder.encode(data), HuffmanEncoder.encode(data))

    def test_truncated_data(self):
        tree_data, encoded_data = HuffmanEncoder.encode(b"abacabad")
        # Drop the last two real bits so decoding stops inside the code for 'd'.
        with self.assertRaises(SourceCorrupt):
            HuffmanEncoder.decode(tree_data, b"\x04" + encoded_data[1:])

    def test_single_symbol_rejects_one_bits(self):
        with self.assertRaises(SourceCorrupt):
            HuffmanEncoder.decode(b"1a", b"\x04\x10")

    def test_empty_tree_ignores_data(self):
        self.assertEqual(HuffmanEncoder.decode(b"", b"\x00"), b"")


class TestFormat(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_artifact_paths(self):
        paths = ArtifactPaths.for_data("out.huff")
        self.assertEqual(paths.tree_path, "out.huff.tree")
        paths = ArtifactPaths.for_data("out.huff", "custom.tree")
        self.assertEqual(paths.tree_path, "custom.tree")

    def test_default_paths(self):
        self.assertEqual(default_compressed_path("a.txt"), "a.txt.huff")
        self.assertEqual(default_decompressed_path("a.txt.huff"), "a.txt")
        self.assertEqual(default_decompressed_path("a.bin"), "a.bin.out")

    def test_read_write(self):
        path = os.path.join(self.temp_dir, "data.bin")
        write_all(path, b"\x00\x01\x02")
        self.assertEqual(read_all(path), b"\x00\x01\x02")

    def test_read_missing(self):
        path = os.path.join(self.temp_dir, "missing.bin")
        with self.assertRaises(SourceNotFound) as ctx:
            read_all(path)
        self.assertEqual(ctx.exception.path, path)
        self.assertIn(path, str(ctx.exception))

    def test_write_failure(self):
        path = os.path.join(self.temp_dir, "no", "such", "dir", "data.bin")
        with self.assertRaises(SinkWriteFailed) as ctx:
            write_all(path, b"x")
        self.assertEqual(ctx.exception.path, path)

    def test_error_hierarchy(self):
        self.assertTrue(issubclass(SourceCorrupt, ValueError))
        for error in (SourceNotFound, SourceCorrupt, SinkWriteFailed):
            self.assertTrue(issubclass(error, HuffmanError))

    def test_with_path(self):
        error = SourceCorrupt("bad").with_path("x.tree")
        self.assertIsInstance(error, SourceCorrupt)
        self.assertEqual(str(error), "x.tree: bad")


class TestFileCompressor(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.compressor = FileCompressor(verbose=False)

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def path(self, name):
        return os.path.join(self.temp_dir, name)

    def write(self, name, data):
        with open(self.path(name), 'wb') as f:
            f.write(data)
        return self.path(name)

    def roundtrip(self, data):
        source = self.write("input.bin", data)
        compressed = self.path("input.huff")
        restored = self.path("restored.bin")

        self.compressor.compress_file(source, compressed)
        self.assertTrue(os.path.isfile(compressed))
        self.assertTrue(os.path.isfile(compressed + ".tree"))

        written = self.compressor.decompress_file(compressed, restored)
        self.assertEqual(written, len(data))
        self.assertEqual(read_all(restored), data)

    def test_roundtrip_text(self):
        self.roundtrip(b"Hello World! " * 100)

    def test_roundtrip_empty(self):
        self.roundtrip(b"")
        self.assertEqual(read_all(self.path("input.huff")), b"\x00")
        self.assertEqual(read_all(self.path("input.huff.tree")), b"")

    def test_roundtrip_single_symbol(self):
        self.roundtrip(b"aaaa")

    def test_roundtrip_all_bytes(self):
        self.roundtrip(bytes(range(256)) * 3)

    def test_stats(self):
        source = self.write("input.txt", b"Hello World! " * 100)
        stats = self.compressor.compress_file(source, self.path("input.huff"))
        self.assertIsInstance(stats, CompressionStats)
        self.assertEqual(stats.original_size, 1300)
        self.assertEqual(stats.symbol_count, len(set(b"Hello World! ")))
        self.assertLess(stats.total_size, stats.original_size)
        self.assertEqual(stats.tree_size, os.path.getsize(self.path("input.huff.tree")))

    def test_tree_override(self):
        source = self.write("input.txt", b"abacabad")
        compressed = self.path("data.huff")
        tree = self.path("side.tree")

        self.compressor.compress_file(source, compressed, tree)
        self.assertTrue(os.path.isfile(tree))
        self.assertFalse(os.path.exists(compressed + ".tree"))

        restored = self.path("restored.txt")
        self.compressor.decompress_file(compressed, restored, tree)
        self.assertEqual(read_all(restored), b"abacabad")

    def test_missing_source_writes_nothing(self):
        compressed = self.path("out.huff")
        with self.assertRaises(SourceNotFound):
            self.compressor.compress_file(self.path("missing.txt"), compressed)
        self.assertFalse(os.path.exists(compressed))
        self.assertFalse(os.path.exists(compressed + ".tree"))

    def test_unwritable_data_removes_tree(self):
        source = self.write("input.txt", b"abc")
        compressed = self.path(os.path.join("missing_dir", "out.huff"))
        tree = self.path("out.tree")

        with self.assertRaises(SinkWriteFailed) as ctx:
            self.compressor.compress_file(source, compressed, tree)
        self.assertEqual(ctx.exception.path, compressed)
        self.assertFalse(os.path.exists(tree))

    def test_same_tree_and_data_path(self):
        source = self.write("input.txt", b"abacabad")
        compressed = self.path("out.huff")
        same = os.path.join(self.temp_dir, ".", "out.huff")

        with self.assertRaises(SinkWriteFailed) as ctx:
            self.compressor.compress_file(source, compressed, same)
        self.assertEqual(ctx.exception.path, same)
        self.assertFalse(os.path.exists(compressed))

    def test_unwritable_destination(self):
        source = self.write("input.txt", b"abacabad")
        compressed = self.path("input.huff")
        self.compressor.compress_file(source, compressed)

        destination = self.path(os.path.join("missing_dir", "out.txt"))
        with self.assertRaises(SinkWriteFailed) as ctx:
            self.compressor.decompress_file(compressed, destination)
        self.assertEqual(ctx.exception.path, destination)

    def test_missing_tree(self):
        source = self.write("input.txt", b"abc")
        compressed = self.path("input.huff")
        self.compressor.compress_file(source, compressed)
        os.remove(compressed + ".tree")

        with self.assertRaises(SourceNotFound) as ctx:
            self.compressor.decompress_file(compressed, self.path("out.txt"))
        self.assertEqual(ctx.exception.path, compressed + ".tree")
        self.assertFalse(os.path.exists(self.path("out.txt")))

    def test_corrupt_tree_names_tree_path(self):
        compressed = self.write("input.huff", b"\x00\x00")
        self.write("input.huff.tree", b"01a")

        with self.assertRaises(SourceCorrupt) as ctx:
            self.compressor.decompress_file(compressed, self.path("out.txt"))
        self.assertEqual(ctx.exception.path, compressed + ".tree")

    def test_corrupt_data_names_data_path(self):
        compressed = self.write("input.huff", b"\x09\x00")
        self.write("input.huff.tree", b"01a1b")

        with self.assertRaises(SourceCorrupt) as ctx:
            self.compressor.decompress_file(compressed, self.path("out.txt"))
        self.assertEqual(ctx.exception.path, compressed)
        self.assertFalse(os.path.exists(self.path("out.txt")))

    def test_describe(self):
        source = self.write("input.txt", b"abacabad")
        compressed = self.path("input.huff")
        self.compressor.compress_file(source, compressed)

        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            self.compressor.describe(compressed)

        text = output.getvalue()
        self.assertIn("Padding bits: 2", text)
        self.assertIn("'a'", text)
        self.assertIn("4 symbols", text)


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_compress_and_decompress(self):
        source = os.path.join(self.temp_dir, "file.txt")
        with open(source, 'wb') as f:
            f.write(b"Content of file\n" * 50)

        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(main.main(['compress', source, '-q']), 0)
            self.assertTrue(os.path.isfile(source + ".huff"))
            self.assertTrue(os.path.isfile(source + ".huff.tree"))

            os.rename(source, source + ".orig")
            self.assertEqual(main.main(['decompress', source + ".huff", '-q']), 0)

        self.assertEqual(read_all(source), read_all(source + ".orig"))

    def test_tree_override_stats_and_info(self):
        source = os.path.join(self.temp_dir, "file.txt")
        compressed = os.path.join(self.temp_dir, "data.huff")
        tree = os.path.join(self.temp_dir, "side.tree")
        restored = os.path.join(self.temp_dir, "restored.txt")
        with open(source, 'wb') as f:
            f.write(b"abacabad")

        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            self.assertEqual(main.main(['compress', source, '-o', compressed,
                                        '-t', tree, '-q', '-s']), 0)
        self.assertIn("Compression ratio:", output.getvalue())
        self.assertTrue(os.path.isfile(tree))
        self.assertFalse(os.path.exists(compressed + ".tree"))

        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            self.assertEqual(main.main(['info', compressed, '-t', tree]), 0)
        self.assertIn("Padding bits: 2", output.getvalue())
        self.assertIn("4 symbols", output.getvalue())

        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(main.main(['decompress', compressed, '-o', restored,
                                        '-t', tree, '-q']), 0)
        self.assertEqual(read_all(restored), b"abacabad")

    def test_same_tree_and_data_path_exit_status(self):
        source = os.path.join(self.temp_dir, "file.txt")
        compressed = os.path.join(self.temp_dir, "x.huff")
        with open(source, 'wb') as f:
            f.write(b"abc")

        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            self.assertEqual(main.main(['compress', source, '-o', compressed,
                                        '-t', compressed, '-q']), 1)
        self.assertIn("Tree path must differ from data path", stderr.getvalue())
        self.assertFalse(os.path.exists(compressed))

    def test_missing_source_exit_status(self):
        stderr = io.StringIO()
        missing = os.path.join(self.temp_dir, "missing.txt")
        with contextlib.redirect_stderr(stderr):
            self.assertEqual(main.main(['compress', missing, '-q']), 1)
        self.assertIn(missing, stderr.getvalue())

    def test_no_command(self):
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(main.main([]), 0)


def run_tests():
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestFrequencyTable))
    suite.addTests(loader.loadTestsFromTestCase(TestHuffmanTree))
    suite.addTests(loader.loadTestsFromTestCase(TestTreeCodec))
    suite.addTests(loader.loadTestsFromTestCase(TestBitStream))
    suite.addTests(loader.loadTestsFromTestCase(TestHuffmanEncoding))
    suite.addTests(loader.loadTestsFromTestCase(TestFormat))
    suite.addTests(loader.loadTestsFromTestCase(TestFileCompressor))
    suite.addTests(loader.loadTestsFromTestCase(TestCommandLine))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
