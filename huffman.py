"""
Реализует кодирование Хаффмана для сжатия файлов.
Использует переменную длину кодов: частые байты кодируются короче.
Дерево хранится отдельно от сжатых данных и передаётся декодеру как есть.
"""

import struct
import io
import heapq
from typing import Dict, List, Optional, Tuple
from collections import Counter

from errors import SourceCorrupt


LEAF_MARKER = b'1'
INTERNAL_MARKER = b'0'
MAX_TREE_DEPTH = 255


def count_frequencies(data: bytes) -> Dict[int, int]:
    return dict(Counter(data))


class HuffmanNode:
    def __init__(self, symbol: Optional[int] = None, freq: int = 0,
                 left: Optional['HuffmanNode'] = None,
                 right: Optional['HuffmanNode'] = None,
                 order: int = 0):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        self.order = order

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    def __lt__(self, other):
        return (self.freq, self.order) < (other.freq, other.order)

    def same_shape(self, other: Optional['HuffmanNode']) -> bool:
        if other is None or self.is_leaf != other.is_leaf:
            return False
        if self.is_leaf:
            return self.symbol == other.symbol
        return self.left.same_shape(other.left) and self.right.same_shape(other.right)


class HuffmanTree:
    def __init__(self, root: Optional[HuffmanNode] = None):
        self.root = root
        self.codes: Dict[int, str] = {}
        self._generate_codes()

    def build(self, frequencies: Dict[int, int]):
        self.root = None

        if not frequencies:
            self._generate_codes()
            return

        # Листья упорядочены по символу, узлы по порядку слияния:
        # при равных весах дерево всегда одно и то же.
        heap = [HuffmanNode(symbol=symbol, freq=freq, order=symbol)
                for symbol, freq in frequencies.items()]
        heapq.heapify(heap)

        merges = 0
        while len(heap) > 1:
            left = heapq.heappop(heap)
            right = heapq.heappop(heap)

            parent = HuffmanNode(freq=left.freq + right.freq,
                                 left=left, right=right, order=256 + merges)
            merges += 1
            heapq.heappush(heap, parent)

        self.root = heap[0]
        self._generate_codes()

    def _generate_codes(self):
        self.codes.clear()

        if not self.root:
            return

        # Единственному листу-корню нужен один бит на каждое вхождение.
        if self.root.is_leaf:
            self.codes[self.root.symbol] = '0'
            return

        def traverse(node: HuffmanNode, code: str):
            if node.is_leaf:
                self.codes[node.symbol] = code
                return

            traverse(node.left, code + '0')
            traverse(node.right, code + '1')

        traverse(self.root, '')

    def serialize(self) -> bytes:
        output = io.BytesIO()

        def write_node(node: HuffmanNode):
            if node.is_leaf:
                output.write(LEAF_MARKER)
                output.write(struct.pack('B', node.symbol))
                return

            output.write(INTERNAL_MARKER)
            write_node(node.left)
            write_node(node.right)

        if self.root:
            write_node(self.root)

        return output.getvalue()

    @staticmethod
    def deserialize(data: bytes) -> 'HuffmanTree':
        if not data:
            return HuffmanTree()

        pos = 0
        seen = set()

        def read_node(depth: int) -> HuffmanNode:
            nonlocal pos

            if depth > MAX_TREE_DEPTH:
                raise SourceCorrupt(f"Tree is deeper than {MAX_TREE_DEPTH} levels")
            if pos >= len(data):
                raise SourceCorrupt("Tree data ends in the middle of a node")

            marker = data[pos:pos+1]
            pos += 1

            if marker == LEAF_MARKER:
                if pos >= len(data):
                    raise SourceCorrupt("Tree data ends before a leaf symbol")
                symbol = data[pos]
                pos += 1

                if symbol in seen:
                    raise SourceCorrupt(f"Symbol 0x{symbol:02x} appears twice in tree")
                seen.add(symbol)
                return HuffmanNode(symbol=symbol)

            if marker != INTERNAL_MARKER:
                raise SourceCorrupt(f"Invalid tree marker 0x{marker[0]:02x} at offset {pos - 1}")

            left = read_node(depth + 1)
            right = read_node(depth + 1)
            return HuffmanNode(left=left, right=right)

        root = read_node(0)

        if pos != len(data):
            raise SourceCorrupt(f"Unexpected {len(data) - pos} trailing bytes after tree")

        return HuffmanTree(root)

    def decode_bits(self, bits: List[int]) -> bytes:
        output = bytearray()

        if not self.root:
            return bytes(output)

        if self.root.is_leaf:
            for bit in bits:
                if bit:
                    raise SourceCorrupt("Unexpected 1 bit for single-symbol tree")
                output.append(self.root.symbol)
            return bytes(output)

        node = self.root
        for bit in bits:
            node = node.right if bit else node.left

            if node.is_leaf:
                output.append(node.symbol)
                node = self.root

        if node is not self.root:
            raise SourceCorrupt("Bit stream ends in the middle of a code")

        return bytes(output)


class BitStream:
    def __init__(self):
        self.bits: List[int] = []
        self.padding = 0

    def __len__(self):
        return len(self.bits)

    def write_bit(self, bit: int):
        self.bits.append(1 if bit else 0)

    def write_bits(self, code: str):
        for bit in code:
            self.write_bit(int(bit))

    def to_bytes(self) -> bytes:
        padding = (8 - len(self.bits) % 8) % 8
        bits = self.bits + [0] * padding
        self.padding = padding

        output = io.BytesIO()
        output.write(struct.pack('B', padding))

        for i in range(0, len(bits), 8):
            byte = 0
            for j in range(8):
                byte = (byte << 1) | bits[i + j]
            output.write(struct.pack('B', byte))

        return output.getvalue()

    @staticmethod
    def from_bytes(data: bytes) -> 'BitStream':
        if not data:
            raise SourceCorrupt("Encoded data is missing the padding byte")

        padding = data[0]
        if padding > 7:
            raise SourceCorrupt(f"Invalid padding count: {padding}")
        if padding and len(data) < 2:
            raise SourceCorrupt(f"Padding count {padding} without encoded bytes")

        stream = BitStream()
        stream.padding = padding

        for i in range(1, len(data)):
            byte = data[i]
            for j in range(7, -1, -1):
                stream.bits.append((byte >> j) & 1)

        if padding > 0:
            stream.bits = stream.bits[:-padding]

        return stream


class HuffmanEncoder:
    @staticmethod
    def encode(data: bytes) -> Tuple[bytes, bytes]:
        tree = HuffmanTree()
        tree.build(count_frequencies(data))

        bitstream = BitStream()
        for byte in data:
            bitstream.write_bits(tree.codes[byte])

        tree_data = tree.serialize()
        encoded_data = bitstream.to_bytes()

        return tree_data, encoded_data

    @staticmethod
    def decode(tree_data: bytes, encoded_data: bytes) -> bytes:
        tree = HuffmanTree.deserialize(tree_data)

        if not tree.root:
            return b''

        bitstream = BitStream.from_bytes(encoded_data)
        return tree.decode_bits(bitstream.bits)
