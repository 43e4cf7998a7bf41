"""
Определяет пару файлов сжатого результата (данные + дерево)
и методы чтения/записи байтов на диск.
"""

import os
from typing import Optional
from dataclasses import dataclass

from errors import SourceNotFound, SinkWriteFailed


TREE_SUFFIX = '.tree'
COMPRESSED_SUFFIX = '.huff'
DECOMPRESSED_SUFFIX = '.out'


@dataclass
class ArtifactPaths:
    data_path: str
    tree_path: str

    @staticmethod
    def for_data(data_path: str, tree_path: Optional[str] = None) -> 'ArtifactPaths':
        return ArtifactPaths(
            data_path=data_path,
            tree_path=tree_path or data_path + TREE_SUFFIX
        )


def default_compressed_path(source_path: str) -> str:
    return source_path + COMPRESSED_SUFFIX


def default_decompressed_path(compressed_path: str) -> str:
    if compressed_path.endswith(COMPRESSED_SUFFIX) and len(compressed_path) > len(COMPRESSED_SUFFIX):
        return compressed_path[:-len(COMPRESSED_SUFFIX)]
    return compressed_path + DECOMPRESSED_SUFFIX


def read_all(path: str) -> bytes:
    if not os.path.isfile(path):
        raise SourceNotFound("File not found", path)

    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise SourceNotFound(f"Cannot read file ({e.strerror or e})", path) from e


def write_all(path: str, data: bytes):
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise SinkWriteFailed(f"Cannot write file ({e.strerror or e})", path) from e


def remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
