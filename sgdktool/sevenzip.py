"""Extraction of 7z archives using the lzma module's raw codecs."""

from __future__ import annotations

import lzma
import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import SgdkToolError

SIGNATURE = b"7z\xbc\xaf\x27\x1c"
_START_HEADER_SIZE = 32

_END = 0x00
_HEADER = 0x01
_ARCHIVE_PROPERTIES = 0x02
_ADDITIONAL_STREAMS_INFO = 0x03
_MAIN_STREAMS_INFO = 0x04
_FILES_INFO = 0x05
_PACK_INFO = 0x06
_UNPACK_INFO = 0x07
_SUBSTREAMS_INFO = 0x08
_SIZE = 0x09
_CRC = 0x0A
_FOLDER = 0x0B
_CODERS_UNPACK_SIZE = 0x0C
_NUM_UNPACK_STREAM = 0x0D
_EMPTY_STREAM = 0x0E
_EMPTY_FILE = 0x0F
_NAME = 0x11
_ENCODED_HEADER = 0x17

_COPY = b"\x00"
_LZMA2 = b"\x21"
_LZMA1 = b"\x03\x01\x01"
_DELTA = b"\x03"
_AES = b"\x06\xf1\x07\x01"
_BRANCH_FILTERS = {
    b"\x03\x03\x01\x03": lzma.FILTER_X86,
    b"\x03\x03\x02\x05": lzma.FILTER_POWERPC,
    b"\x03\x03\x04\x01": lzma.FILTER_IA64,
    b"\x03\x03\x05\x01": lzma.FILTER_ARM,
    b"\x03\x03\x07\x01": lzma.FILTER_ARMTHUMB,
    b"\x03\x03\x08\x05": lzma.FILTER_SPARC,
}


class SevenZipError(SgdkToolError):
    """The archive is malformed or uses an unsupported feature."""


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def byte(self) -> int:
        if self.pos >= len(self.data):
            raise SevenZipError("unexpected end of header")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def take(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise SevenZipError("unexpected end of header")
        chunk = self.data[self.pos : self.pos + size]
        self.pos += size
        return chunk

    def number(self) -> int:
        first = self.byte()
        for extra in range(8):
            mask = 0x80 >> extra
            if not first & mask:
                low = int.from_bytes(self.take(extra), "little")
                return low | ((first & (mask - 1)) << (8 * extra))
        return int.from_bytes(self.take(8), "little")

    def uint32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def bits(self, count: int) -> list[bool]:
        result: list[bool] = []
        current = 0
        for index in range(count):
            if index % 8 == 0:
                current = self.byte()
            result.append(bool(current & (0x80 >> (index % 8))))
        return result

    def defined(self, count: int) -> list[bool]:
        all_defined = self.byte()
        return [True] * count if all_defined else self.bits(count)

    def digests(self, count: int) -> list[int | None]:
        return [self.uint32() if flag else None for flag in self.defined(count)]


@dataclass
class _Coder:
    method: bytes
    num_in: int
    num_out: int
    props: bytes = b""


@dataclass
class _Folder:
    coders: list[_Coder]
    bind_pairs: list[tuple[int, int]]
    packed: list[int]
    unpack_sizes: list[int] = field(default_factory=list)
    crc: int | None = None

    def main_output(self) -> int:
        bound = {out_index for _, out_index in self.bind_pairs}
        total = sum(c.num_out for c in self.coders)
        return next(i for i in range(total) if i not in bound)

    @property
    def unpack_size(self) -> int:
        return self.unpack_sizes[self.main_output()]


@dataclass
class _StreamsInfo:
    pack_pos: int = 0
    pack_sizes: list[int] = field(default_factory=list)
    folders: list[_Folder] = field(default_factory=list)
    substream_counts: list[int] = field(default_factory=list)
    substream_sizes: list[int] = field(default_factory=list)


@dataclass
class _Entry:
    name: str = ""
    has_stream: bool = True
    is_dir: bool = False


def _read_pack_info(reader: _Reader, info: _StreamsInfo) -> None:
    info.pack_pos = reader.number()
    count = reader.number()
    while (prop := reader.byte()) != _END:
        if prop == _SIZE:
            info.pack_sizes = [reader.number() for _ in range(count)]
        elif prop == _CRC:
            reader.digests(count)
        else:
            raise SevenZipError(f"unexpected property {prop:#x} in pack info")


def _read_folder(reader: _Reader) -> _Folder:
    coders: list[_Coder] = []
    for _ in range(reader.number()):
        flags = reader.byte()
        method = reader.take(flags & 0x0F)
        if flags & 0x10:
            num_in, num_out = reader.number(), reader.number()
        else:
            num_in, num_out = 1, 1
        props = reader.take(reader.number()) if flags & 0x20 else b""
        if flags & 0x80:
            raise SevenZipError("alternative coder methods are not supported")
        coders.append(_Coder(method, num_in, num_out, props))
    total_in = sum(c.num_in for c in coders)
    total_out = sum(c.num_out for c in coders)
    bind_pairs = [(reader.number(), reader.number()) for _ in range(total_out - 1)]
    num_packed = total_in - len(bind_pairs)
    if num_packed == 1:
        bound_in = {in_index for in_index, _ in bind_pairs}
        packed = [next(i for i in range(total_in) if i not in bound_in)]
    else:
        packed = [reader.number() for _ in range(num_packed)]
    return _Folder(coders, bind_pairs, packed)


def _read_unpack_info(reader: _Reader, info: _StreamsInfo) -> None:
    if reader.byte() != _FOLDER:
        raise SevenZipError("folder list expected")
    count = reader.number()
    if reader.byte():
        raise SevenZipError("external folder data is not supported")
    info.folders = [_read_folder(reader) for _ in range(count)]
    if reader.byte() != _CODERS_UNPACK_SIZE:
        raise SevenZipError("coder unpack sizes expected")
    for folder in info.folders:
        total_out = sum(c.num_out for c in folder.coders)
        folder.unpack_sizes = [reader.number() for _ in range(total_out)]
    while (prop := reader.byte()) != _END:
        if prop == _CRC:
            for folder, crc in zip(info.folders, reader.digests(count)):
                folder.crc = crc
        else:
            raise SevenZipError(f"unexpected property {prop:#x} in unpack info")


def _read_substreams_info(reader: _Reader, info: _StreamsInfo) -> None:
    counts = [1] * len(info.folders)
    sizes: list[int] | None = None
    while (prop := reader.byte()) != _END:
        if prop == _NUM_UNPACK_STREAM:
            counts = [reader.number() for _ in info.folders]
        elif prop == _SIZE:
            sizes = []
            for folder, count in zip(info.folders, counts):
                if count == 0:
                    continue
                parts = [reader.number() for _ in range(count - 1)]
                sizes.extend(parts)
                sizes.append(folder.unpack_size - sum(parts))
        elif prop == _CRC:
            unknown = sum(
                count
                for folder, count in zip(info.folders, counts)
                if count != 1 or folder.crc is None
            )
            reader.digests(unknown)
        else:
            raise SevenZipError(f"unexpected property {prop:#x} in substreams info")
    if sizes is None:
        sizes = []
        for folder, count in zip(info.folders, counts):
            if count == 1:
                sizes.append(folder.unpack_size)
            elif count > 1:
                raise SevenZipError("substream sizes missing")
    info.substream_counts = counts
    info.substream_sizes = sizes


def _read_streams_info(reader: _Reader) -> _StreamsInfo:
    info = _StreamsInfo()
    substreams_seen = False
    while (prop := reader.byte()) != _END:
        if prop == _PACK_INFO:
            _read_pack_info(reader, info)
        elif prop == _UNPACK_INFO:
            _read_unpack_info(reader, info)
        elif prop == _SUBSTREAMS_INFO:
            _read_substreams_info(reader, info)
            substreams_seen = True
        else:
            raise SevenZipError(f"unexpected property {prop:#x} in streams info")
    if not substreams_seen:
        info.substream_counts = [1] * len(info.folders)
        info.substream_sizes = [f.unpack_size for f in info.folders]
    return info


def _read_files_info(reader: _Reader) -> list[_Entry]:
    count = reader.number()
    entries = [_Entry() for _ in range(count)]
    empty_stream = [False] * count
    empty_file: list[bool] = []
    while (prop := reader.byte()) != _END:
        size = reader.number()
        body = _Reader(reader.take(size))
        if prop == _EMPTY_STREAM:
            empty_stream = body.bits(count)
        elif prop == _EMPTY_FILE:
            empty_file = body.bits(sum(empty_stream))
        elif prop == _NAME:
            if body.byte():
                raise SevenZipError("external file names are not supported")
            names = body.data[body.pos :].decode("utf-16-le").split("\0")
            for entry, name in zip(entries, names):
                entry.name = name
    empty_iter = iter(empty_file)
    for entry, is_empty in zip(entries, empty_stream):
        if is_empty:
            entry.has_stream = False
            entry.is_dir = not next(empty_iter, False)
    return entries


def _lzma2_dict_size(prop: int) -> int:
    if prop > 40:
        raise SevenZipError("invalid LZMA2 dictionary size")
    if prop == 40:
        return 0xFFFFFFFF
    return (2 | (prop & 1)) << (prop // 2 + 11)


def _filter_for(coder: _Coder) -> dict | None:
    method, props = coder.method, coder.props
    if method == _COPY:
        return None
    if method == _LZMA2:
        if not props:
            raise SevenZipError("LZMA2 properties missing")
        return {"id": lzma.FILTER_LZMA2, "dict_size": _lzma2_dict_size(props[0])}
    if method == _LZMA1:
        if len(props) < 5:
            raise SevenZipError("LZMA properties missing")
        value = props[0]
        lc, value = value % 9, value // 9
        lp, pb = value % 5, value // 5
        return {
            "id": lzma.FILTER_LZMA1,
            "lc": lc,
            "lp": lp,
            "pb": pb,
            "dict_size": int.from_bytes(props[1:5], "little"),
        }
    if method == _DELTA:
        return {"id": lzma.FILTER_DELTA, "dist": (props[0] + 1) if props else 1}
    if method in _BRANCH_FILTERS:
        return {"id": _BRANCH_FILTERS[method]}
    if method == _AES:
        raise SevenZipError("encrypted archives are not supported")
    raise SevenZipError(f"unsupported compression method {method.hex()}")


def _coder_chain(folder: _Folder) -> list[_Coder]:
    if any(c.num_in != 1 or c.num_out != 1 for c in folder.coders):
        raise SevenZipError("complex coders are not supported")
    chain = []
    current = folder.main_output()
    while True:
        chain.append(folder.coders[current])
        pair = next((p for p in folder.bind_pairs if p[0] == current), None)
        if pair is None:
            return chain
        current = pair[1]


def _decode_folder(folder: _Folder, packed: bytes) -> bytes:
    filters = [f for f in map(_filter_for, _coder_chain(folder)) if f is not None]
    if not filters:
        data = packed
    else:
        try:
            decompressor = lzma.LZMADecompressor(format=lzma.FORMAT_RAW, filters=filters)
            data = decompressor.decompress(packed, max_length=folder.unpack_size)
        except lzma.LZMAError as exc:
            raise SevenZipError(f"decompression failed: {exc}") from exc
    if len(data) < folder.unpack_size:
        raise SevenZipError("archive data is truncated")
    data = data[: folder.unpack_size]
    if folder.crc is not None and zlib.crc32(data) != folder.crc:
        raise SevenZipError("CRC mismatch in archive data")
    return data


def _unpack_folders(archive: bytes, info: _StreamsInfo) -> list[bytes]:
    offset = _START_HEADER_SIZE + info.pack_pos
    sizes = iter(info.pack_sizes)
    outputs = []
    for folder in info.folders:
        if len(folder.packed) != 1:
            raise SevenZipError("folders with several packed streams are not supported")
        size = next(sizes, None)
        if size is None:
            raise SevenZipError("pack size missing")
        packed = archive[offset : offset + size]
        offset += size
        outputs.append(_decode_folder(folder, packed))
    return outputs


def _safe_target(dest: Path, name: str) -> Path:
    parts = PurePosixPath(name.replace("\\", "/")).parts
    clean = [p for p in parts if p not in ("", ".", "/")]
    if not clean or ".." in clean or name.startswith(("/", "\\")):
        raise SevenZipError(f"unsafe path in archive: {name!r}")
    return dest.joinpath(*clean)


def extract_7z(archive_path: Path | str, dest_dir: Path | str) -> list[Path]:
    """Extract a 7z archive into *dest_dir* and return the paths written."""
    archive = Path(archive_path).read_bytes()
    if len(archive) < _START_HEADER_SIZE or not archive.startswith(SIGNATURE):
        raise SevenZipError("not a 7z archive")
    start_crc = struct.unpack_from("<I", archive, 8)[0]
    if zlib.crc32(archive[12:32]) != start_crc:
        raise SevenZipError("start header CRC mismatch")
    next_offset, next_size, next_crc = struct.unpack_from("<QQI", archive, 12)
    header_start = _START_HEADER_SIZE + next_offset
    header = archive[header_start : header_start + next_size]
    if len(header) != next_size or zlib.crc32(header) != next_crc:
        raise SevenZipError("header CRC mismatch")

    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    if not header:
        return []

    reader = _Reader(header)
    while (kind := reader.byte()) == _ENCODED_HEADER:
        info = _read_streams_info(reader)
        reader = _Reader(b"".join(_unpack_folders(archive, info)))
    if kind != _HEADER:
        raise SevenZipError("archive header expected")

    info = _StreamsInfo()
    entries: list[_Entry] = []
    while (prop := reader.byte()) != _END:
        if prop == _ARCHIVE_PROPERTIES:
            while reader.byte() != _END:
                reader.take(reader.number())
        elif prop == _ADDITIONAL_STREAMS_INFO:
            _read_streams_info(reader)
        elif prop == _MAIN_STREAMS_INFO:
            info = _read_streams_info(reader)
        elif prop == _FILES_INFO:
            entries = _read_files_info(reader)
        else:
            raise SevenZipError(f"unexpected property {prop:#x} in header")

    streams: list[bytes] = []
    sizes = iter(info.substream_sizes)
    for data, count in zip(_unpack_folders(archive, info), info.substream_counts):
        offset = 0
        for _ in range(count):
            size = next(sizes)
            streams.append(data[offset : offset + size])
            offset += size

    written: list[Path] = []
    stream_iter = iter(streams)
    for entry in entries:
        target = _safe_target(dest, entry.name)
        if entry.is_dir:
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            content = next(stream_iter, None) if entry.has_stream else b""
            if content is None:
                raise SevenZipError("archive has fewer streams than files")
            target.write_bytes(content)
        written.append(target)
    return written