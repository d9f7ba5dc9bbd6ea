import struct
from typing import Callable, Optional, Tuple

from bitops import BitReader, BitWriter
from errors import (
    InvalidFormatError,
    TruncatedPayloadError,
    TruncatedTreeError,
)
from frequency import FrequencyTable
from huffman import HuffmanTree

MAGIC = b"HUF1"  #: Container format marker
TREE_DELIMITER = b"#"  #: Byte closing the serialized tree section
LENGTH_FORMAT = "<Q"  #: Original byte count, unsigned 64-bit little-endian
PADDING_FORMAT = "<B"  #: Padding length byte

LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)
PADDING_SIZE = struct.calcsize(PADDING_FORMAT)
EMPTY_CONTAINER_SIZE = len(MAGIC) + len(TREE_DELIMITER) + LENGTH_SIZE + PADDING_SIZE

PROGRESS_STEP = 1 << 16  #: Bytes between two progress reports

ProgressCallback = Callable[[int, int], None]


class HuffmanCodec:
    """Static Huffman coder producing self-describing containers.

    Container layout:

    - Marker: ``HUF1`` (4 bytes)
    - Serialized tree, zero-filled to a byte boundary, then ``#``
    - Original size: uint64, little-endian
    - Padding length: uint8 (0-7)
    - Packed code bits, MSB first

    An empty input has an empty tree section. Each call works on its own
    frequency table, tree and code map, so one instance can be reused.
    """

    def encode(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Compress raw ``data``.

        :param data: Input bytes to compress.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            reporting input bytes processed, ending with
                            ``(len(data), len(data))``.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Container bytes.
        :rtype: bytes
        """
        total = len(data)
        if not data:
            if on_progress is not None:
                on_progress(0, 0)
            return b"".join((
                MAGIC,
                TREE_DELIMITER,
                struct.pack(LENGTH_FORMAT, 0),
                struct.pack(PADDING_FORMAT, 0),
            ))

        table = FrequencyTable.build(data)
        tree = HuffmanTree.from_frequencies(table)
        codes = tree.code_map()

        header = BitWriter()
        tree.serialize(header)

        payload = BitWriter()
        for done, symbol in enumerate(data, 1):
            code, code_len = codes[symbol]
            payload.write_bits(code, code_len)
            if on_progress is not None and done % PROGRESS_STEP == 0:
                on_progress(done, total)
        packed = payload.flush()

        if on_progress is not None:
            on_progress(total, total)

        return b"".join((
            MAGIC,
            header.flush(),
            TREE_DELIMITER,
            struct.pack(LENGTH_FORMAT, total),
            struct.pack(PADDING_FORMAT, payload.padding),
            packed,
        ))

    def decode(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Decompress a container produced by :meth:`encode`.

        The declared original size is authoritative: decoding stops after
        that many symbols even if more payload bits remain.

        :param data: Container bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            reporting recovered bytes.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Original uncompressed bytes.
        :rtype: bytes
        :raises InvalidFormatError: If the marker or tree delimiter is wrong.
        :raises TruncatedTreeError: If the tree section is cut short.
        :raises TruncatedPayloadError: If the header fields or payload bits
            run out before the declared size is reached.
        :raises InvalidPaddingError: If the padding length is out of range.
        :raises MalformedTreeError: If the tree is invalid or a code path
            leads nowhere.
        """
        if data[:len(MAGIC)] != MAGIC:
            raise InvalidFormatError("Invalid container format (bad marker)")

        # Non-empty containers are always longer than EMPTY_CONTAINER_SIZE.
        tree_start = data[len(MAGIC):len(MAGIC) + 1]
        if len(data) <= EMPTY_CONTAINER_SIZE and tree_start == TREE_DELIMITER:
            orig_size, padding = self._read_sizes(data, len(MAGIC) + 1)
            if orig_size != 0 or padding != 0:
                raise InvalidFormatError("Empty tree section with non-empty payload")
            if on_progress is not None:
                on_progress(0, 0)
            return b""

        reader = BitReader(data[len(MAGIC):])
        tree = HuffmanTree.deserialize(reader)
        pos = len(MAGIC) + reader.pos

        delimiter = data[pos:pos + 1]
        if not delimiter:
            raise TruncatedTreeError("Missing tree delimiter")
        if delimiter != TREE_DELIMITER:
            raise InvalidFormatError(
                f"Invalid tree delimiter {delimiter!r} at offset {pos}"
            )
        pos += 1

        orig_size, padding = self._read_sizes(data, pos)
        pos += LENGTH_SIZE + PADDING_SIZE

        bits = BitReader(data[pos:], padding)
        output = bytearray()
        if orig_size == 0:
            return bytes(output)

        node = None
        for bit in bits:
            node = tree.step(node, bit)
            if node.is_leaf:
                output.append(node.symbol)
                node = None
                if len(output) == orig_size:
                    break
                if on_progress is not None and len(output) % PROGRESS_STEP == 0:
                    on_progress(len(output), orig_size)

        if len(output) < orig_size:
            raise TruncatedPayloadError(
                f"Payload ended after {len(output)} of {orig_size} bytes"
            )

        if on_progress is not None:
            on_progress(orig_size, orig_size)

        return bytes(output)

    @staticmethod
    def _read_sizes(data: bytes, pos: int) -> Tuple[int, int]:
        """Read the original-size and padding fields at ``pos``.

        :param data: Container bytes.
        :type data: bytes
        :param pos: Offset of the original-size field.
        :type pos: int
        :returns: Tuple ``(original_size, padding)``.
        :rtype: Tuple[int, int]
        :raises TruncatedPayloadError: If the fields are cut short.
        """
        end = pos + LENGTH_SIZE + PADDING_SIZE
        if len(data) < end:
            raise TruncatedPayloadError("Container header is truncated")
        (orig_size,) = struct.unpack_from(LENGTH_FORMAT, data, pos)
        (padding,) = struct.unpack_from(PADDING_FORMAT, data, pos + LENGTH_SIZE)
        return orig_size, padding


def compress_file(
    src: str,
    dst: str,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[int, int]:
    """Compress the file ``src`` into a container at ``dst``.

    :param src: Path of the file to compress.
    :type src: str
    :param dst: Path of the container to write.
    :type dst: str
    :param on_progress: Optional progress callback, see :meth:`HuffmanCodec.encode`.
    :type on_progress: Optional[Callable[[int, int], None]]
    :returns: Tuple ``(original_size, compressed_size)`` in bytes.
    :rtype: Tuple[int, int]
    """
    with open(src, "rb") as f:
        data = f.read()
    container = HuffmanCodec().encode(data, on_progress=on_progress)
    with open(dst, "wb") as out:
        out.write(container)
    return len(data), len(container)


def decompress_file(
    src: str,
    dst: str,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[int, int]:
    """Decompress the container ``src`` into ``dst``.

    ``dst`` is only created once decoding has succeeded.

    :param src: Path of the container to read.
    :type src: str
    :param dst: Path of the file to write.
    :type dst: str
    :param on_progress: Optional progress callback, see :meth:`HuffmanCodec.decode`.
    :type on_progress: Optional[Callable[[int, int], None]]
    :returns: Tuple ``(compressed_size, original_size)`` in bytes.
    :rtype: Tuple[int, int]
    """
    with open(src, "rb") as f:
        container = f.read()
    data = HuffmanCodec().decode(container, on_progress=on_progress)
    with open(dst, "wb") as out:
        out.write(data)
    return len(container), len(data)
