from typing import Iterator

from errors import InvalidPaddingError


class BitWriter:
    """Bit-packing writer.

    Accumulates individual bits into bytes, most significant bit first,
    and remembers how many zero bits were needed to close the last byte.

    :ivar buffer: Internal byte buffer holding fully written bytes.
    :type buffer: bytearray
    :ivar bit_buffer: 8-bit scratch register for accumulating pending bits.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits currently stored in ``bit_buffer`` (0-7).
    :type bit_count: int
    :ivar padding: Zero bits appended by the last :meth:`flush` (0-7).
    :type padding: int
    """

    def __init__(self):
        """Initialize an empty bit writer.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self.padding = 0

    @property
    def bit_length(self) -> int:
        """Number of meaningful bits written so far (padding excluded)."""
        return len(self.buffer) * 8 + self.bit_count - self.padding

    def write_bit(self, bit: int):
        """Append a single bit.

        :param bit: ``0`` or ``1``; any non-zero value counts as ``1``.
        :type bit: int
        :returns: None
        :rtype: None
        """
        self.bit_buffer = (self.bit_buffer << 1) | (1 if bit else 0)
        self.bit_count += 1
        if self.bit_count == 8:
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value`` to the buffer, MSB first.

        :param value: Integer whose bits will be written.
        :type value: int
        :param nbits: Number of bits from ``value`` to write.
        :type nbits: int
        :returns: None
        :rtype: None
        """
        for i in range(nbits - 1, -1, -1):
            self.bit_buffer = (self.bit_buffer << 1) | ((value >> i) & 1)
            self.bit_count += 1
            if self.bit_count == 8:
                self.buffer.append(self.bit_buffer)
                self.bit_buffer = 0
                self.bit_count = 0

    def flush(self) -> bytes:
        """Flush remaining bits (if any) and return the full byte buffer.

        Any partial byte in ``bit_buffer`` is padded with zeros to complete
        the byte before being appended; the number of zeros is stored in
        :attr:`padding`. A byte-aligned stream leaves ``padding`` at 0.

        :returns: The accumulated bytes written so far.
        :rtype: bytes
        """
        if self.bit_count > 0:
            self.padding = 8 - self.bit_count
            self.bit_buffer <<= self.padding
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0
        return bytes(self.buffer)


class BitReader:
    """Bit reader over packed bytes, honoring a trailing padding length.

    Only the first ``len(data) * 8 - padding`` bits are visible. Bits can be
    pulled incrementally with :meth:`read_bits`, or iterated lazily; every
    call to ``iter()`` starts again from the first bit and is independent
    of the :meth:`read_bits` cursor.

    :ivar data: Input data to read bits from.
    :type data: bytes
    :ivar padding: Number of filler bits at the end of ``data`` (0-7).
    :type padding: int
    :ivar pos: Index of the next byte of ``data`` to load.
    :type pos: int
    :ivar bit_buffer: Scratch register holding the current source byte.
    :type bit_buffer: int
    :ivar bit_count: Number of unread bits remaining in ``bit_buffer`` (0-8).
    :type bit_count: int
    """

    def __init__(self, data: bytes, padding: int = 0):
        """Create a bit reader for the given input ``data``.

        :param data: Source data to read from.
        :type data: bytes
        :param padding: Filler bits to ignore at the end of ``data``.
        :type padding: int
        :returns: None
        :rtype: None
        :raises InvalidPaddingError: If ``padding`` is outside 0-7 or larger
            than the number of bits in ``data``.
        """
        if not 0 <= padding <= 7:
            raise InvalidPaddingError(
                f"Padding length must be in 0..7, got {padding}"
            )
        if padding > len(data) * 8:
            raise InvalidPaddingError(
                f"Padding length {padding} exceeds payload of "
                f"{len(data) * 8} bits"
            )
        self.data = data
        self.padding = padding
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0
        self._consumed = 0

    @property
    def bit_length(self) -> int:
        """Number of readable bits (padding excluded)."""
        return len(self.data) * 8 - self.padding

    def __len__(self) -> int:
        return self.bit_length

    def __iter__(self) -> Iterator[int]:
        remaining = self.bit_length
        for byte in self.data:
            for shift in range(7, -1, -1):
                if remaining == 0:
                    return
                yield (byte >> shift) & 1
                remaining -= 1

    def read_bits(self, nbits: int) -> int:
        """Read ``nbits`` bits from the stream and return them as an integer.

        Bits are returned MSB-first in the integer.

        :param nbits: Number of bits to read.
        :type nbits: int
        :returns: The integer value composed of the next ``nbits`` bits.
        :rtype: int
        :raises EOFError: If the end of data is reached before reading ``nbits``.
        """
        result = 0
        for _ in range(nbits):
            if self._consumed >= self.bit_length:
                raise EOFError("Unexpected end of data")
            if self.bit_count == 0:
                self.bit_buffer = self.data[self.pos]
                self.pos += 1
                self.bit_count = 8
            result = (result << 1) | ((self.bit_buffer >> (self.bit_count - 1)) & 1)
            self.bit_count -= 1
            self._consumed += 1
        return result
