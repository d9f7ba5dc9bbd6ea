import math
from collections import Counter
from typing import Dict, Iterator, List, Mapping, Tuple


class FrequencyTable(Mapping):
    """Byte occurrence counts for one input.

    Read-only mapping from byte value (0-255) to its count. Only bytes that
    occur at least once are present; iteration is in ascending byte order.

    :ivar total: Sum of all counts, i.e. the length of the source data.
    :type total: int
    """

    def __init__(self, counts: Mapping[int, int]):
        """Wrap an existing symbol -> count mapping.

        Zero counts are dropped.

        :param counts: Mapping from byte value to occurrence count.
        :type counts: Mapping[int, int]
        :returns: None
        :rtype: None
        :raises ValueError: If a symbol is not a byte value or a count is
            negative.
        """
        table: Dict[int, int] = {}
        for symbol in sorted(counts):
            count = counts[symbol]
            if not 0 <= symbol <= 255:
                raise ValueError(f"Symbol out of byte range: {symbol}")
            if count < 0:
                raise ValueError(f"Negative count for symbol {symbol}")
            if count:
                table[symbol] = count
        self._counts = table
        self.total = sum(table.values())

    @classmethod
    def build(cls, data: bytes) -> "FrequencyTable":
        """Count every byte of ``data``.

        :param data: Source bytes; may be empty.
        :type data: bytes
        :returns: The frequency table (empty for empty input).
        :rtype: FrequencyTable
        """
        return cls(Counter(data))

    def __getitem__(self, symbol: int) -> int:
        return self._counts[symbol]

    def __iter__(self) -> Iterator[int]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self):
        return f"FrequencyTable({self._counts!r})"

    def entropy(self) -> float:
        """Shannon entropy of the byte distribution, in bits per byte.

        :returns: Entropy, ``0.0`` for empty or single-symbol tables.
        :rtype: float
        """
        if self.total == 0:
            return 0.0
        result = 0.0
        for count in self._counts.values():
            p = count / self.total
            result -= p * math.log2(p)
        return result

    def most_common(self, n: int) -> List[Tuple[int, int]]:
        """Return the ``n`` most frequent ``(symbol, count)`` pairs.

        Equal counts are ordered by ascending symbol.

        :param n: Maximum number of pairs to return.
        :type n: int
        :returns: Pairs sorted by descending count.
        :rtype: List[Tuple[int, int]]
        """
        ranked = sorted(self._counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:n]
