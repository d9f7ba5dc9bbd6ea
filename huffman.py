import heapq
import itertools
from typing import Dict, Iterator, Mapping, Optional, Set, Tuple

from bitops import BitReader, BitWriter
from errors import EmptyInputError, MalformedTreeError, TruncatedTreeError

MAX_DEPTH = 255  #: Deepest leaf possible with a 256-symbol alphabet


class HuffmanNode:
    """Node for a standard binary Huffman tree.

    :ivar symbol: Byte value stored at a leaf; ``None`` for internal nodes.
    :type symbol: int | None
    :ivar freq: Frequency (weight) of the subtree rooted at this node.
    :type freq: int
    :ivar left: Left child node (reached with bit 0).
    :type left: HuffmanNode | None
    :ivar right: Right child node (reached with bit 1).
    :type right: HuffmanNode | None
    :ivar order: Creation sequence number, used to break frequency ties.
    :type order: int
    """

    def __init__(self, symbol=None, freq=0, left=None, right=None, order=0):
        """Create a Huffman node.

        :param symbol: Symbol value for leaf nodes; ``None`` for internal nodes.
        :type symbol: int | None
        :param int freq: Frequency (weight) associated with this node.
        :param left: Left child node, if any.
        :type left: HuffmanNode|None
        :param right: Right child node, if any.
        :type right: HuffmanNode|None
        :param int order: Creation sequence number.
        :returns: None
        :rtype: None
        """
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        self.order = order

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    def __lt__(self, other):
        """Order nodes by frequency, then by creation order (FIFO ties).

        :param other: Another node to compare with.
        :type other: HuffmanNode
        :returns: ``True`` if this node should leave the queue first.
        :rtype: bool
        """
        return (self.freq, self.order) < (other.freq, other.order)

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq}, left={self.left!r}, right={self.right!r})"


class HuffmanTree:
    """Huffman coding tree over byte symbols.

    A tree built from a single distinct symbol is *degenerate*: an internal
    root whose only child is the left leaf, so that symbol still gets the
    one-bit code ``0``.

    :ivar root: Root node of the tree.
    :type root: HuffmanNode
    """

    def __init__(self, root: HuffmanNode):
        self.root = root

    @classmethod
    def from_frequencies(cls, frequencies: Mapping[int, int]) -> "HuffmanTree":
        """Build a Huffman tree from a symbol frequency table.

        Leaves enter the priority queue in ascending symbol order; nodes of
        equal weight leave it in the order they entered, and merged nodes
        enter after all existing ones. The result is therefore identical for
        identical tables. The first node popped becomes the left child.

        :param frequencies: Mapping from symbol to observed frequency.
        :type frequencies: Mapping[int, int]
        :returns: The constructed tree.
        :rtype: HuffmanTree
        :raises EmptyInputError: If ``frequencies`` has no symbols.
        """
        if not frequencies:
            raise EmptyInputError("Cannot build a Huffman tree from zero symbols")

        counter = itertools.count()
        heap = [
            HuffmanNode(symbol=sym, freq=frequencies[sym], order=next(counter))
            for sym in sorted(frequencies)
        ]
        heapq.heapify(heap)

        if len(heap) == 1:
            leaf = heap[0]
            return cls(HuffmanNode(freq=leaf.freq, left=leaf, order=next(counter)))

        while len(heap) > 1:
            left = heapq.heappop(heap)
            right = heapq.heappop(heap)
            merged = HuffmanNode(
                freq=left.freq + right.freq,
                left=left,
                right=right,
                order=next(counter),
            )
            heapq.heappush(heap, merged)

        return cls(heap[0])

    @property
    def is_degenerate(self) -> bool:
        root = self.root
        return (
            not root.is_leaf
            and root.right is None
            and root.left is not None
            and root.left.is_leaf
        )

    @property
    def weight(self) -> int:
        return self.root.freq

    def leaves(self) -> Iterator[HuffmanNode]:
        """Yield leaf nodes left to right."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node is None:
                continue
            if node.is_leaf:
                yield node
            else:
                stack.append(node.right)
                stack.append(node.left)

    def code_map(self) -> Dict[int, Tuple[int, int]]:
        """Assign a code to every leaf symbol.

        Left edges contribute bit 0 and right edges bit 1. A leaf hanging
        directly off the root of a degenerate tree gets the code ``0``.

        :returns: Mapping from symbol to a tuple ``(code, length)``.
        :rtype: Dict[int, Tuple[int, int]]
        :raises MalformedTreeError: If an internal node lacks a child
            anywhere other than the root of a degenerate tree.
        """
        if self.root.is_leaf or self.is_degenerate:
            leaf = self.root if self.root.is_leaf else self.root.left
            return {leaf.symbol: (0, 1)}
        codes: Dict[int, Tuple[int, int]] = {}
        self._assign_codes(self.root, 0, 0, codes)
        return codes

    def _assign_codes(
        self,
        node: HuffmanNode,
        code: int,
        depth: int,
        codes: Dict[int, Tuple[int, int]],
    ):
        """Populate ``codes`` by traversing the subtree at ``node``.

        :param node: Current node in the Huffman tree.
        :type node: HuffmanNode
        :param code: Bits accumulated on the way down.
        :type code: int
        :param depth: Current depth (code length so far).
        :type depth: int
        :param codes: Output mapping.
        :type codes: Dict[int, Tuple[int, int]]
        :returns: None
        :rtype: None
        """
        if node.is_leaf:
            codes[node.symbol] = (code, depth)
            return
        _check_children(node)
        self._assign_codes(node.left, code << 1, depth + 1, codes)
        self._assign_codes(node.right, (code << 1) | 1, depth + 1, codes)

    def serialize(self, writer: BitWriter):
        """Write the tree shape in pre-order.

        Internal nodes emit a ``0`` bit; leaves emit a ``1`` bit followed by
        the 8-bit symbol. A degenerate tree is written as its lone leaf.

        :param writer: Destination bit writer.
        :type writer: BitWriter
        :returns: None
        :rtype: None
        :raises MalformedTreeError: If an internal node lacks a child.
        """
        if self.is_degenerate:
            self._write_node(self.root.left, writer)
        else:
            self._write_node(self.root, writer)

    def _write_node(self, node: HuffmanNode, writer: BitWriter):
        if node.is_leaf:
            writer.write_bit(1)
            writer.write_bits(node.symbol, 8)
            return
        _check_children(node)
        writer.write_bit(0)
        self._write_node(node.left, writer)
        self._write_node(node.right, writer)

    @classmethod
    def deserialize(cls, reader: BitReader) -> "HuffmanTree":
        """Rebuild a tree written by :meth:`serialize`.

        Consumes exactly the bits of one serialized tree from ``reader``.
        Leaf weights are not stored, so every node of the result has
        ``freq == 0``. A lone leaf is wrapped back into a degenerate tree.

        :param reader: Bit reader positioned at the start of the tree.
        :type reader: BitReader
        :returns: The rebuilt tree.
        :rtype: HuffmanTree
        :raises TruncatedTreeError: If the bits run out mid-structure.
        :raises MalformedTreeError: If a symbol repeats or the tree is
            deeper than any byte alphabet allows.
        """
        root = cls._read_node(reader, 0, set())
        if root.is_leaf:
            root = HuffmanNode(left=root)
        return cls(root)

    @classmethod
    def _read_node(cls, reader: BitReader, depth: int, seen: Set[int]) -> HuffmanNode:
        if depth > MAX_DEPTH:
            raise MalformedTreeError(
                f"Tree deeper than {MAX_DEPTH} levels"
            )
        try:
            marker = reader.read_bits(1)
            symbol = reader.read_bits(8) if marker else None
        except EOFError as e:
            raise TruncatedTreeError(
                "Serialized tree ends before its structure is complete"
            ) from e

        if symbol is not None:
            if symbol in seen:
                raise MalformedTreeError(f"Symbol {symbol} appears twice in tree")
            seen.add(symbol)
            return HuffmanNode(symbol=symbol)

        left = cls._read_node(reader, depth + 1, seen)
        right = cls._read_node(reader, depth + 1, seen)
        return HuffmanNode(left=left, right=right)

    def step(self, node: Optional[HuffmanNode], bit: int) -> HuffmanNode:
        """Follow one edge from ``node`` (the root when ``None``).

        :param node: Current internal node, or ``None`` to start at the root.
        :type node: HuffmanNode | None
        :param bit: ``0`` to go left, ``1`` to go right.
        :type bit: int
        :returns: The child reached.
        :rtype: HuffmanNode
        :raises MalformedTreeError: If the edge leads to a missing child.
        """
        if node is None:
            node = self.root
        child = node.right if bit else node.left
        if child is None:
            raise MalformedTreeError(
                f"Bit {bit} leads to a missing child in the Huffman tree"
            )
        return child


def _check_children(node: HuffmanNode):
    if node.left is None or node.right is None:
        raise MalformedTreeError("Internal node must have exactly two children")
