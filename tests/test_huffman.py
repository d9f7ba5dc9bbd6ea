import itertools

import pytest

from bitops import BitReader, BitWriter
from errors import EmptyInputError, MalformedTreeError, TruncatedTreeError
from frequency import FrequencyTable
from huffman import HuffmanNode, HuffmanTree


def _serialize(tree):
    bw = BitWriter()
    tree.serialize(bw)
    return bw.flush(), bw.bit_length


def test_from_frequencies_empty_raises():
    with pytest.raises(EmptyInputError):
        HuffmanTree.from_frequencies({})


def test_single_symbol_tree_is_degenerate(code_str_fn):
    tree = HuffmanTree.from_frequencies(FrequencyTable.build(b"aaaa"))
    assert tree.is_degenerate
    assert [leaf.symbol for leaf in tree.leaves()] == [ord("a")]
    codes = tree.code_map()
    assert codes == {ord("a"): (0, 1)}
    assert code_str_fn(*codes[ord("a")]) == "0"
    assert tree.weight == 4


def test_weight_conservation():
    data = b"this is an example of a huffman tree"
    tree = HuffmanTree.from_frequencies(FrequencyTable.build(data))
    assert sum(leaf.freq for leaf in tree.leaves()) == len(data)
    assert tree.weight == len(data)


def test_codes_are_prefix_free(code_str_fn):
    data = bytes(range(256)) + b"hello world" * 30
    codes = HuffmanTree.from_frequencies(FrequencyTable.build(data)).code_map()
    assert len(codes) == 256
    strings = [code_str_fn(c, n) for c, n in codes.values()]
    for x, y in itertools.permutations(strings, 2):
        assert not y.startswith(x)


def test_frequent_symbols_get_shorter_codes():
    codes = HuffmanTree.from_frequencies({ord("a"): 5, ord("b"): 2, ord("c"): 1}).code_map()
    assert codes[ord("c")] == (0b00, 2)
    assert codes[ord("b")] == (0b01, 2)
    assert codes[ord("a")] == (0b1, 1)


def test_equal_weights_break_ties_in_insertion_order(code_str_fn):
    freqs = {ord("d"): 1, ord("c"): 1, ord("b"): 1, ord("a"): 1}
    codes = HuffmanTree.from_frequencies(freqs).code_map()
    assert {chr(s): code_str_fn(*c) for s, c in codes.items()} == {
        "a": "00", "b": "01", "c": "10", "d": "11",
    }
    again = HuffmanTree.from_frequencies(dict(reversed(list(freqs.items()))))
    assert again.code_map() == codes


def test_serialize_preorder_bits():
    tree = HuffmanTree.from_frequencies({ord("a"): 1, ord("b"): 1})
    packed, nbits = _serialize(tree)
    assert nbits == 19
    bits = "".join(str(b) for b in BitReader(packed))[:nbits]
    assert bits == "0" + "1" + "01100001" + "1" + "01100010"


def test_serialize_degenerate_tree_writes_lone_leaf():
    tree = HuffmanTree.from_frequencies({0xFF: 7})
    packed, nbits = _serialize(tree)
    assert nbits == 9
    assert packed == bytes([0xFF, 0x80])


def test_deserialize_restores_codes():
    data = b"abracadabra, mississippi"
    tree = HuffmanTree.from_frequencies(FrequencyTable.build(data))
    packed, _ = _serialize(tree)
    reader = BitReader(packed)
    restored = HuffmanTree.deserialize(reader)
    assert restored.code_map() == tree.code_map()
    assert reader.pos == len(packed)


def test_deserialize_lone_leaf_becomes_degenerate():
    tree = HuffmanTree.from_frequencies({ord("z"): 3})
    packed, _ = _serialize(tree)
    restored = HuffmanTree.deserialize(BitReader(packed))
    assert restored.is_degenerate
    assert restored.code_map() == {ord("z"): (0, 1)}
    assert restored.step(None, 0).symbol == ord("z")
    with pytest.raises(MalformedTreeError):
        restored.step(None, 1)


def test_deserialize_truncated_raises():
    tree = HuffmanTree.from_frequencies(FrequencyTable.build(b"abcdefg"))
    packed, _ = _serialize(tree)
    with pytest.raises(TruncatedTreeError):
        HuffmanTree.deserialize(BitReader(packed[:2]))
    with pytest.raises(TruncatedTreeError):
        HuffmanTree.deserialize(BitReader(b""))


def test_deserialize_duplicate_symbol_raises():
    bw = BitWriter()
    bw.write_bit(0)
    bw.write_bit(1)
    bw.write_bits(7, 8)
    bw.write_bit(1)
    bw.write_bits(7, 8)
    with pytest.raises(MalformedTreeError):
        HuffmanTree.deserialize(BitReader(bw.flush()))


def test_deserialize_rejects_excessive_depth():
    with pytest.raises(MalformedTreeError):
        HuffmanTree.deserialize(BitReader(bytes(40)))


def test_code_map_rejects_internal_node_with_one_child():
    leaf_a = HuffmanNode(symbol=1)
    leaf_b = HuffmanNode(symbol=2)
    broken = HuffmanTree(HuffmanNode(left=HuffmanNode(left=leaf_a), right=leaf_b))
    with pytest.raises(MalformedTreeError):
        broken.code_map()
    with pytest.raises(MalformedTreeError):
        broken.serialize(BitWriter())
