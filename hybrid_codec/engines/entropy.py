"""
Entropy coding of quantized blocks.

Blocks are zigzag scanned. The first coefficient (DCT DC or wavelet LL corner)
is DPCM coded against the previous block of the channel; the rest are coded as
JPEG-style (run, size) symbols with ZRL and EOB, followed by the magnitude
bits. Huffman tables are optimal per image, length-limited to 16 bits and
assigned canonically, so only BITS and HUFFVAL need to be transmitted.
"""

import heapq
import logging
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, Iterator, List, Tuple

import numpy as np

from hybrid_codec.engines.bitio import BitReader, BitWriter, BitstreamError
from hybrid_codec.utils.constants import (
    EOB_SYMBOL,
    MAX_HUFFMAN_CODE_LENGTH,
    MAX_MAGNITUDE_CATEGORY,
    MAX_RUN,
    ZRL_SYMBOL,
    zigzag_order,
)

logger = logging.getLogger(__name__)

# Pseudo-symbol that reserves the all-ones code point while building tables
_RESERVED_SYMBOL = 256


# =============================================================================
# Zigzag scanning
# =============================================================================

@lru_cache(maxsize=None)
def _zigzag(n: int) -> np.ndarray:
    return zigzag_order(n)


def zigzag_scan(block: np.ndarray) -> np.ndarray:
    """Flatten an n x n block (or a stack of them) in zigzag order."""
    n = block.shape[-1]
    flat = block.reshape(block.shape[:-2] + (n * n,))
    return flat[..., _zigzag(n)]


def inverse_zigzag(array: np.ndarray, n: int) -> np.ndarray:
    """Rebuild an n x n block from zigzag-ordered coefficients."""
    block = np.zeros(n * n, dtype=array.dtype)
    block[_zigzag(n)] = array
    return block.reshape(n, n)


# =============================================================================
# Magnitude categories
# =============================================================================

def bit_length(value: int) -> int:
    """Magnitude category: number of bits needed for |value|."""
    size = int(abs(value)).bit_length()
    if size > MAX_MAGNITUDE_CATEGORY:
        raise ValueError(f"Coefficient {value} exceeds the codable range")
    return size


def encode_magnitude(value: int, size: int) -> int:
    """Positive values as-is, negatives as one's complement within size bits."""
    if value >= 0:
        return value
    return value + (1 << size) - 1


def decode_magnitude(bits: int, size: int) -> int:
    """Inverse of encode_magnitude."""
    if size == 0:
        return 0
    if bits < (1 << (size - 1)):
        return bits - (1 << size) + 1
    return bits


# =============================================================================
# Run-length symbols
# =============================================================================

@dataclass
class RLESymbol:
    """A (run, size) AC symbol with its coefficient value."""
    symbol: int
    size: int
    value: int


def encode_ac_coefficients(ac_coeffs: np.ndarray) -> List[RLESymbol]:
    """Run-length encode zigzag-ordered AC coefficients."""
    symbols = []
    nonzero = np.flatnonzero(ac_coeffs)
    prev = -1
    for idx in nonzero:
        run = int(idx) - prev - 1
        while run > MAX_RUN:
            symbols.append(RLESymbol(ZRL_SYMBOL, 0, 0))
            run -= MAX_RUN + 1
        value = int(ac_coeffs[idx])
        size = bit_length(value)
        symbols.append(RLESymbol((run << 4) | size, size, value))
        prev = int(idx)
    if prev < len(ac_coeffs) - 1:
        symbols.append(RLESymbol(EOB_SYMBOL, 0, 0))
    return symbols


def decode_ac_coefficients(symbols: Iterable[Tuple[int, int]], length: int) -> np.ndarray:
    """
    Rebuild AC coefficients from (symbol, value) pairs.

    Pairs are pulled only until EOB or a full block, so a lazy reader never
    consumes codes of the next block. Every run, ZRL included, must land
    inside the block.
    """
    ac = np.zeros(length, dtype=np.int32)
    pos = 0
    symbols = iter(symbols)
    while pos < length:
        symbol, value = next(symbols, (EOB_SYMBOL, 0))
        if symbol == EOB_SYMBOL:
            break
        pos += MAX_RUN + 1 if symbol == ZRL_SYMBOL else symbol >> 4
        if pos >= length:
            raise BitstreamError("AC run overflows the block")
        if symbol != ZRL_SYMBOL:
            ac[pos] = value
            pos += 1
    return ac


def block_symbols(zz: np.ndarray, prev_dc: int) -> Tuple[int, int, List[RLESymbol]]:
    """DC category, DC difference and AC symbols of one zigzag-ordered block."""
    diff = int(zz[0]) - prev_dc
    return bit_length(diff), diff, encode_ac_coefficients(zz[1:])


# =============================================================================
# Huffman tables
# =============================================================================

def _code_lengths(freqs: Dict[int, int]) -> Dict[int, int]:
    """Unrestricted Huffman code lengths, reserved symbol included."""
    items = [(f, s) for s, f in freqs.items() if f > 0]
    items.append((1, _RESERVED_SYMBOL))
    heap = [(f, i, [s]) for i, (f, s) in enumerate(sorted(items, key=lambda x: (x[0], x[1])))]
    heapq.heapify(heap)
    lengths = Counter()
    counter = len(heap)
    while len(heap) > 1:
        f1, _, a = heapq.heappop(heap)
        f2, _, b = heapq.heappop(heap)
        for s in a + b:
            lengths[s] += 1
        heapq.heappush(heap, (f1 + f2, counter, a + b))
        counter += 1
    return dict(lengths)


def _limit_lengths(bits: List[int], max_length: int) -> List[int]:
    """JPEG Annex K.2 adjustment of code-length counts to max_length."""
    i = len(bits) - 1
    while i > max_length:
        while bits[i] > 0:
            j = i - 2
            while bits[j] == 0:
                j -= 1
            bits[i] -= 2
            bits[i - 1] += 1
            bits[j + 1] += 2
            bits[j] -= 1
        i -= 1
    return bits[:max_length + 1]


class HuffmanTable:
    """Canonical Huffman table described by BITS counts and HUFFVAL symbols."""

    def __init__(self, bits: List[int], values: List[int]):
        """
        Args:
            bits: Number of codes of each length 1..16
            values: Symbols in order of increasing code length
        """
        if len(bits) != MAX_HUFFMAN_CODE_LENGTH:
            raise BitstreamError(f"Huffman table needs {MAX_HUFFMAN_CODE_LENGTH} length counts")
        if sum(bits) != len(values):
            raise BitstreamError("Huffman length counts do not match symbol count")
        self.bits = list(bits)
        self.values = list(values)
        self.codes: Dict[int, Tuple[int, int]] = {}
        self.lookup: Dict[Tuple[int, int], int] = {}
        self._build_table()

    def _build_table(self):
        code = 0
        value_idx = 0
        for length in range(1, MAX_HUFFMAN_CODE_LENGTH + 1):
            for _ in range(self.bits[length - 1]):
                symbol = self.values[value_idx]
                self.codes[symbol] = (code, length)
                self.lookup[(length, code)] = symbol
                value_idx += 1
                code += 1
            if code > (1 << length):
                raise BitstreamError("Huffman length counts oversubscribe the code space")
            code <<= 1

    @classmethod
    def from_frequencies(cls, freqs: Dict[int, int]) -> 'HuffmanTable':
        """Optimal length-limited table for the given symbol counts."""
        if not any(f > 0 for f in freqs.values()):
            return cls([0] * MAX_HUFFMAN_CODE_LENGTH, [])
        lengths = _code_lengths(freqs)
        longest = max(lengths.values())
        bits = [0] * (max(longest, MAX_HUFFMAN_CODE_LENGTH) + 1)
        for length in lengths.values():
            bits[length] += 1
        if longest > MAX_HUFFMAN_CODE_LENGTH:
            logger.debug(f"Limiting Huffman code lengths from {longest} to {MAX_HUFFMAN_CODE_LENGTH} bits")
        bits = _limit_lengths(bits, MAX_HUFFMAN_CODE_LENGTH)

        # Drop the reserved code from the longest length in use
        i = MAX_HUFFMAN_CODE_LENGTH
        while bits[i] == 0:
            i -= 1
        bits[i] -= 1

        symbols = sorted(
            (s for s in lengths if s != _RESERVED_SYMBOL),
            key=lambda s: (lengths[s], s)
        )
        return cls(bits[1:], symbols)

    def code_lengths(self) -> Dict[int, int]:
        return {symbol: length for symbol, (_, length) in self.codes.items()}

    def encode(self, writer: BitWriter, symbol: int):
        if symbol not in self.codes:
            raise ValueError(f"Symbol {symbol:#04x} not in Huffman table")
        code, length = self.codes[symbol]
        writer.write_bits(code, length)

    def decode(self, reader: BitReader) -> int:
        code = 0
        for length in range(1, MAX_HUFFMAN_CODE_LENGTH + 1):
            code = (code << 1) | reader.read_bit()
            symbol = self.lookup.get((length, code))
            if symbol is not None:
                return symbol
        raise BitstreamError("Invalid Huffman code")

    def __eq__(self, other):
        if not isinstance(other, HuffmanTable):
            return NotImplemented
        return self.bits == other.bits and self.values == other.values

    def __repr__(self):
        return f"HuffmanTable(symbols={len(self.values)})"


# =============================================================================
# Block coding
# =============================================================================

def gather_statistics(
    zz_blocks: np.ndarray,
    dc_freqs: Counter = None,
    ac_freqs: Counter = None
) -> Tuple[Counter, Counter]:
    """Accumulate DC-category and AC-symbol counts over zigzag-ordered blocks."""
    dc_freqs = Counter() if dc_freqs is None else dc_freqs
    ac_freqs = Counter() if ac_freqs is None else ac_freqs
    prev_dc = 0
    for zz in zz_blocks:
        category, _, ac_symbols = block_symbols(zz, prev_dc)
        dc_freqs[category] += 1
        for sym in ac_symbols:
            ac_freqs[sym.symbol] += 1
        prev_dc = int(zz[0])
    return dc_freqs, ac_freqs


def estimate_block_bits(
    zz: np.ndarray,
    prev_dc: int,
    dc_lengths: Dict[int, int],
    ac_lengths: Dict[int, int]
) -> int:
    """Coded size of one block under the given code lengths.

    Symbols missing from a table are charged the maximum code length.
    """
    category, _, ac_symbols = block_symbols(zz, prev_dc)
    bits = dc_lengths.get(category, MAX_HUFFMAN_CODE_LENGTH) + category
    for sym in ac_symbols:
        bits += ac_lengths.get(sym.symbol, MAX_HUFFMAN_CODE_LENGTH) + sym.size
    return bits


def encode_block(
    writer: BitWriter,
    zz: np.ndarray,
    prev_dc: int,
    dc_table: HuffmanTable,
    ac_table: HuffmanTable
) -> int:
    """Write one zigzag-ordered block; returns its DC for the next prediction."""
    category, diff, ac_symbols = block_symbols(zz, prev_dc)
    dc_table.encode(writer, category)
    writer.write_bits(encode_magnitude(diff, category), category)
    for sym in ac_symbols:
        ac_table.encode(writer, sym.symbol)
        writer.write_bits(encode_magnitude(sym.value, sym.size), sym.size)
    return int(zz[0])


def _read_ac_symbols(reader: BitReader, ac_table: HuffmanTable) -> Iterator[Tuple[int, int]]:
    while True:
        symbol = ac_table.decode(reader)
        if symbol in (EOB_SYMBOL, ZRL_SYMBOL):
            yield symbol, 0
            continue
        size = symbol & 0x0F
        if size == 0:
            raise BitstreamError(f"Invalid AC symbol {symbol:#04x}")
        yield symbol, decode_magnitude(reader.read_bits(size), size)


def decode_block(
    reader: BitReader,
    n: int,
    prev_dc: int,
    dc_table: HuffmanTable,
    ac_table: HuffmanTable
) -> np.ndarray:
    """Read one block and return it in zigzag order."""
    category = dc_table.decode(reader)
    if category > MAX_MAGNITUDE_CATEGORY:
        raise BitstreamError(f"Invalid DC category {category}")
    dc = prev_dc + decode_magnitude(reader.read_bits(category), category)

    ac = decode_ac_coefficients(_read_ac_symbols(reader, ac_table), n * n - 1)

    zz = np.empty(n * n, dtype=np.int32)
    zz[0] = dc
    zz[1:] = ac
    return zz
