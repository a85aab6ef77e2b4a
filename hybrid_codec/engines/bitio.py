"""Bit-level writer and reader for entropy-coded payloads."""


class BitstreamError(ValueError):
    """Raised when a coded stream is truncated, corrupt or unsupported."""


class BitWriter:
    """Packs bits MSB-first into bytes."""

    def __init__(self):
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self.bits_written = 0

    def write_bits(self, value: int, num_bits: int):
        """Append the low num_bits of value."""
        if num_bits == 0:
            return

        self.bit_buffer = (self.bit_buffer << num_bits) | (value & ((1 << num_bits) - 1))
        self.bit_count += num_bits
        self.bits_written += num_bits

        while self.bit_count >= 8:
            self.bit_count -= 8
            self.buffer.append((self.bit_buffer >> self.bit_count) & 0xFF)
            self.bit_buffer &= (1 << self.bit_count) - 1

    def flush(self):
        """Pad the last partial byte with 1s."""
        if self.bit_count > 0:
            padding = 8 - self.bit_count
            self.write_bits((1 << padding) - 1, padding)
            self.bits_written -= padding

    def get_data(self) -> bytes:
        self.flush()
        return bytes(self.buffer)


class BitReader:
    """Reads bits MSB-first from a byte string."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0
        self.total_bits = len(data) * 8

    def read_bit(self) -> int:
        if self.pos >= self.total_bits:
            raise BitstreamError("Unexpected end of coded data")
        byte = self.data[self.pos >> 3]
        bit = (byte >> (7 - (self.pos & 7))) & 1
        self.pos += 1
        return bit

    def read_bits(self, num_bits: int) -> int:
        if self.pos + num_bits > self.total_bits:
            raise BitstreamError("Unexpected end of coded data")
        value = 0
        for _ in range(num_bits):
            value = (value << 1) | self.read_bit()
        return value

    @property
    def bits_remaining(self) -> int:
        return self.total_bits - self.pos
