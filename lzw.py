#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
lzw.py -- Lempel-Ziv-Welch compressor with variable-width codes.

The stream is a sequence of codes packed MSB first.  Codes ``0..255``
stand for literal bytes, ``256`` is the CLEAR code (dictionary reset),
``257`` is EOI (end of information) and ``258`` onward are assigned to
multi-byte sequences as the dictionary grows.

### Stream format

1. ``CLEAR_CODE`` is always written first, at 9 bits.
2. Data codes follow.  Each one is written at the current code width,
   which starts at 9 bits and grows by one bit every time the next code
   to be assigned reaches ``2**width``, up to ``max_bits``.
3. When the dictionary is full (``2**max_bits`` codes) the encoder writes
   ``CLEAR_CODE`` and both sides start over with 9-bit codes.
4. ``EOI_CODE`` marks the end.  The last byte is padded with zero bits.

Compressing ``b''`` gives ``b'\\x80\\x40\\x40'`` (CLEAR then EOI).

The encoder keeps a ``bytes -> code`` table and the decoder the inverse
``code -> bytes`` table.  The decoder learns each entry one code late, so
its table is always one entry behind the encoder's; the growth threshold
on the decoder side is shifted by one to match.

``max_bits`` is not stored in the stream and must be the same for
``compress`` and ``decompress``.
"""

from __future__ import annotations

from typing import Dict, Optional

CLEAR_CODE = 256
EOI_CODE = 257
FIRST_CODE = 258

MIN_CODE_SIZE = 9
MAX_CODE_SIZE = 16
DEFAULT_MAX_BITS = 12


class LzwError(ValueError):
    """Raised when a compressed stream is malformed."""


def _check_max_bits(max_bits: int) -> None:
    if not MIN_CODE_SIZE <= max_bits <= MAX_CODE_SIZE:
        raise ValueError(
            f"max_bits must be between {MIN_CODE_SIZE} and {MAX_CODE_SIZE}, got {max_bits}"
        )

###############################################################################
# Dictionaries
###############################################################################

class CompressionTable:
    """Sequence to code mapping used by the encoder."""
    __slots__ = ("table",)
    def __init__(self) -> None:
        self.table: Dict[bytes, int] = {}
    def reset(self) -> None:
        self.table.clear()
        for i in range(256):
            self.table[bytes((i,))] = i
    def lookup(self, sequence: bytes) -> Optional[int]:
        return self.table.get(sequence)
    def insert(self, sequence: bytes, code: int) -> None:
        self.table[sequence] = code
    def __contains__(self, sequence: bytes) -> bool:
        return sequence in self.table
    def __len__(self) -> int:
        return len(self.table)

class DecompressionTable:
    """Code to sequence mapping used by the decoder."""
    __slots__ = ("table",)
    def __init__(self) -> None:
        self.table: Dict[int, bytes] = {}
    def reset(self) -> None:
        self.table.clear()
        for i in range(256):
            self.table[i] = bytes((i,))
    def lookup(self, code: int) -> Optional[bytes]:
        return self.table.get(code)
    def insert(self, code: int, sequence: bytes) -> None:
        assert code not in self.table, f"code {code} already assigned"
        self.table[code] = sequence
    def __contains__(self, code: int) -> bool:
        return code in self.table
    def __len__(self) -> int:
        return len(self.table)

###############################################################################
# MSB-first bit streams
###############################################################################

class BitWriter:
    """Packs fixed-width values into bytes, most significant bit first."""
    __slots__ = ("buf", "acc", "nbits")
    def __init__(self) -> None:
        self.buf = bytearray()
        self.acc = 0
        self.nbits = 0
    def write(self, value: int, nbits: int) -> None:
        """Append the low ``nbits`` bits of ``value``.

        Bits are moved into the pending byte in chunks no larger than the
        room left in it, so a value may be split across several output
        bytes.
        """
        assert 0 < nbits <= 32, f"bit count out of range: {nbits}"
        while nbits > 0:
            room = 8 - self.nbits
            take = min(nbits, room)
            bits = (value >> (nbits - take)) & ((1 << take) - 1)
            self.acc = (self.acc << take) | bits
            self.nbits += take
            nbits -= take
            if self.nbits == 8:
                self.buf.append(self.acc)
                self.acc = 0
                self.nbits = 0
    def getbytes(self) -> bytes:
        # flush remaining bits, zero padded on the right
        if self.nbits:
            self.acc <<= (8 - self.nbits)
            self.buf.append(self.acc & 0xFF)
            self.acc = 0
            self.nbits = 0
        return bytes(self.buf)

class BitReader:
    """Reads fixed-width values from bytes, most significant bit first."""
    __slots__ = ("data", "idx", "acc", "nbits")
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.idx = 0
        self.acc = 0
        self.nbits = 0
    def read(self, nbits: int) -> Optional[int]:
        """Return the next ``nbits`` bits, or ``None`` if the input runs out."""
        assert 0 < nbits <= 32, f"bit count out of range: {nbits}"
        while self.nbits < nbits:
            if self.idx >= len(self.data):
                return None
            self.acc = (self.acc << 8) | self.data[self.idx]
            self.idx += 1
            self.nbits += 8
        self.nbits -= nbits
        value = self.acc >> self.nbits
        self.acc &= (1 << self.nbits) - 1
        return value

###############################################################################
# Compression
###############################################################################

def compress(data: bytes, max_bits: int = DEFAULT_MAX_BITS) -> bytes:
    """Compress ``data`` into an LZW stream.

    The match ``omega`` is extended one byte at a time for as long as
    the extended sequence is already in the dictionary.  When it is not,
    the code for ``omega`` is written, the extended sequence becomes a
    new entry and matching restarts from the current byte.  Once all
    ``2**max_bits`` codes are taken a CLEAR code is written instead of a
    new entry and the dictionary starts over.

    >>> compress(b'AAAAABBB').hex()
    '8010605022141602'
    """
    _check_max_bits(max_bits)
    data = bytes(data)
    table = CompressionTable()
    writer = BitWriter()
    code_size = MIN_CODE_SIZE
    next_code = FIRST_CODE
    limit = 1 << max_bits

    table.reset()
    writer.write(CLEAR_CODE, code_size)

    if not data:
        writer.write(EOI_CODE, code_size)
        return writer.getbytes()

    omega = b''
    for k in data:
        candidate = omega + bytes((k,))
        if candidate in table:
            omega = candidate
            continue
        writer.write(table.lookup(omega), code_size)
        if next_code < limit:
            table.insert(candidate, next_code)
            next_code += 1
            if next_code == 1 << code_size and code_size < max_bits:
                code_size += 1
        else:
            writer.write(CLEAR_CODE, code_size)
            table.reset()
            code_size = MIN_CODE_SIZE
            next_code = FIRST_CODE
        omega = bytes((k,))

    writer.write(table.lookup(omega), code_size)
    # reading the last code makes the decoder add one more entry, which
    # may push its width up before it reads EOI
    if next_code + 1 == 1 << code_size and code_size < max_bits:
        code_size += 1
    writer.write(EOI_CODE, code_size)
    return writer.getbytes()

###############################################################################
# Decompression
###############################################################################

def decompress(data: bytes, max_bits: int = DEFAULT_MAX_BITS) -> bytes:
    """Decompress an LZW stream produced by :func:`compress`.

    Each data code after the first of an epoch adds the entry the encoder
    created one step earlier: the previous sequence followed by the first
    byte of the current one.  A code that is not in the table yet can
    only be the entry about to be added, so it decodes as the previous
    sequence followed by its own first byte.

    Raises ``LzwError`` if the stream does not start with CLEAR, ends
    before EOI or refers to a code that has no entry.
    """
    _check_max_bits(max_bits)
    reader = BitReader(bytes(data))
    table = DecompressionTable()
    out = bytearray()
    code_size = MIN_CODE_SIZE
    next_code = FIRST_CODE
    limit = 1 << max_bits

    def read_code() -> int:
        code = reader.read(code_size)
        if code is None:
            raise LzwError("Unexpected end of input")
        return code

    def sequence_for(code: int) -> bytes:
        sequence = table.lookup(code)
        if sequence is None:
            raise LzwError(f"Code {code} not found in dictionary")
        return sequence

    def add_entry(sequence: bytes) -> None:
        nonlocal code_size, next_code
        if next_code < limit:
            table.insert(next_code, sequence)
            next_code += 1
            # one entry behind the encoder, so one below its threshold
            if next_code == (1 << code_size) - 1 and code_size < max_bits:
                code_size += 1
        else:
            table.reset()
            code_size = MIN_CODE_SIZE
            next_code = FIRST_CODE

    table.reset()
    code = read_code()
    if code != CLEAR_CODE:
        raise LzwError("Invalid LZW data: missing `CLEAR_CODE` at start")

    old_code: Optional[int] = None
    while code != EOI_CODE:
        if code == CLEAR_CODE:
            table.reset()
            code_size = MIN_CODE_SIZE
            next_code = FIRST_CODE
            code = read_code()
            if code == EOI_CODE:
                break
            out += sequence_for(code)
            old_code = code
        elif old_code is None:
            raise LzwError(f"Invalid LZW data: code {code} has no preceding code")
        elif code in table:
            entry = sequence_for(code)
            out += entry
            add_entry(sequence_for(old_code) + entry[:1])
            old_code = code
        else:
            if code != next_code:
                raise LzwError(f"Code {code} not found in dictionary")
            previous = sequence_for(old_code)
            entry = previous + previous[:1]
            out += entry
            add_entry(entry)
            old_code = code
        code = read_code()

    return bytes(out)
