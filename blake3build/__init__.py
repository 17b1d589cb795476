"""Build-time SIMD strategy resolver and source-set assembler for the BLAKE3 C library."""

__version__ = "0.1.0"
