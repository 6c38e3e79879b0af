"""Java bytecode decoding, disassembly listings and IR construction."""

__version__ = "0.1.0"