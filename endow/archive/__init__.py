"""Endow archive support: byte buffers for packaging compiled modules."""

from endow.archive.buffer_writer import BufferWriter

__all__ = ["BufferWriter"]
