"""Avro schemas, binary decoding, compatibility checks and a schema registry client."""

__version__ = "0.1.0"