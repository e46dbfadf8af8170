"""Test suite for llmc."""
