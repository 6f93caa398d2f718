"""SCRC community website backend."""
