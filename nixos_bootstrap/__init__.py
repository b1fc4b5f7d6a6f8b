"""Partition, format and mount a disk with btrfs, then install NixOS."""

from .__version__ import __version__


__all__ = ["__version__"]
