"""Filesystem discovery for the organizer."""

from .discovery import DirectoryScanner, split_into_batches
from .models import FileSystemEntry

__all__ = ["DirectoryScanner", "FileSystemEntry", "split_into_batches"]
