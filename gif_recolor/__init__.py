"""Palette remapping and compositing for indexed-color GIF animations."""
