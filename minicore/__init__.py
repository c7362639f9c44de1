"""Userland tools, a file-system image builder, a shell parser and kernel memory models."""

__version__ = "0.1.0"

__all__ = [
    "commands",
    "fmt",
    "grep",
    "libc",
    "mkfs",
    "processes",
    "rand",
    "shell",
    "umalloc",
    "virtio",
    "vm",
    "wc",
]