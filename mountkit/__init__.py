"""Mount point helpers: mountinfo parsing, bind options, cleanup and a fake mounter."""

__version__ = "0.1.0"
__all__ = ["mount", "mountinfo", "fake", "cleanup", "windows"]