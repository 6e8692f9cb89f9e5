"""Read, write and composite xsub timed image subtitles."""

__version__ = "0.1.0"

__all__ = ["format", "timer", "imagesub", "window", "player"]