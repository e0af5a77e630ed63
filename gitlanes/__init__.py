"""gitlanes - lane-based commit graph layout and rendering"""

__version__ = "0.1.0"
