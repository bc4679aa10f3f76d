"""SlidePress: AI slide generation and GitHub Pages publishing."""

__version__ = "0.1.0"
