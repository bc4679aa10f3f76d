"""Publishing presentations to GitHub Pages."""
