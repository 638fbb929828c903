"""Results accumulator and report generation."""

from .service import Results, render_html

__all__ = ["Results", "render_html"]
