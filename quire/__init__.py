"""
QUIRE - Quality Uniform Imaging of Resumes for Export

Turns a browser-rendered resume preview into a paginated, margin-consistent PDF.

Architecture:
- Styling Context: rewrites color spaces the rasterizer cannot consume
- Capture Context: stages a detached clone and rasterizes it once
- Rendering Context: plans page slices, assembles page images, writes the PDF
"""

__version__ = "0.1.0"
