"""
UB_Libs - Overlay Unblend Library Modules

This package recovers original images from overlaid composites. It is
organized into specialized sub-packages:

- ImageEditingLib: Pixel buffers, the unblend filter and image I/O
- NodesLib: Image Import, Unblend and Output pipeline nodes
- PipelineLib: Node executor registry and pipeline execution
"""

__version__ = "0.1.0"
