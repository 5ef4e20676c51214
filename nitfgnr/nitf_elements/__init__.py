"""
The NITF file header and segment subheader element definitions.
"""

__classification__ = "UNCLASSIFIED"
