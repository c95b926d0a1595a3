"""
Multidimensional unfolding of two-mode dissimilarity data.
"""
__version__ = "0.1.0"
