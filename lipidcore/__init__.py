"""
Quantification core for lipid species identified in tandem MS data
"""
__version__ = "0.1.0"
