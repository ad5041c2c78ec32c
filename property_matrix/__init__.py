#Dosctring for the package
"""
Property Matrix

Reconciliation engine for a housing society's spreadsheets:

- Fetching owner roster and receipt sheets (Google Sheets or local exports)
- Cleaning and validating owner / receipt rows
- Building the AMC payment matrix (block x flat, per fiscal year)
- Building the vehicle sticker matrix
- Exporting matrices to Excel / CSV and plotting them

Subpackages:
- core
- cleaning
- sources
- engines
- visualization
- outputs

"""

#Import modules to be exposed at the package level
from . import core, cleaning, sources, engines, visualization, outputs
__all__ = [
    "core",
    "cleaning",
    "sources",
    "engines",
    "visualization",
    "outputs",
]
