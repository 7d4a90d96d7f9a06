from .base import BaseSource
from .knaben import KnabenSource
from .row_extractor import BaseMagnetStrategy, ColumnLayout, RowExtractor

__all__ = [
    "BaseSource",
    "BaseMagnetStrategy",
    "ColumnLayout",
    "KnabenSource",
    "RowExtractor",
]
