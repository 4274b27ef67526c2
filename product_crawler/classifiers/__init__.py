from .base import ProductClassifier
from .patterns import PatternClassifier

__all__ = ["ProductClassifier", "PatternClassifier"]
