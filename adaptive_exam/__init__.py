"""
Adaptive exam estimator.

Computerized adaptive testing over static item banks: maximum Fisher
information item selection, grid-search maximum likelihood ability estimation,
and a session controller with a dual stabilization / precision stopping rule.
"""

__version__ = "0.1.0"
