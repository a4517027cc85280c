"""
paycore: Korean statutory payroll & severance calculation engine.

Pure computation: callers hand in compensation terms, attendance intervals and
a reference date; the engine returns itemized pay / severance breakdowns.
"""

__version__ = "0.3.0"
