"""Low-level numerical kernels and special functions.

This subpackage contains the coupling factors and special functions shared by
the recurrence engines, and the Numba kernels that replay baked coefficients.
"""
