"""Instrumentation for iterative point-cloud alignment.

Collects run-time statistics into histograms and exports intermediate
alignment state as VTK files for offline inspection.
"""
