"""Performance benchmarks for cvxpipe.

This package contains benchmarks comparing the time spent in each pipeline
stage against the time spent in the numerical solver.
"""
