"""
Integer-only pool math kernels
"""
