"""
Kernel layer.

``kernels/python/`` holds the pure integer kernels (swap pricing, share
math) that the ledgers and the controller delegate to.
"""
