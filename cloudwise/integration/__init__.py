"""
adapters between `HTTPBinding` and concrete http libraries,
the only modules that import a transport library
"""
