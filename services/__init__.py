"""
Transport-agnostic services. The Flask blueprints in `api` are thin wrappers
around these.
"""
