"""
codeatlas.commands - CLI command implementations
"""
