"""
Transport plugins for orbi.
"""
