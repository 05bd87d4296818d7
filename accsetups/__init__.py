"""
ACC setups viewer: catalog, selection and converted values for shared setups.
"""
