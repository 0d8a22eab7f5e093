"""
Modification package: the tracked snapshot schema, its remote source and its baseline store.
"""
