"""
slanter/util
~~~~~~~~~~~~
"""
