"""
Core comparison logic: data models, diff engine and content state.

Nothing in this package depends on the user interface.
"""
