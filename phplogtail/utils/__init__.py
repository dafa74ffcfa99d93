"""
Utility modules for phplogtail.

Modules:
    - paths: default locations and environment-driven settings
    - applog: diagnostic logging for the tool itself
    - dates: day badges and time labels for entries
"""
