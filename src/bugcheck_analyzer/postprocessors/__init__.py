"""Built-in bugcheck post-processors.

Each module is named after the bugcheck code it handles (``9f.py`` for 0x9F)
and is loaded by file path, not imported as a regular submodule.
"""
