"""
models/ - Domain Models
=======================
Plain dataclasses shared by every layer, plus the enumerated values
(currencies, frequencies) and static currency tables they rely on.
"""
