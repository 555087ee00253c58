"""
NIST CSF 2.0 function and category definitions.

Control Hierarchy:
    - 6 Functions: Govern (GV), Identify (ID), Protect (PR), Detect (DE),
                   Respond (RS), Recover (RC)
    - 22 Categories

function_code() maps long labels, combined labels and short codes to the
two-letter code through an explicit lookup, falling back to a trailing
parenthesized code.
"""

from csftracker.nist.functions import (
    FUNCTION_CODES,
    FUNCTION_DISPLAY_NAMES,
    NIST_FUNCTIONS,
    NistCategory,
    NistFunction,
    function_code,
    get_all_categories,
    get_all_functions,
    get_category,
    get_function,
)

__all__ = [
    # Dataclasses
    "NistFunction",
    "NistCategory",
    # Tables
    "NIST_FUNCTIONS",
    "FUNCTION_CODES",
    "FUNCTION_DISPLAY_NAMES",
    # Lookup functions
    "function_code",
    "get_function",
    "get_category",
    "get_all_functions",
    "get_all_categories",
]
