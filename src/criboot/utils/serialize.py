# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/utils/serialize.py

from decimal import Decimal
from typing import Any, Dict

import simplejson

# Integers are exact in Python. Anything with a fraction or exponent is kept as
# Decimal and written back with its original digits (1E+2 stays 1E+2).
LiveConfig = Dict[str, Any]


def loads_live_config(raw: str | bytes) -> Any:
    return simplejson.loads(raw, use_decimal=True)


def dumps_live_config(obj: Any) -> str:
    return simplejson.dumps(obj, use_decimal=True)


def json_equal(a: Any, b: Any) -> bool:
    """
    Equality between decoded JSON values without coercion:
    true != 1, "1" != 1.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, Decimal)) and isinstance(b, (int, Decimal)):
        return a == b
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return a == b
