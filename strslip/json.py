import numpy as np
import orjson

__all__ = [
    "dumps",
]


def _dumps_default(x):
    # orjson only serializes C-contiguous arrays and exact float types itself
    if isinstance(x, np.ndarray) and not x.flags.c_contiguous:
        return x.tolist()
    if isinstance(x, np.floating):
        return float(x)
    raise TypeError


def dumps(v: dict | list) -> bytes:
    return orjson.dumps(v, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_SERIALIZE_NUMPY, default=_dumps_default)
