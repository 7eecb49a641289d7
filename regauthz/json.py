import json as json_module
from typing import IO, Any, Dict, List, Union

JSONType = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]


def bytes_to_str(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    elif isinstance(data, dict):
        for _k, _v in data.items():
            data[_k] = bytes_to_str(_v)
    elif isinstance(data, (list, tuple, frozenset, set)):
        data = [bytes_to_str(_v) for _v in data]

    return data


def dumps(obj: JSONType, **kwargs: Any) -> str:
    try:
        ret = json_module.dumps(obj, **kwargs)
    except TypeError:
        # dumps() from the built-in json module does not work with bytes or
        # sets, so convert those if we get a TypeError exception.
        ret = json_module.dumps(bytes_to_str(obj), **kwargs)
    return ret


def dump(obj: JSONType, fp: IO[str], **kwargs: Any) -> None:
    try:
        json_module.dump(obj, fp, **kwargs)
    except TypeError:
        json_module.dump(bytes_to_str(obj), fp, **kwargs)


def load(fp: Any, **kwargs: Any) -> Any:
    return json_module.load(fp, **kwargs)


def loads(s: Union[str, bytes], **kwargs: Any) -> Any:
    return json_module.loads(s, **kwargs)
