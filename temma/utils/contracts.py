"""
Data contracts - validate and clean input data.

A contract is either:
- None or "" (pass-through)
- a string: ``"int"``, ``"?int"``, ``"int; min: 3; max: 9"``,
  ``"enum; values: member, admin"``, ``"null|int|string"``
- a dict with a ``type`` key and its parameters:
  ``{"type": "string", "minlen": 1, "mask": "^[a-z]+$"}``
- a dict without ``type``: an associative contract whose keys are the
  expected keys. A key ending with ``?`` is optional, a ``...`` key
  keeps the keys not listed.

A type may be prefixed with ``=`` (strict) or ``~`` (lenient). Lenient
matching converts strings coming from URLs or forms ("12", "true").

Example:
    ```python
    filter_data({"age": "12"}, {"name?": "string", "age": "int; min: 0"})
    # {"age": 12}
    ```
"""

import re
from typing import Any, Callable, Dict, List, Optional, Union

from ..faults import ApplicationFault, ConfigFault

Contract = Union[None, str, dict, list]

TRUE_VALUES = {"true", "True", "TRUE", "1", "yes", "on", True, 1}
FALSE_VALUES = {"false", "False", "FALSE", "0", "no", "off", False, 0}

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

WILDCARD = "..."


def parse_contract(contract: str) -> Dict[str, Any]:
    """
    Parse a contract string into a dict.

    ``"int; min: 3"`` -> ``{"type": "int", "min": "3"}``
    """
    type_name, _, rest = contract.partition(";")
    parsed: Dict[str, Any] = {"type": type_name.strip()}
    for item in rest.split(";"):
        if not item.strip():
            continue
        label, sep, value = item.partition(":")
        if not sep:
            raise ConfigFault(f"Bad contract parameter '{item.strip()}' in '{contract}'.")
        parsed[label.strip()] = value.strip()
    return parsed


def _number(value: Any, cast: Callable[[Any], Any]) -> Any:
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigFault(f"Bad numeric contract parameter '{value}'.")


def _check_bounds(value: Any, params: Dict[str, Any], cast: Callable[[Any], Any]) -> None:
    if params.get("min") is not None and value < _number(params["min"], cast):
        raise ValueError(f"Value {value} is lower than {params['min']}.")
    if params.get("max") is not None and value > _number(params["max"], cast):
        raise ValueError(f"Value {value} is greater than {params['max']}.")


def _null(data: Any, params: Dict[str, Any]) -> None:
    if data is None or (not params["strict"] and data == ""):
        return None
    raise ValueError("Not null.")


def _bool(data: Any, params: Dict[str, Any]) -> bool:
    if isinstance(data, bool):
        return data
    if not params["strict"]:
        if data in TRUE_VALUES:
            return True
        if data in FALSE_VALUES:
            return False
    raise ValueError("A valid boolean is required.")


def _int(data: Any, params: Dict[str, Any]) -> int:
    if isinstance(data, bool):
        raise ValueError("A valid integer is required.")
    if isinstance(data, int):
        value = data
    elif params["strict"] or not isinstance(data, str):
        raise ValueError("A valid integer is required.")
    else:
        try:
            value = int(data.strip())
        except ValueError:
            raise ValueError("A valid integer is required.")
    _check_bounds(value, params, int)
    return value


def _float(data: Any, params: Dict[str, Any]) -> float:
    if isinstance(data, bool):
        raise ValueError("A valid number is required.")
    if isinstance(data, (int, float)):
        value = float(data)
    elif params["strict"] or not isinstance(data, str):
        raise ValueError("A valid number is required.")
    else:
        try:
            value = float(data.strip())
        except ValueError:
            raise ValueError("A valid number is required.")
    _check_bounds(value, params, float)
    return value


def _string(data: Any, params: Dict[str, Any]) -> str:
    if isinstance(data, str):
        value = data
    elif not params["strict"] and isinstance(data, (int, float)) and not isinstance(data, bool):
        value = str(data)
    else:
        raise ValueError("Not a valid string.")
    if params.get("minlen") is not None and len(value) < _number(params["minlen"], int):
        raise ValueError(f"String shorter than {params['minlen']} characters.")
    if params.get("maxlen") is not None and len(value) > _number(params["maxlen"], int):
        raise ValueError(f"String longer than {params['maxlen']} characters.")
    if params.get("mask") and not re.search(params["mask"], value):
        raise ValueError("String doesn't match the mask.")
    return value


def _email(data: Any, params: Dict[str, Any]) -> str:
    value = _string(data, params).strip()
    if not EMAIL_RE.match(value):
        raise ValueError("Not a valid email address.")
    return value


def _enum(data: Any, params: Dict[str, Any]) -> Any:
    values = params.get("values")
    if isinstance(values, str):
        values = [value.strip() for value in values.split(",")]
    if not values:
        raise ConfigFault("Enum contract without values.")
    if data in values:
        return data
    if not params["strict"] and str(data) in values:
        return str(data)
    raise ValueError(f"Value '{data}' is not one of {values}.")


def _list(data: Any, params: Dict[str, Any]) -> List[Any]:
    if not isinstance(data, (list, tuple)):
        raise ValueError("Not a list.")
    if params.get("minlen") is not None and len(data) < _number(params["minlen"], int):
        raise ValueError(f"List shorter than {params['minlen']} items.")
    if params.get("maxlen") is not None and len(data) > _number(params["maxlen"], int):
        raise ValueError(f"List longer than {params['maxlen']} items.")
    item_contract = params.get("contract")
    return [_filter(item, item_contract, params["strict"]) for item in data]


def _assoc(data: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    keys = params.get("keys")
    if isinstance(keys, str):
        keys = [key.strip() for key in keys.split(",")]
    if isinstance(keys, (list, tuple)):
        keys = {key: None for key in keys}
    if not isinstance(keys, dict) or not keys:
        raise ConfigFault("Associative contract without keys.")
    if not isinstance(data, dict):
        raise ValueError("Not an associative array.")

    result: Dict[str, Any] = {}
    keep_others = False
    for key, sub_contract in keys.items():
        if key == WILDCARD:
            keep_others = True
            continue
        mandatory = not key.endswith("?")
        name = key if mandatory else key[:-1]
        if name not in data:
            if isinstance(sub_contract, dict) and "default" in sub_contract:
                result[name] = sub_contract["default"]
            elif mandatory:
                raise ValueError(f"Missing key '{name}'.")
            continue
        result[name] = _filter(data[name], sub_contract, params["strict"])
    if keep_others:
        for key, value in data.items():
            result.setdefault(key, value)
    return result


VALIDATORS: Dict[str, Callable[[Any, Dict[str, Any]], Any]] = {
    "null": _null,
    "bool": _bool,
    "int": _int,
    "float": _float,
    "string": _string,
    "email": _email,
    "enum": _enum,
    "list": _list,
    "assoc": _assoc,
}


def _filter(data: Any, contract: Contract, strict: bool) -> Any:
    if contract is None or contract == "":
        return data
    if isinstance(contract, str):
        contract = parse_contract(contract)
    elif isinstance(contract, list):
        contract = {"type": "list", "contract": contract[0] if contract else None}
    if not isinstance(contract, dict):
        raise ConfigFault(f"Bad contract {contract!r}.")
    if "type" not in contract:
        contract = {"type": "assoc", "keys": contract}

    params = dict(contract)
    type_spec = params.pop("type")
    if not type_spec:
        return data
    params["strict"] = strict
    if type_spec.startswith("="):
        params["strict"] = True
        type_spec = type_spec[1:]
    elif type_spec.startswith("~"):
        params["strict"] = False
        type_spec = type_spec[1:]

    types = [name.strip() for name in type_spec.split("|")]
    if types[0].startswith("?"):
        types[0] = types[0][1:]
        types.insert(0, "null")

    if data is None and "default" in params:
        return params["default"]

    last_error: Optional[ValueError] = None
    for name in types:
        validator = VALIDATORS.get(name)
        if validator is None:
            raise ConfigFault(f"Unknown validation type '{name}'.")
        try:
            return validator(data, params)
        except ValueError as exc:
            last_error = exc
    if "default" in params:
        return params["default"]
    raise last_error or ValueError("Data doesn't validate the contract.")


def filter_data(data: Any, contract: Contract, strict: bool = False) -> Any:
    """
    Validate ``data`` against ``contract`` and return the cleaned data.

    Raises:
        ApplicationFault: (BAD_PARAM) the data doesn't respect the contract
        ConfigFault: the contract itself is malformed
    """
    try:
        return _filter(data, contract, strict)
    except ValueError as exc:
        raise ApplicationFault(str(exc), ApplicationFault.BAD_PARAM) from exc
