"""Cache key derivation for memoized calls."""

import itertools
import json
import weakref

from pydantic import BaseModel

from clinicboost.cache.errors import KeyGenerationError

# Tokens for functions whose qualname is shared by other function objects
_tokens: "weakref.WeakKeyDictionary[object, int]" = weakref.WeakKeyDictionary()
_counter = itertools.count(1)


def _encode(obj: object) -> object:
    """``json.dumps`` fallback for values JSON cannot encode natively."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=repr)
    return repr(obj)


def _normalize(obj: object, seen: set[int]) -> object:
    """Give every dict plain string keys so mixed key types still sort."""
    if isinstance(obj, dict):
        items = obj.items()
    elif isinstance(obj, (list, tuple)):
        items = None
    else:
        return obj

    if id(obj) in seen:
        raise ValueError("Circular reference detected")
    seen.add(id(obj))
    if items is None:
        result: object = [_normalize(item, seen) for item in obj]  # type: ignore[union-attr]
    else:
        result = {
            k if isinstance(k, str) else repr(k): _normalize(v, seen) for k, v in items
        }
    seen.discard(id(obj))
    return result


def default_key(*args: object, **kwargs: object) -> str:
    """Serialize call arguments to a canonical JSON string.

    Dict keys are sorted so insertion order does not matter; non-string
    keys are written as their ``repr``. This is a convenience for
    primitive arguments: values that only differ in ways JSON cannot
    express (``nan`` vs ``"NaN"``, tuples vs lists, ``1`` vs ``"1"`` as a
    dict key) share a key. Pass an explicit ``key_generator`` to the
    memoizers when that matters.

    Raises:
        KeyGenerationError: If the arguments cannot be encoded.
    """
    try:
        return json.dumps(
            _normalize([list(args), kwargs], set()),
            sort_keys=True,
            separators=(",", ":"),
            default=_encode,
        )
    except (TypeError, ValueError) as exc:
        raise KeyGenerationError(f"Cannot derive cache key: {exc}") from exc


def namespace_for(fn: object) -> str:
    """Default key namespace for a wrapped function.

    Module-level functions and methods get ``module.qualname``. Lambdas and
    nested functions share their qualname with every other object built
    from the same code, so they also get a ``#<n>`` token unique to the
    function object.
    """
    module = getattr(fn, "__module__", None) or ""
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
    namespace = f"{module}.{name}" if module else name
    if "<" not in name:
        return namespace

    try:
        token = _tokens.get(fn)
        if token is None:
            token = _tokens[fn] = next(_counter)
    except TypeError:
        # Not weak-referenceable; the object lives as long as its wrapper
        token = id(fn)
    return f"{namespace}#{token}"
