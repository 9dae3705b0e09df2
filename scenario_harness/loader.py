import importlib
import inspect

from .errors import InvalidConfigError
from .suite import Suite


def load_suite(target: str, **kwargs) -> Suite:
    """Resolve "package.module:attribute" to a Suite.

    The attribute may be a Suite or a callable returning one; keyword
    arguments (e.g. config=...) are passed to the callable.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise InvalidConfigError(f"Suite target must look like 'module:attribute', got {target!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InvalidConfigError(f"Cannot import {module_name}: {e}") from e

    obj = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise InvalidConfigError(f"{module_name} has no attribute {attribute}") from None

    if not isinstance(obj, Suite) and callable(obj):
        accepted = inspect.signature(obj).parameters
        obj = obj(**{k: v for k, v in kwargs.items() if k in accepted})
    if not isinstance(obj, Suite):
        raise InvalidConfigError(f"{target} is not a Suite")
    return obj
