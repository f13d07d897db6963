"""
Registry pattern utility for creating type registries.

This module provides the ``new_registry`` function which creates a registry
dictionary and a decorator for registering handlers. canvas_tools uses it to
look up the image encoder of each :py:class:`~canvas_tools.constants.ImageType`.

Usage example::

    from canvas_tools.registry import new_registry

    ENCODERS, register = new_registry(attribute='image_type')

    @register(ImageType.PNG)
    def save_png(image, fp, quality):
        image.save(fp, format='PNG')

    ENCODERS[ImageType.PNG](image, fp, 0.92)
"""

from typing import Any, Callable, Tuple, TypeVar, Union

T = TypeVar("T")


def new_registry(attribute: Union[str, None] = None) -> Tuple[dict, Callable]:
    """
    Returns an empty dict and a @register decorator.

    :param attribute: Optional attribute name to set on registered objects.
                     The key will be stored as this attribute on the object.
    :return: Tuple of (registry_dict, register_decorator)
    """
    registry = {}

    def register(key: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            registry[key] = func
            if attribute:
                setattr(func, attribute, key)
            return func

        return decorator

    return registry, register


def lookup(registry: dict, key: Any, name: str = "key") -> Any:
    """
    Return the handler registered for `key`.

    :raises ValueError: If nothing is registered for the key.
    """
    try:
        return registry[key]
    except KeyError:
        raise ValueError(
            "Unsupported %s: %r (expected one of %s)"
            % (name, key, ", ".join(repr(k) for k in registry))
        ) from None
