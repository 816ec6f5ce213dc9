"""
Module - base object with an initializer hook and class extension.

Every Module runs ``initialize(*args, **kwargs)`` on construction.
``Module.extend()`` builds a subclass from an initializer function and a
dictionary of attributes, which is convenient for declaring variants
inline:

    ManualApp = App.extend(auto_start=False)

    CheckoutApp = App.extend(
        lambda self, **kw: self.configure("currency", "EUR"),
        __name__="CheckoutApp",
    )

Plain subclassing is equivalent and preferred for anything non-trivial.
"""

from typing import Any, Callable, Optional


class Module:
    """Base object: constructor delegates to initialize()."""

    def __init__(self, *args: Any, **kwargs: Any):
        self.initialize(*args, **kwargs)

    def initialize(self, *args: Any, **kwargs: Any) -> None:
        """Override to set up instance state."""
        pass

    @classmethod
    def extend(cls, initializer: Optional[Callable[..., None]] = None, **attrs: Any) -> type:
        """
        Create a subclass of this class.

        Args:
            initializer: Optional function run after the parent's initialize,
                with the same arguments
            **attrs: Attributes and methods merged over the parent's.
                ``__name__`` sets the new class name.

        Returns:
            The new subclass, itself extendable
        """
        name = attrs.pop("__name__", f"{cls.__name__}Extension")
        namespace = dict(attrs)

        if initializer is not None:
            parent_initialize = cls.initialize

            def initialize(self, *args: Any, **kwargs: Any) -> None:
                parent_initialize(self, *args, **kwargs)
                initializer(self, *args, **kwargs)

            namespace["initialize"] = initialize

        namespace.setdefault("__module__", cls.__module__)
        return type(cls)(name, (cls,), namespace)
