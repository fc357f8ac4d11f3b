"""Storage style resolution.

``StyleRegistry.resolve`` maps an element type to a storage style. It walks
a fixed list of resolver steps and returns the first style any of them
produces:

1. explicit overrides registered for the type (or one of its base classes)
2. elemental: native scalars, enums, ``Char`` and registered conversions
3. fixed-layout composites as compound types, only when ``portable=False``
   (homogeneous tuples of elemental members are left to step 4)
4. array-like: fixed-shape arrays of an elemental type
5. composites: one child vector per field
6. byte serialization as the fallback

Resolution depends only on the type, ``portable`` and ``dims``; calling it
never mutates the registry.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .composites import BUILTIN_LAYOUTS, CompositeLayout, derive_layout
from .conversions import (
    BUILTIN_SCALARS,
    ElementalConversion,
    char_conversion,
    enum_conversion,
    flatten_nested,
    is_enum_type,
    native_conversion,
    nest_flat,
)
from .exceptions import DimensionMismatchError, StorageStyleResolutionError
from .serialization import ByteCodec, PickleCodec, TextCodec
from .styles import (
    AbstractHDF5VectorStorageStyle,
    ArrayStorageStyle,
    ByteArrayStorageStyle,
    CompositeStorageStyle,
    ElementalStorageStyle,
    JSONStorageStyle,
)
from .types import (
    Char,
    fixed_tuple_args,
    is_type_like,
    ndarray_scalar_type,
    type_name,
    unwrap_annotated,
)

__all__ = [
    "StyleRegistry",
    "default_registry",
    "storage_style",
    "is_elemental",
    "register_storage_style",
    "register_elemental_conversion",
    "register_composite",
    "install_text_codec",
]

logger = logging.getLogger(__name__)

Dimensions = Optional[Tuple[int, ...]]
StyleOverride = Union[
    AbstractHDF5VectorStorageStyle,
    Callable[..., AbstractHDF5VectorStorageStyle],
]
_MISSING = object()


@dataclass(frozen=True)
class _ArraySpec:
    element: Any
    dims: Tuple[int, ...]
    kind: str


@dataclass(frozen=True)
class _FixedLayout:
    datatype: np.dtype
    to_native: Callable[[Any], Any]
    from_native: Callable[[Any], Any]


def _lookup(table: Dict[Any, Any], tp: Any) -> Any:
    try:
        return table.get(tp, _MISSING)
    except TypeError:  # unhashable annotation
        return _MISSING


def _normalize_dims(dims: Optional[Sequence[int]]) -> Dimensions:
    if dims is None:
        return None
    return tuple(int(d) for d in dims)


def _list_nesting(tp: Any) -> Tuple[Any, int]:
    depth = 0
    while typing.get_origin(tp) is list:
        args = typing.get_args(tp)
        tp = args[0] if args else Any
        depth += 1
    return tp, depth


def _check_declared(tp: Any, declared: Tuple[int, ...], dims: Dimensions) -> None:
    if dims is not None and tuple(dims) != tuple(declared):
        raise DimensionMismatchError(
            f"The dimensions of {type_name(tp)} {tuple(declared)} don't match "
            f"the provided `dims` keyword argument, {tuple(dims)}."
        )


class StyleRegistry:
    """Registry of storage-style rules, conversions and composite layouts.

    Args:
        byte_codec: Codec for the byte-array fallback. ``None`` disables the
            fallback, so unresolvable types raise instead.
        text_codec: Codec for ``JSONStorageStyle``. Types opted into JSON fall
            back to byte serialization while this is ``None``.
    """

    def __init__(
        self,
        *,
        byte_codec: Optional[ByteCodec] = None,
        text_codec: Optional[TextCodec] = None,
        include_builtins: bool = True,
    ) -> None:
        self.byte_codec: Optional[ByteCodec] = byte_codec
        self.text_codec: Optional[TextCodec] = text_codec
        self._overrides: Dict[Any, StyleOverride] = {}
        self._conversions: Dict[Any, ElementalConversion] = {}
        self._layouts: Dict[Any, CompositeLayout] = {}
        self._resolvers: List[
            Callable[[Any, bool, Dimensions], Optional[AbstractHDF5VectorStorageStyle]]
        ] = [
            self._resolve_override,
            self._resolve_elemental,
            self._resolve_fixed_layout,
            self._resolve_arraylike,
            self._resolve_composite,
        ]
        if include_builtins:
            self._conversions[Char] = char_conversion()
            self._layouts.update(BUILTIN_LAYOUTS)

    @classmethod
    def with_defaults(cls) -> "StyleRegistry":
        return cls(byte_codec=PickleCodec())

    # Registration ---------------------------------------------------------

    def register_storage_style(self, tp: Any, style: StyleOverride) -> None:
        """Force a storage style for ``tp`` and its subclasses.

        ``style`` is either a style instance or a callable
        ``(tp, *, portable, dims) -> style``; a callable may return None to
        defer to the regular rules.
        """
        self._overrides[tp] = style

    def register_elemental_conversion(
        self,
        tp: Any,
        datatype: Any,
        to_native: Callable[[Any], Any],
        from_native: Callable[[Any], Any],
    ) -> None:
        """Store ``tp`` as a native scalar via an inverse conversion pair."""
        self._conversions[tp] = ElementalConversion(
            np.dtype(datatype), to_native, from_native
        )

    def register_composite(
        self,
        tp: Any,
        fields: Sequence[Tuple[str, Any]],
        deconstruct: Callable[[Any], Sequence[Any]],
        construct: Callable[[Sequence[Any]], Any],
    ) -> None:
        """Register an explicit field layout for a composite type."""
        self._layouts[tp] = CompositeLayout(
            fields=tuple((str(name), ftype) for name, ftype in fields),
            deconstruct=deconstruct,
            construct=construct,
        )

    def install_text_codec(self, codec: Optional[TextCodec]) -> None:
        """Enable (or with ``None`` disable) ``JSONStorageStyle``."""
        self.text_codec = codec

    # Lookups --------------------------------------------------------------

    def elemental_conversion(self, tp: Any) -> Optional[ElementalConversion]:
        conversion = native_conversion(tp)
        if conversion is not None:
            return conversion
        registered = _lookup(self._conversions, tp)
        if registered is not _MISSING:
            return registered
        if is_enum_type(tp):
            return enum_conversion(tp)
        return None

    def composite_layout(self, tp: Any) -> Optional[CompositeLayout]:
        registered = _lookup(self._layouts, tp)
        if registered is not _MISSING:
            return registered
        return derive_layout(tp)

    # Resolution -----------------------------------------------------------

    def resolve(
        self,
        el_type: Any,
        *,
        portable: bool = True,
        dims: Optional[Sequence[int]] = None,
    ) -> AbstractHDF5VectorStorageStyle:
        """Return the storage style for ``el_type``.

        Raises:
            StorageStyleResolutionError: ``el_type`` is not a type, or nothing
                matched and no byte codec is installed.
            DimensionMismatchError: ``dims`` conflicts with a shape declared by
                the type itself.
        """
        if not (el_type is Any or is_type_like(el_type)):
            raise StorageStyleResolutionError(
                f"{el_type!r} is not a type and has no storage style"
            )
        dims = _normalize_dims(dims)
        base, declared = unwrap_annotated(el_type)
        tp = el_type if declared is not None else base
        for resolver in self._resolvers:
            style = resolver(tp, portable, dims)
            if style is not None:
                return style
        return self._fallback(tp)

    def is_elemental(self, el_type: Any, **kwargs: Any) -> bool:
        return isinstance(self.resolve(el_type, **kwargs), ElementalStorageStyle)

    def _fallback(self, tp: Any) -> ByteArrayStorageStyle:
        if self.byte_codec is None:
            raise StorageStyleResolutionError(
                f"No storage style for {type_name(tp)} and no byte codec is installed"
            )
        return ByteArrayStorageStyle(codec=self.byte_codec)

    def _resolve_override(self, tp, portable, dims):
        candidates = tp.__mro__ if isinstance(tp, type) else (tp,)
        for candidate in candidates:
            override = _lookup(self._overrides, candidate)
            if override is not _MISSING:
                break
        else:
            return None
        if isinstance(override, AbstractHDF5VectorStorageStyle):
            style = override
        else:
            style = override(tp, portable=portable, dims=dims)
        if isinstance(style, ByteArrayStorageStyle):
            if style.codec is None:
                codec = self._fallback(tp).codec
                style = dataclasses.replace(style, codec=codec)
        elif isinstance(style, JSONStorageStyle) and style.codec is None:
            if self.text_codec is None:
                logger.warning(
                    "%s requests JSON storage but no text codec is installed; "
                    "using byte serialization",
                    type_name(tp),
                )
                return self._fallback(tp)
            style = dataclasses.replace(style, codec=self.text_codec)
        return style

    def _resolve_elemental(self, tp, portable, dims):
        conversion = self.elemental_conversion(tp)
        if conversion is None:
            return None
        return ElementalStorageStyle(
            datatype=conversion.datatype,
            to_native=conversion.to_native,
            from_native=conversion.from_native,
        )

    def _array_spec(self, tp: Any, dims: Dimensions) -> Optional[_ArraySpec]:
        base, declared = unwrap_annotated(tp)
        members = fixed_tuple_args(base)
        if members is not None:
            if not members or any(m != members[0] for m in members):
                return None
            own = (len(members),)
            _check_declared(tp, own, dims)
            if declared is not None:
                _check_declared(tp, own, declared)
            return _ArraySpec(members[0], own, "tuple")
        if declared is not None:
            _check_declared(tp, declared, dims)
        shape = declared if declared is not None else dims
        scalar = ndarray_scalar_type(base)
        if scalar is not None:
            if shape is None:
                return None
            return _ArraySpec(scalar, tuple(shape), "ndarray")
        origin = typing.get_origin(base)
        if origin is list:
            element, depth = _list_nesting(base)
            if shape is None:
                return None
            if depth != len(shape):
                raise DimensionMismatchError(
                    f"{type_name(tp)} nests {depth} list level(s) but `dims` "
                    f"{tuple(shape)} has {len(shape)} dimension(s)."
                )
            return _ArraySpec(element, tuple(shape), "list")
        if origin is tuple and shape is not None:
            args = typing.get_args(base)
            if len(shape) != 1:
                raise DimensionMismatchError(
                    f"{type_name(tp)} is one-dimensional but `dims` is {tuple(shape)}."
                )
            return _ArraySpec(args[0], tuple(shape), "tuple")
        return None

    def _resolve_arraylike(self, tp, portable, dims):
        spec = self._array_spec(tp, dims)
        if spec is None:
            return None
        element_style = self.resolve(spec.element, portable=portable)
        if not isinstance(element_style, ElementalStorageStyle):
            return None
        to_native = element_style.to_native
        from_native = element_style.from_native
        if spec.element in BUILTIN_SCALARS or spec.kind == "ndarray":
            from_native = None
        return ArrayStorageStyle(
            datatype=element_style.datatype,
            dims=spec.dims,
            kind=spec.kind,
            element_to_native=to_native,
            element_from_native=from_native,
        )

    def fixed_layout(self, tp: Any) -> Optional[_FixedLayout]:
        """Compound-type layout for ``tp``, or None if it is not fixed-width."""
        conversion = self.elemental_conversion(tp)
        if conversion is not None:
            if not conversion.is_fixed_size:
                return None
            return _FixedLayout(
                conversion.datatype, conversion.to_native, conversion.from_native
            )
        layout = self.composite_layout(tp)
        if layout is None:
            spec = self._array_spec(tp, None)
            return None if spec is None else self._fixed_array_layout(spec)
        if not layout.fields:
            return None
        children = [self.fixed_layout(ftype) for ftype in layout.types]
        if any(child is None for child in children):
            return None
        names = layout.names
        datatype = np.dtype(
            [(name, child.datatype) for name, child in zip(names, children)]
        )

        def to_native(value: Any) -> tuple:
            return tuple(
                child.to_native(v)
                for child, v in zip(children, layout.deconstruct(value))
            )

        def from_native(raw: Any) -> Any:
            return layout.construct(
                [child.from_native(raw[name]) for name, child in zip(names, children)]
            )

        return _FixedLayout(datatype, to_native, from_native)

    def _fixed_array_layout(self, spec: _ArraySpec) -> Optional[_FixedLayout]:
        element = self.fixed_layout(spec.element)
        if element is None:
            return None
        size = math.prod(spec.dims)

        def to_native(value: Any) -> Any:
            if spec.kind == "ndarray":
                return np.asarray(value, dtype=element.datatype)
            flat = flatten_nested(value, spec.dims)
            return np.asarray(
                [element.to_native(v) for v in flat], dtype=element.datatype
            ).reshape(spec.dims)

        def from_native(raw: Any) -> Any:
            raw = np.asarray(raw)
            if spec.kind == "ndarray":
                return np.array(raw)
            flat = [element.from_native(v) for v in raw.reshape(size)]
            return tuple(flat) if spec.kind == "tuple" else nest_flat(flat, spec.dims)

        return _FixedLayout(
            np.dtype((element.datatype, spec.dims)), to_native, from_native
        )

    def _resolve_fixed_layout(self, tp, portable, dims):
        if portable or self.composite_layout(tp) is None:
            return None
        # homogeneous tuples of elemental members stay array-like
        if self._resolve_arraylike(tp, portable, dims) is not None:
            return None
        fixed = self.fixed_layout(tp)
        if fixed is None:
            return None
        return ElementalStorageStyle(
            datatype=fixed.datatype,
            to_native=fixed.to_native,
            from_native=fixed.from_native,
        )

    def _resolve_composite(self, tp, portable, dims):
        layout = self.composite_layout(tp)
        if layout is None or not layout.fields:
            return None
        return CompositeStorageStyle(layout=layout)


_DEFAULT_REGISTRY = StyleRegistry.with_defaults()


def default_registry() -> StyleRegistry:
    """The process-wide registry used when none is passed explicitly."""
    return _DEFAULT_REGISTRY


def storage_style(
    el_type: Any, *, portable: bool = True, dims: Optional[Sequence[int]] = None
) -> AbstractHDF5VectorStorageStyle:
    """Resolve ``el_type`` against the default registry."""
    return _DEFAULT_REGISTRY.resolve(el_type, portable=portable, dims=dims)


def is_elemental(el_type: Any, **kwargs: Any) -> bool:
    return _DEFAULT_REGISTRY.is_elemental(el_type, **kwargs)


def register_storage_style(tp: Any, style: StyleOverride) -> None:
    _DEFAULT_REGISTRY.register_storage_style(tp, style)


def register_elemental_conversion(
    tp: Any,
    datatype: Any,
    to_native: Callable[[Any], Any],
    from_native: Callable[[Any], Any],
) -> None:
    _DEFAULT_REGISTRY.register_elemental_conversion(
        tp, datatype, to_native, from_native
    )


def register_composite(
    tp: Any,
    fields: Sequence[Tuple[str, Any]],
    deconstruct: Callable[[Any], Sequence[Any]],
    construct: Callable[[Sequence[Any]], Any],
) -> None:
    _DEFAULT_REGISTRY.register_composite(tp, fields, deconstruct, construct)


def install_text_codec(codec: Optional[TextCodec]) -> None:
    _DEFAULT_REGISTRY.install_text_codec(codec)
