# neurotensor/core/components.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from numbers import Number
from typing import Any, Iterable, Iterator, Mapping

import numpy as np

from .exceptions import ComponentNotFound, InvalidArgument


class ComponentKind(str, Enum):
    ARRAY = "array"      # numeric tensor with declared axes
    SCALAR = "scalar"    # single number
    LABELS = "labels"    # tuple of strings


# Axis names an ARRAY component may declare. "free" is not checked against the recording.
AXES: tuple[str, ...] = ("channel", "sample", "epoch", "free")


@dataclass(frozen=True, slots=True)
class Component:
    """
    Named auxiliary value derived from the signal (ICA weights, epoch means, ...).

    ARRAY components declare one axis name per dimension; the
    "channel", "sample" and "epoch" axes are checked against the owning
    recording whenever the component is attached.
    """
    name: str
    kind: ComponentKind
    value: Any
    axes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidArgument("Component.name must be a non-empty string.")
        kind = ComponentKind(self.kind)
        object.__setattr__(self, "kind", kind)

        if kind is ComponentKind.ARRAY:
            value = np.array(self.value)
            if not np.issubdtype(value.dtype, np.number) and value.dtype != bool:
                raise InvalidArgument(f"Component '{self.name}' must be numeric, got dtype {value.dtype}.")
            axes = tuple(self.axes) if self.axes else ("free",) * value.ndim
            if len(axes) != value.ndim:
                raise InvalidArgument(
                    f"Component '{self.name}' declares {len(axes)} axes for a {value.ndim}-D value."
                )
            bad = [a for a in axes if a not in AXES]
            if bad:
                raise InvalidArgument(f"Component '{self.name}' has unknown axes {bad}; use {AXES}.")
            value.setflags(write=False)
            object.__setattr__(self, "value", value)
            object.__setattr__(self, "axes", axes)
        elif kind is ComponentKind.SCALAR:
            if isinstance(self.value, bool) or not isinstance(self.value, Number):
                raise InvalidArgument(f"Component '{self.name}' must be a number.")
            if self.axes:
                raise InvalidArgument(f"Scalar component '{self.name}' cannot declare axes.")
        else:
            if isinstance(self.value, str) or not all(isinstance(v, str) for v in self.value):
                raise InvalidArgument(f"Component '{self.name}' must be a sequence of strings.")
            object.__setattr__(self, "value", tuple(self.value))
            if self.axes:
                raise InvalidArgument(f"Labels component '{self.name}' cannot declare axes.")

    @classmethod
    def infer(cls, name: str, value: Any, axes: Iterable[str] | None = None) -> "Component":
        """Pick the kind from the value: numbers -> SCALAR, strings -> LABELS, otherwise ARRAY."""
        if isinstance(value, Number) and not isinstance(value, bool):
            return cls(name, ComponentKind.SCALAR, value)
        if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
            return cls(name, ComponentKind.LABELS, value)
        return cls(name, ComponentKind.ARRAY, value, tuple(axes or ()))

    def check_shape(self, channels: int, samples: int, epochs: int) -> None:
        if self.kind is not ComponentKind.ARRAY:
            return
        expected = {"channel": channels, "sample": samples, "epoch": epochs}
        for axis, size in zip(self.axes, self.value.shape):
            if axis in expected and size != expected[axis]:
                raise InvalidArgument(
                    f"Component '{self.name}' has {size} entries along '{axis}', "
                    f"recording has {expected[axis]}."
                )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Component):
            return NotImplemented
        if (self.name, self.kind, self.axes) != (other.name, other.kind, other.axes):
            return False
        if self.kind is ComponentKind.ARRAY:
            return self.value.dtype == other.value.dtype and np.array_equal(self.value, other.value)
        return self.value == other.value


class Components(Mapping[str, Component]):
    """Immutable registry name -> Component; cleared on every shape-changing edit."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Component] = ()) -> None:
        registry: dict[str, Component] = {}
        for comp in items:
            if not isinstance(comp, Component):
                raise InvalidArgument("Components entries must be Component instances.")
            registry[comp.name] = comp
        self._items = registry

    def __getitem__(self, name: str) -> Component:
        try:
            return self._items[name]
        except KeyError as e:
            raise ComponentNotFound(name) from e

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Components):
            return NotImplemented
        return list(self._items) == list(other._items) and all(
            self._items[k] == other._items[k] for k in self._items
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Components({list(self._items)})"

    def with_component(self, component: Component) -> "Components":
        return Components([*(c for n, c in self._items.items() if n != component.name), component])

    def without(self, name: str) -> "Components":
        if name not in self._items:
            raise ComponentNotFound(name)
        return Components(c for n, c in self._items.items() if n != name)

    def check_shape(self, channels: int, samples: int, epochs: int) -> None:
        for comp in self._items.values():
            comp.check_shape(channels, samples, epochs)
