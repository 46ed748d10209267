"""Capability-typed widgets.

The engine does not implement a visual toolkit. It asks a WidgetToolkit for a
widget with a given capability (single-line input, multi-line input, choose
one, toggle, ...) and hands it the current value plus an `on_change` callback.
Whatever the toolkit returns is opaque to the engine.

DescriptorToolkit is the toolkit shipped with the package: it returns plain,
immutable widget descriptors that an embedding application can inspect, lay out
with its own components, or drive directly in tests. Each descriptor reports a
user interaction by calling `on_change` synchronously with the field's new
value; descriptors never mutate themselves.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

from typing_extensions import Protocol

from dynaform.fields import FileHandle, Option

ChangeHandler = Callable[[Any], None]
"""Callback invoked with a field's new value on every user interaction."""


@dataclass(frozen=True)
class TextInput:
    """Single-line text input.

    `input_type` is a hint for on-device affordances ("email", "tel", "date",
    ...); it carries no validation semantics.
    """
    name: str
    input_type: str
    value: str
    on_change: ChangeHandler
    placeholder: Optional[str] = None

    def change(self, value: str) -> None:
        self.on_change(value)


@dataclass(frozen=True)
class TextArea:
    """Multi-line text input with a visible row count."""
    name: str
    value: str
    rows: int
    on_change: ChangeHandler
    placeholder: Optional[str] = None

    def change(self, value: str) -> None:
        self.on_change(value)


@dataclass(frozen=True)
class Select:
    """Choose exactly one (or, when `multiple`, several) of enumerated options."""
    name: str
    options: Tuple[Option, ...]
    value: Any
    on_change: ChangeHandler
    placeholder: Optional[str] = None
    multiple: bool = False

    def choose(self, value: Any) -> None:
        """Report a new selection: one value, or a list when `multiple`."""
        self.on_change(list(value) if self.multiple else value)


@dataclass(frozen=True)
class Toggle:
    """Two-state boolean toggle with its label rendered inline."""
    name: str
    checked: bool
    label: str
    on_change: ChangeHandler

    def change(self, checked: bool) -> None:
        self.on_change(bool(checked))

    def toggle(self) -> None:
        self.on_change(not self.checked)


@dataclass(frozen=True)
class ToggleGroup:
    """One toggle per option; the value is the list of checked option values."""
    name: str
    options: Tuple[Option, ...]
    values: Tuple[str, ...]
    on_change: ChangeHandler

    def toggle_option(self, value: str) -> None:
        """Flip one option, keeping the checked values in option order."""
        checked = set(self.values)
        if value in checked:
            checked.remove(value)
        else:
            checked.add(value)
        self.on_change([option.value for option in self.options if option.value in checked])


@dataclass(frozen=True)
class RadioGroup:
    """Mutually exclusive selectors, one per option, stacked vertically."""
    name: str
    options: Tuple[Option, ...]
    value: str
    on_change: ChangeHandler
    orientation: str = "vertical"

    def choose(self, value: str) -> None:
        self.on_change(value)


@dataclass(frozen=True)
class FilePicker:
    """Multi-file selection surface producing a list of FileHandles."""
    name: str
    files: Tuple[FileHandle, ...]
    on_change: ChangeHandler
    accept: Optional[str] = None
    multiple: bool = False

    def select_files(self, files: Sequence[FileHandle]) -> None:
        self.on_change(list(files))


class WidgetToolkit(Protocol):
    """Capabilities the renderer asks a visual toolkit for."""

    def text_input(
        self, *, name: str, input_type: str, value: str, on_change: ChangeHandler,
        placeholder: Optional[str],
    ) -> Any: ...

    def text_area(
        self, *, name: str, value: str, rows: int, on_change: ChangeHandler, placeholder: Optional[str],
    ) -> Any: ...

    def select(
        self, *, name: str, options: Tuple[Option, ...], value: Any, on_change: ChangeHandler,
        placeholder: Optional[str], multiple: bool,
    ) -> Any: ...

    def toggle(self, *, name: str, checked: bool, label: str, on_change: ChangeHandler) -> Any: ...

    def toggle_group(
        self, *, name: str, options: Tuple[Option, ...], values: Tuple[str, ...], on_change: ChangeHandler,
    ) -> Any: ...

    def radio_group(
        self, *, name: str, options: Tuple[Option, ...], value: str, on_change: ChangeHandler,
    ) -> Any: ...

    def file_picker(
        self, *, name: str, files: Tuple[FileHandle, ...], on_change: ChangeHandler,
        accept: Optional[str], multiple: bool,
    ) -> Any: ...


class DescriptorToolkit:
    """WidgetToolkit returning the plain widget descriptors of this module."""

    def text_input(self, **kwargs: Any) -> TextInput:
        return TextInput(**kwargs)

    def text_area(self, **kwargs: Any) -> TextArea:
        return TextArea(**kwargs)

    def select(self, **kwargs: Any) -> Select:
        return Select(**kwargs)

    def toggle(self, **kwargs: Any) -> Toggle:
        return Toggle(**kwargs)

    def toggle_group(self, **kwargs: Any) -> ToggleGroup:
        return ToggleGroup(**kwargs)

    def radio_group(self, **kwargs: Any) -> RadioGroup:
        return RadioGroup(**kwargs)

    def file_picker(self, **kwargs: Any) -> FilePicker:
        return FilePicker(**kwargs)


__all__ = [
    "ChangeHandler",
    "TextInput",
    "TextArea",
    "Select",
    "Toggle",
    "ToggleGroup",
    "RadioGroup",
    "FilePicker",
    "WidgetToolkit",
    "DescriptorToolkit",
]
