"""Field renderer for dynaform.

The renderer maps each FieldSpec to a widget of the matching capability and
wraps it in a FieldView that carries the surrounding display contract: the
label (with a marker for required fields), the description, and the field's
current error messages.

Dispatch is a total mapping from FieldType to a render function. The mapping is
checked when this module is imported, so adding a FieldType without a render
function fails loudly instead of falling through to a default widget.

Rendering is one-way: a widget is always built from the record's current
value and reports edits through `on_change`; it never writes to the record
itself.

Usage:
    >>> from dynaform.fields import FieldSpec
    >>> from dynaform.rendering import FieldRenderer
    >>> from dynaform.types import FieldType
    >>> renderer = FieldRenderer()
    >>> view = renderer.render(
    ...     FieldSpec(name="email", type=FieldType.EMAIL, label="Email", required=True),
    ...     "",
    ...     on_change=lambda value: None,
    ... )
    >>> view.display_label
    'Email *'
    >>> view.control.input_type
    'email'
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from dynaform.fields import FieldSpec
from dynaform.settings import Settings, get_settings
from dynaform.types import SINGLE_LINE_TYPES, FieldType
from dynaform.widgets import ChangeHandler, DescriptorToolkit, WidgetToolkit


@dataclass(frozen=True)
class FieldView:
    """One rendered field: its control plus the surrounding display text.

    Attributes:
        name: Field name
        type: Field type
        label: Label rendered above the control; None when the control shows
            its label inline (checkbox)
        required_marker: Marker appended to the label of a required field
        control: Widget returned by the toolkit
        description: Help text rendered below the control
        errors: Current error messages rendered below the control
    """
    name: str
    type: FieldType
    label: Optional[str]
    required_marker: Optional[str]
    control: Any
    description: Optional[str] = None
    errors: Tuple[str, ...] = ()

    @property
    def display_label(self) -> Optional[str]:
        """Label text including the required marker, or None when suppressed."""
        if self.label is None:
            return None
        if self.required_marker:
            return f"{self.label} {self.required_marker}"
        return self.label

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


RenderFunction = Callable[["FieldRenderer", FieldSpec, Any, ChangeHandler], Any]


def _render_single_line(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    return renderer.toolkit.text_input(
        name=spec.name,
        input_type=spec.type.value,
        value=_as_text(value),
        on_change=on_change,
        placeholder=spec.placeholder,
    )


def _render_textarea(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    return renderer.toolkit.text_area(
        name=spec.name,
        value=_as_text(value),
        rows=spec.rows or renderer.settings.textarea_rows,
        on_change=on_change,
        placeholder=spec.placeholder,
    )


def _render_select(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    if spec.multiple:
        value = list(value or [])
    return renderer.toolkit.select(
        name=spec.name,
        options=spec.options,
        value=value,
        on_change=on_change,
        placeholder=spec.placeholder or renderer.settings.select_placeholder,
        multiple=spec.multiple,
    )


def _render_checkbox(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    if spec.options:
        return renderer.toolkit.toggle_group(
            name=spec.name,
            options=spec.options,
            values=tuple(value or ()),
            on_change=on_change,
        )
    return renderer.toolkit.toggle(
        name=spec.name,
        checked=bool(value),
        label=spec.label,
        on_change=on_change,
    )


def _render_radio(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    return renderer.toolkit.radio_group(
        name=spec.name,
        options=spec.options,
        value=_as_text(value),
        on_change=on_change,
    )


def _render_file(renderer: "FieldRenderer", spec: FieldSpec, value: Any, on_change: ChangeHandler) -> Any:
    return renderer.toolkit.file_picker(
        name=spec.name,
        files=tuple(value or ()),
        on_change=on_change,
        accept=spec.accept,
        multiple=spec.file_limit != 1,
    )


RENDERERS: Dict[FieldType, RenderFunction] = {
    FieldType.TEXTAREA: _render_textarea,
    FieldType.SELECT: _render_select,
    FieldType.CHECKBOX: _render_checkbox,
    FieldType.RADIO: _render_radio,
    FieldType.FILE: _render_file,
}
RENDERERS.update({field_type: _render_single_line for field_type in SINGLE_LINE_TYPES})

_unrendered = sorted(t.value for t in FieldType if t not in RENDERERS)
if _unrendered:
    raise RuntimeError(f"No renderer registered for field types: {', '.join(_unrendered)}")


class FieldRenderer:
    """Polymorphic dispatch from a FieldSpec's type to a toolkit widget.

    Attributes:
        toolkit: Widget toolkit the renderer invokes (DescriptorToolkit by default)
        settings: Display defaults (textarea rows, select placeholder, required marker)
    """

    def __init__(self, toolkit: Optional[WidgetToolkit] = None, settings: Optional[Settings] = None):
        self.toolkit: WidgetToolkit = toolkit or DescriptorToolkit()
        self.settings = settings or get_settings()

    def render(
        self,
        spec: FieldSpec,
        value: Any,
        on_change: ChangeHandler,
        errors: Sequence[str] = (),
    ) -> FieldView:
        """Render one field from its current value.

        Args:
            spec: Field to render
            value: Current value of the field in the working record
            on_change: Called synchronously with the new value on every edit
            errors: Error messages to show below the control

        Returns:
            FieldView wrapping the toolkit widget
        """
        control = RENDERERS[spec.type](self, spec, value, on_change)
        inline_label = spec.type == FieldType.CHECKBOX and not spec.options
        return FieldView(
            name=spec.name,
            type=spec.type,
            label=None if inline_label else spec.label,
            required_marker=self.settings.required_marker if spec.required and not inline_label else None,
            control=control,
            description=spec.description,
            errors=tuple(errors),
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


__all__ = [
    "FieldView",
    "FieldRenderer",
    "RENDERERS",
]
