"""FormController orchestrator for dynaform.

This module provides the FormController class that coordinates the working
record, the schema's validator, the field renderer and the state machine for
one rendering/submission cycle.

The controller owns its working record exclusively. Edits flow one way: a
widget reports a new value, the controller applies it to the record and
re-validates the complete record, and the next `render()` rebuilds every
widget from record state.

Submission is the only asynchronous step. While the submit sink is running the
controller is busy: further submit requests are ignored and edits are refused,
until the sink resolves. Whatever the sink raises is caught here and turned
into a failed SubmitOutcome. A cancelled submission also returns the form to
editing before the cancellation propagates.

Usage:
    >>> import asyncio
    >>> from dynaform.controller import FormController
    >>> from dynaform.fields import FieldSpec
    >>> from dynaform.schema import FormSchema
    >>> from dynaform.types import FieldType
    >>> schema = FormSchema([FieldSpec(name="name", type=FieldType.TEXT, label="Name", required=True)])
    >>> received = []
    >>> form = FormController(schema, submit=received.append)
    >>> form.set_value("name", "Ada").is_valid
    True
    >>> asyncio.run(form.submit()).status
    <SubmitStatus.SUCCEEDED: 'succeeded'>
    >>> received
    [{'name': 'Ada'}]
"""

import asyncio
import inspect
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

from dynaform.errors import FormBusyError
from dynaform.events import EventEmitter, FormEvent
from dynaform.logging import get_logger
from dynaform.rendering import FieldRenderer, FieldView
from dynaform.schema import FormSchema
from dynaform.settings import Settings, get_settings
from dynaform.state_machine import FormStateMachine
from dynaform.types import EventType, FormState, SubmitStatus
from dynaform.validation import ValidationResult

logger = get_logger(__name__)

SubmitSink = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]
"""Caller-supplied consumer of an accepted record; may be sync or async.

The record arrives normalized: number fields edited as text hold numbers.
"""


@dataclass(frozen=True)
class SubmitOutcome:
    """Structured result of one submit attempt.

    Attributes:
        status: SUCCEEDED or FAILED
        reason: Form-level notice when the sink failed; None otherwise
        validation: Validation result of the final full-record check
        result: Whatever the sink returned, on success
    """
    status: SubmitStatus
    reason: Optional[str] = None
    validation: Optional[ValidationResult] = None
    result: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status == SubmitStatus.SUCCEEDED

    @property
    def rejected_by_validation(self) -> bool:
        """Whether the attempt stopped before the sink because the record was invalid."""
        return self.validation is not None and not self.validation.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization; the sink's result is omitted."""
        result: Dict[str, Any] = {"status": self.status.value}
        if self.reason is not None:
            result["reason"] = self.reason
        if self.validation is not None:
            result["validation"] = self.validation.to_dict()
        return result


class FormController:
    """Orchestrator for one form session.

    Attributes:
        form_id: Identifier of this session, used in events and logs
        schema: The form schema being edited
        emitter: EventEmitter receiving every session event
        reset_on_success: Restore the initial record after a successful submit
        last_outcome: Outcome of the most recent completed submit attempt

    Raises:
        SchemaDefinitionError: If `defaults` name fields the schema lacks

    Examples:
        >>> from dynaform.fields import FieldSpec
        >>> from dynaform.types import FieldType
        >>> schema = FormSchema([FieldSpec(name="age", type=FieldType.NUMBER, label="Age", minimum=18)])
        >>> form = FormController(schema, submit=lambda record: None, defaults={"age": 12})
        >>> form.state
        <FormState.EDITING: 'editing'>
        >>> form.validation.field_errors
        {'age': ['Age must be at least 18']}
        >>> form.errors
        {}
    """

    def __init__(
        self,
        schema: FormSchema,
        submit: SubmitSink,
        defaults: Optional[Mapping[str, Any]] = None,
        form_id: Optional[str] = None,
        renderer: Optional[FieldRenderer] = None,
        emitter: Optional[EventEmitter] = None,
        reset_on_success: bool = False,
        settings: Optional[Settings] = None,
    ):
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:16]}"
        self.schema = schema
        self.emitter = emitter or EventEmitter()
        self.reset_on_success = reset_on_success
        self.last_outcome: Optional[SubmitOutcome] = None

        self._submit = submit
        self._settings = settings or get_settings()
        self._renderer = renderer
        self._defaults: Dict[str, Any] = dict(defaults or {})
        self._record = schema.initial_record(self._defaults)
        self._touched: Set[str] = set()
        self._submit_attempted = False
        self._state_machine = FormStateMachine(
            form_id=self.form_id,
            emitter=self.emitter,
            max_events=self._settings.event_log_size,
        )
        self._validation = ValidationResult.accepted()

        self._state_machine.record(EventType.FORM_OPENED, {"fields": list(schema.field_names)})
        self._revalidate()

    @property
    def state(self) -> FormState:
        return self._state_machine.state

    @property
    def is_busy(self) -> bool:
        """True while the submit sink is running."""
        return self._state_machine.state == FormState.SUBMITTING

    @property
    def record(self) -> Dict[str, Any]:
        """A copy of the working record."""
        return self._snapshot()

    @property
    def validation(self) -> ValidationResult:
        """Result of the latest full-record validation."""
        return self._validation

    @property
    def errors(self) -> Dict[str, List[str]]:
        """Error messages currently shown next to their fields.

        Errors show for fields the user has edited, and for every field once a
        submit has been attempted.
        """
        return {
            name: messages
            for name, messages in self._validation.field_errors.items()
            if self._submit_attempted or name in self._touched
        }

    @property
    def notice(self) -> Optional[str]:
        """Form-level notice from the last failed submission, if any."""
        if self.last_outcome is not None and not self.last_outcome.succeeded:
            return self.last_outcome.reason
        return None

    def get_events(self) -> List[FormEvent]:
        """Most recent session events, in chronological order.

        At most `Settings.event_log_size` events are kept; subscribe to
        `emitter` to observe the complete stream.
        """
        return self._state_machine.get_events()

    def set_value(self, name: str, value: Any) -> ValidationResult:
        """Apply one edit and re-validate the complete record.

        Args:
            name: Field being edited
            value: Its new value

        Returns:
            The fresh ValidationResult

        Raises:
            KeyError: If the schema has no field `name`
            FormBusyError: If a submission is in flight
        """
        if self.is_busy:
            raise FormBusyError(self.form_id)
        self.schema.field(name)

        self._record[name] = list(value) if isinstance(value, (list, tuple)) else value
        self._touched.add(name)
        self._state_machine.record(EventType.FIELD_UPDATED, {"field": name})
        return self._revalidate()

    def update(self, values: Mapping[str, Any]) -> ValidationResult:
        """Apply several edits, validating once afterwards."""
        if self.is_busy:
            raise FormBusyError(self.form_id)
        for name in values:
            self.schema.field(name)
        for name, value in values.items():
            self._record[name] = list(value) if isinstance(value, (list, tuple)) else value
            self._touched.add(name)
            self._state_machine.record(EventType.FIELD_UPDATED, {"field": name})
        return self._revalidate()

    async def submit(self) -> Optional[SubmitOutcome]:
        """Validate the record and, if accepted, hand it to the submit sink.

        The sink is invoked at most once per call, with a copy of the record.
        A call made while a previous submission is still in flight is ignored
        and returns None.

        Returns:
            SubmitOutcome of this attempt, or None when ignored
        """
        if self.is_busy:
            logger.debug("submit ignored while submitting", form_id=self.form_id)
            return None

        self._submit_attempted = True
        self._state_machine.transition_to(FormState.VALIDATING)
        validation = self.schema.validate(self._record)
        self._validation = validation

        if not validation.is_valid:
            outcome = SubmitOutcome(status=SubmitStatus.FAILED, validation=validation)
            self._state_machine.transition_to(
                FormState.FAILED,
                EventType.VALIDATION_FAILED,
                {"invalid_fields": validation.invalid_fields},
            )
            self._state_machine.transition_to(FormState.EDITING)
            self.last_outcome = outcome
            return outcome

        snapshot = self.schema.normalize(self._snapshot())
        self._state_machine.transition_to(FormState.SUBMITTING)
        logger.info("submission dispatched", form_id=self.form_id)

        try:
            result = self._submit(snapshot)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            logger.warning("submission cancelled", form_id=self.form_id)
            self._state_machine.transition_to(FormState.FAILED, payload={"error": "CancelledError"})
            self._state_machine.transition_to(FormState.EDITING)
            self.last_outcome = SubmitOutcome(
                status=SubmitStatus.FAILED,
                reason=self._settings.submit_failure_notice,
                validation=validation,
            )
            raise
        except Exception as exc:
            logger.exception("submission failed", form_id=self.form_id)
            outcome = SubmitOutcome(
                status=SubmitStatus.FAILED,
                reason=self._settings.submit_failure_notice,
                validation=validation,
            )
            self._state_machine.transition_to(FormState.FAILED, payload={"error": type(exc).__name__})
        else:
            logger.info("submission succeeded", form_id=self.form_id)
            outcome = SubmitOutcome(status=SubmitStatus.SUCCEEDED, validation=validation, result=result)
            self._state_machine.transition_to(FormState.SUCCEEDED)

        self._state_machine.transition_to(FormState.EDITING)
        if outcome.succeeded and self.reset_on_success:
            self.reset()
        self.last_outcome = outcome
        return outcome

    def reset(self) -> None:
        """Restore the initial record and forget touched fields and outcomes.

        Raises:
            FormBusyError: If a submission is in flight
        """
        if self.is_busy:
            raise FormBusyError(self.form_id)
        self._record = self.schema.initial_record(self._defaults)
        self._touched.clear()
        self._submit_attempted = False
        self.last_outcome = None
        self._state_machine.record(EventType.FORM_RESET)
        self._revalidate()

    def render(self, renderer: Optional[FieldRenderer] = None) -> List[FieldView]:
        """Render every field, in schema order, from the current record.

        Args:
            renderer: Renderer to use for this call; defaults to the
                controller's own renderer
        """
        if renderer is None:
            if self._renderer is None:
                self._renderer = FieldRenderer(settings=self._settings)
            renderer = self._renderer
        visible = self.errors
        return [
            renderer.render(
                spec,
                self._record[spec.name],
                on_change=partial(self.set_value, spec.name),
                errors=visible.get(spec.name, ()),
            )
            for spec in self.schema.fields
        ]

    def _revalidate(self) -> ValidationResult:
        self._state_machine.transition_to(FormState.VALIDATING)
        self._validation = self.schema.validate(self._record)
        if self._validation.is_valid:
            self._state_machine.transition_to(FormState.EDITING, EventType.VALIDATION_PASSED)
        else:
            self._state_machine.transition_to(
                FormState.EDITING,
                EventType.VALIDATION_FAILED,
                {"invalid_fields": self._validation.invalid_fields},
            )
        return self._validation

    def _snapshot(self) -> Dict[str, Any]:
        return {
            name: list(value) if isinstance(value, list) else value
            for name, value in self._record.items()
        }


__all__ = [
    "FormController",
    "SubmitOutcome",
    "SubmitSink",
]
