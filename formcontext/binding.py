"""Field binding adapter.

A FieldBinding connects one input control to one field of a FormContext.
It turns the control's change and blur events into form mutations and
derives what the control should render from the form's current state.

The binding holds no form state of its own: value, error and touched flag
are read from the FormContext every time.

Usage:
    >>> from formcontext.context import create_form_context
    >>> from formcontext.rules import required
    >>> form = create_form_context({"name": ""}, {"name": required("Name")})
    >>> with FieldBinding(form, "name") as field:
    ...     field.handle_change(FieldEvent(name="name", value=""))
    ...     before_blur = field.error
    ...     field.handle_blur()
    ...     after_blur = field.error
    >>> before_blur is None, after_blur
    (True, 'Name is required')
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from formcontext.context import FormContext
from formcontext.events import FormEvent
from formcontext.state_machine import status_of, visible_error
from formcontext.types import DEFAULT_VALUE, FieldKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldEvent:
    """A raw event coming from an input control.

    Attributes:
        name: Name of the control that fired the event
        value: The control's value at the time of the event
        kind: "change" or "blur"
    """
    name: str
    value: Any = None
    kind: str = "change"


@dataclass(frozen=True)
class FieldProps:
    """What an input control needs to render one field."""
    name: str
    value: Any
    error: Optional[str]
    touched: bool


EventHandler = Callable[[FieldEvent], None]


class FieldBinding:
    """Binds one field of a FormContext to one input control.

    Attributes:
        context: The form this binding reads from and writes to
        name: Field key this binding is bound to
    """

    def __init__(
        self,
        context: FormContext,
        name: FieldKey,
        on_change: Optional[EventHandler] = None,
        on_blur: Optional[EventHandler] = None,
        on_update: Optional[Callable[[FormEvent], None]] = None,
    ) -> None:
        """Initialize the binding.

        Args:
            context: Form to bind to
            name: Field key; must be declared by the form
            on_change: Optional caller handler, called after the form is updated
            on_blur: Optional caller handler, called after the field is touched
            on_update: Optional callback for re-rendering; receives every form
                event while the binding is mounted

        Raises:
            UnknownFieldError: If ``name`` is not a field of ``context``
        """
        # Raises UnknownFieldError early, at the point of binding
        context.field(name)
        self.context = context
        self.name = name
        self._on_change = on_change
        self._on_blur = on_blur
        self._on_update = on_update
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> "FieldBinding":
        """Start receiving form events.

        A field that is already touched on mount (e.g. a pre-filled form
        restored mid-edit) is validated right away so its error is current.
        """
        if self.mounted:
            return self
        if self._on_update is not None:
            self._unsubscribe = self.context.subscribe(self._on_update)
        else:
            self._unsubscribe = lambda: None
        logger.debug("Mounted binding for field %r", self.name)
        if self.touched:
            self.context.validate_field(self.name)
        return self

    def unmount(self) -> None:
        """Stop receiving form events. Safe to call more than once."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None
        logger.debug("Unmounted binding for field %r", self.name)

    def __enter__(self) -> "FieldBinding":
        return self.mount()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    @property
    def value(self) -> Any:
        value = self.context.values.get(self.name)
        return DEFAULT_VALUE if value is None else value

    @property
    def touched(self) -> bool:
        return bool(self.context.touched.get(self.name, False))

    @property
    def error(self) -> Optional[str]:
        """Error to display: the form's error for this field, once touched."""
        return visible_error(status_of(self.touched), self.context.errors.get(self.name))

    def props(self) -> FieldProps:
        return FieldProps(
            name=self.name,
            value=self.value,
            error=self.error,
            touched=self.touched,
        )

    def handle_change(self, event: FieldEvent) -> None:
        """Push the control's new value into the form, then call ``on_change``.

        The caller's handler receives the raw event unchanged.
        """
        self.context.set_field_value(self.name, event.value)
        if self._on_change is not None:
            self._on_change(event)

    def handle_blur(self, event: Optional[FieldEvent] = None) -> None:
        """Mark the field touched, then call ``on_blur``."""
        self.context.set_field_touched(self.name, True)
        if self._on_blur is not None:
            if event is None:
                event = FieldEvent(name=self.name, value=self.value, kind="blur")
            self._on_blur(event)

    def __repr__(self) -> str:
        return f"FieldBinding(name={self.name!r}, form_id={self.context.form_id!r})"


__all__ = [
    "FieldBinding",
    "FieldEvent",
    "FieldProps",
]
