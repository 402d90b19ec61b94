"""Field-type widget registry.

The engine only knows the closed set of field types. How a type is drawn (or
prompted for) is a capability an adapter registers here: the CLI registers
terminal prompts, a web front end would register its own components.
"""

from typing import Any, Callable, Iterable, Optional

from form_builder.models.template import FieldType

Widget = Callable[..., Any]


class WidgetRegistry:
    """Maps each ``FieldType`` to the adapter's widget for it"""

    def __init__(self, fallback: Optional[Widget] = None):
        self._widgets: dict[FieldType, Widget] = {}
        self._fallback = fallback

    def register(self, field_types: Iterable[FieldType] | FieldType, widget: Widget) -> None:
        if isinstance(field_types, (FieldType, str)):
            field_types = [field_types]
        for field_type in field_types:
            self._widgets[FieldType(field_type)] = widget

    def widget_for(self, field_type: FieldType) -> Optional[Widget]:
        return self._widgets.get(FieldType(field_type), self._fallback)

    def missing(self) -> list[FieldType]:
        """Field types with no widget and no fallback"""
        if self._fallback is not None:
            return []
        return [t for t in FieldType if t not in self._widgets]

    def __contains__(self, field_type: object) -> bool:
        try:
            return FieldType(field_type) in self._widgets
        except ValueError:
            return False
