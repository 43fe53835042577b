#  -*- coding: utf-8 -*-
"""
Rich terminal display of model instances.

Mixing ``Displayable`` into a model type renders its instances as a
``rich`` panel: the type name as title and a form of the instance's
properties as body. Array properties holding models are rendered as tables
built from a ``pandas.DataFrame`` of the cleaned elements.

All styling lives in ``DisplaySettings``, itself a model, so a theme can be
cleaned to plain data, stored anywhere and wrapped back::

    >>> settings = DisplaySettings.wrap({'panel_border_style': 'green'})
    >>> settings.console_width
    150
    >>> theme = settings.clean()
"""

from __future__ import annotations

import pandas

from io import StringIO

from rich import box
from rich.align import Align
from rich.console import Console, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from moldura.array import Array, ArrayView
from moldura.attribute import Attribute
from moldura.enum import Enum
from moldura.model import Mixin, Model, clean
from moldura.primitives import Integer, String
from moldura.utils import check_types

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterable

from moldura.options import Options


Alignment = Enum.create(['left', 'center', 'right'], type_name='Alignment', auto_lower_case=True)


class BoxStyle(String):
    """Name of a box style of ``rich.box`` (``'ROUNDED'``, ``'HEAVY'``, ...)."""

    type_name = 'BoxStyle'

    def coerce(cls, value: Any, options: Options) -> str | None:
        value = super()._coerce(value, options)

        if value is None:
            return None

        if not isinstance(getattr(box, value.upper(), None), box.Box):
            cls.coercion_error(value, options, 'Unknown box style')

        return value.upper()


# ========== ========== ========== ========== ========== ==========
class DisplaySettings(Model):
    """
    Styling of the terminal display.

    Attributes
    ----------
    console_width : int
        Maximum output width in characters. Default 150.
    property_style : str
        Rich style of property labels in forms. Default 'bold bright_yellow'.
    panel_border_style : str
        Rich style of panel borders. Default 'bright_cyan'.
    panel_box : str
        Box style name from ``rich.box``. Default 'ROUNDED'.
    panel_title_align : Alignment
        Panel title alignment. Default ``Alignment.CENTER``.
    table_index_style : str or None
        Rich style of the table index column. Default None.
    table_header_style : str or None
        Rich style of table headers. Default 'bold bright_yellow'.
    table_round_floats : int or None
        Decimal places floats are rounded to in tables. Default None.
    table_spacing : int
        Column spacing in characters. Default 4.

    Notes
    -----
    Missing settings are filled in with their defaults when an instance is
    created. Rich style strings combine modifiers and colours, e.g.
    ``'bold red'`` or ``'italic #FF00FF'``.
    """

    type_name = 'DisplaySettings'

    defaults = {
        'console_width': 150,
        'property_style': 'bold bright_yellow',
        'panel_border_style': 'bright_cyan',
        'panel_box': 'ROUNDED',
        'panel_title_align': 'center',
        'table_index_style': None,
        'table_header_style': 'bold bright_yellow',
        'table_round_floats': None,
        'table_spacing': 4,
    }

    # ---------- ---------- ---------- ---------- console
    console_width = Attribute(Integer, doc="Maximum console output width in characters.")

    # ---------- ---------- ---------- ---------- property
    property_style = Attribute(String, doc="Rich style of property labels in forms.")

    # ---------- ---------- ---------- ---------- panel
    panel_border_style = Attribute(String, doc="Rich style of panel borders.")
    panel_box = Attribute(BoxStyle, doc="Box style name from rich.box.")
    panel_title_align = Attribute(Alignment, doc="Panel title alignment.")

    # ---------- ---------- ---------- ---------- table
    table_index_style = Attribute(String)
    table_header_style = Attribute(String)
    table_round_floats = Attribute(Integer)
    table_spacing = Attribute(Integer)

    def init(self, data: dict[str, Any], options: Options) -> None:
        for key, value in type(self).defaults.items():
            data.setdefault(key, value)


# ========== ========== ========== ========== ========== ==========
def to_frame(records: Iterable[Any]) -> pandas.DataFrame:
    """Build a DataFrame from the cleaned form of ``records``."""
    return pandas.DataFrame.from_records([clean(record) for record in records])


class Displayable(Mixin):
    """
    Mixin rendering model instances as rich panels.

    Examples
    --------
    >>> class Sensor(Model, Displayable):
    ...     properties = {'name': String, 'temperature': Number}
    >>> print(Sensor.wrap({'name': 'T1', 'temperature': 21.5}))  # doctest: +SKIP
    """

    mixin_id = 'moldura.display'

    # ========== ========== ========== ========== ========== special methods
    def __str__(self) -> str:
        string_io = StringIO()
        console = Console(file=string_io,
                          force_terminal=True,
                          width=self.display_settings.console_width)
        console.print(self._display_panel())
        return string_io.getvalue()

    def __rich__(self) -> RenderableType:
        return self._display_panel()

    # ========== ========== ========== ========== ========== protected methods
    def _title(self) -> Text:
        return Text(type(self).type_name or type(self).__name__, style='bold')

    def _content(self) -> RenderableType:
        cls = type(self)

        if not cls.properties:
            return escape(repr(clean(self)))

        rows: dict[str, RenderableType] = {}

        for name, attribute in cls.properties.items():
            value = self._get_attribute_value(attribute)

            if isinstance(value, ArrayView) and value.item_type is not None and value.item_type.wrapped \
                    and not issubclass(value.item_type, (Array, Enum)) and len(value):
                rows[name] = self.format_as_table(to_frame(value))

            elif value is None:
                rows[name] = ''

            else:
                rows[name] = escape(str(clean(value)))

        return self.format_as_form(rows)

    def _display_panel(self) -> Panel:
        settings = self.display_settings

        return Panel(
            self._content(),
            title=self._title(),
            border_style=settings.panel_border_style,
            title_align=str(settings.panel_title_align or Alignment.CENTER),
            expand=False,
            box=getattr(box, settings.panel_box or 'ROUNDED')
        )

    # ========== ========== ========== ========== ========== public methods
    def format_as_form(self, data: dict[str, Any] | pandas.Series) -> Table:
        """Two-column grid of ``label:`` and value."""
        form = Table.grid(padding=(0, 4), expand=False)
        form.add_column(justify='left', style=self.display_settings.property_style)
        form.add_column(justify='left', style=None)

        for prop, value in data.items():
            form.add_row(f'{prop}:', value)

        return form

    def format_as_table(self,
                        frame: pandas.DataFrame,
                        show_index: bool = True,
                        align_column: str | dict[str, str] | None = None,
                        max_rows: int = 31,
                        round_floats: int | None = None) -> Table:
        """
        Render a DataFrame as a rich grid.

        Parameters
        ----------
        frame : pandas.DataFrame
        show_index : bool, default True
        align_column : str or dict, optional
            Justification of every column, or per column. Numeric columns
            are right-aligned and the others left-aligned by default.
        max_rows : int, default 31
            Longer frames show their head and tail around an ellipsis row.
        round_floats : int, optional
            Decimal places of float columns. Defaults to
            ``display_settings.table_round_floats``.

        Raises
        ------
        TypeError
            If ``align_column`` has an invalid type.
        """
        settings = self.display_settings

        frame = frame.reset_index() if show_index else frame.copy()
        frame.columns = [str(column) for column in frame.columns]

        table = Table.grid(padding=(0, settings.table_spacing), expand=False)

        for column in frame.columns:

            if align_column is None:
                numeric = pandas.api.types.is_numeric_dtype(frame[column])
                table.add_column(justify='right' if numeric else 'left')

            elif isinstance(align_column, str):
                table.add_column(justify=align_column)

            elif isinstance(align_column, dict):
                table.add_column(justify=align_column.get(column, 'left'))

            else:
                raise TypeError(f'Invalid type for align_column argument: {type(align_column)}')

        table.add_row(*(Align(escape(column), 'center') for column in frame.columns),
                      style=settings.table_header_style)

        if round_floats is None:
            round_floats = settings.table_round_floats

        if round_floats is not None:
            for column in frame.select_dtypes(include='float').columns:
                frame[column] = frame[column].apply(lambda val: f'{val:.{round_floats}f}')

        text = frame.astype(str)

        def add(rows: pandas.DataFrame) -> None:
            for _, row in rows.iterrows():
                cells = [escape(cell) for cell in row.values]
                if show_index:
                    table.add_row(Text(cells[0], style=settings.table_index_style or ''), *cells[1:])
                else:
                    table.add_row(*cells)

        if len(text) <= max_rows:
            add(text)
        else:
            half = (max_rows - 1) // 2
            add(text.head(half))
            table.add_row(*(Align.center('...') for _ in text.columns))
            add(text.tail(half))

        return table

    def to_html(self) -> str:
        """Export the display as HTML with inline styles."""
        console = Console(file=StringIO(), record=True, width=self.display_settings.console_width)
        console.print(self)
        return console.export_html()

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def display_settings(self) -> DisplaySettings:
        """DisplaySettings: per-instance styling, created on first use."""
        settings = self.__dict__.get('_display_settings')

        if settings is None:
            settings = self.__dict__['_display_settings'] = DisplaySettings()

        return settings

    @display_settings.setter
    def display_settings(self, settings: DisplaySettings) -> None:
        check_types(settings, DisplaySettings)
        self.__dict__['_display_settings'] = settings
