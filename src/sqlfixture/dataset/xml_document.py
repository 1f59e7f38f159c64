"""Read and write fixture documents.

Two XML layouts are understood.

Flat layout, one element per row, named after its table::

    <dataset>
        <main.person><id>1</id><name>Ann</name></main.person>
        <main.person id="2" name="Bob"/>
        <main.audit_log/>                      <!-- no rows: only clear the table -->
    </dataset>

A column element that is missing (or empty) is SQL NULL. Attributes and child
elements may be mixed. Adjacent elements of one table form one table entry;
the same table appearing again later in the document starts a new entry, so
its rows are inserted at that position.

Full layout, with explicit columns and ``<null/>`` markers::

    <dataset>
        <table name="main.person">
            <column>id</column><column>name</column>
            <row><value>1</value><null/></row>
        </table>
    </dataset>
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from typing import Any, BinaryIO

from sqlfixture.dataset.models import FixtureDocument, Table
from sqlfixture.exceptions import ConfigurationMisuse, FixtureDocumentError

logger = logging.getLogger(__name__)


def load_document(source: str | os.PathLike[str] | BinaryIO | bytes, *, name: str | None = None) -> FixtureDocument:
    """Parse a fixture document from a path, a binary stream or raw bytes."""
    if name is None:
        name = os.fspath(source) if isinstance(source, str | os.PathLike) else getattr(source, "name", None)
    try:
        if isinstance(source, bytes):
            root = ET.fromstring(source)
        else:
            root = ET.parse(source).getroot()
    except ET.ParseError as exc:
        raise FixtureDocumentError(f"The fixture document {name or ''} is not well-formed XML: {exc}") from exc

    try:
        if _is_full_layout(root):
            tables = _read_full_layout(root)
        else:
            tables = _read_flat_layout(root)
    except ConfigurationMisuse as exc:
        raise FixtureDocumentError(f"The fixture document {name or ''} is inconsistent: {exc}") from exc

    document = FixtureDocument(tables=tuple(tables), source=str(name) if name is not None else None)
    logger.debug("Loaded fixture %s with tables %s", document.source, document.table_names)
    return document


def _is_full_layout(root: ET.Element) -> bool:
    return any(child.tag == "table" and "name" in child.attrib for child in root)


def _read_full_layout(root: ET.Element) -> list[Table]:
    tables: list[Table] = []
    for table_element in root:
        if table_element.tag != "table":
            raise FixtureDocumentError(f"Unexpected element <{table_element.tag}> in a document using <table> elements")
        name = table_element.get("name", "")
        columns = [(column.text or "").strip() for column in table_element.findall("column")]
        table = Table(name, columns)
        for row_element in table_element.findall("row"):
            values: list[Any] = []
            for cell in row_element:
                if cell.tag == "null":
                    values.append(None)
                elif cell.tag == "value":
                    values.append(cell.text or "")
                else:
                    raise FixtureDocumentError(f"Unexpected element <{cell.tag}> in a row of the table '{name}'")
            table.add_row(values)
        tables.append(table)
    return tables


def _read_flat_layout(root: ET.Element) -> list[Table]:
    # one block per run of adjacent elements of the same table:
    # (table name as written first, column names, rows keyed by lower-case column)
    blocks: list[tuple[str, list[str], list[dict[str, str | None]]]] = []
    previous: str | None = None

    for element in root:
        key = element.tag.lower()
        if key != previous:
            blocks.append((element.tag, [], []))
            previous = key
        _, columns, rows = blocks[-1]

        cells: dict[str, str | None] = {}
        for attribute, value in element.attrib.items():
            cells[attribute.lower()] = value
            _remember_column(columns, attribute)
        for child in element:
            column_key = child.tag.lower()
            if column_key in cells:
                raise FixtureDocumentError(f"The column '{child.tag}' appears twice in a row of the table '{element.tag}'")
            cells[column_key] = child.text
            _remember_column(columns, child.tag)

        # an element without any cell only declares the table
        if cells:
            rows.append(cells)

    tables: list[Table] = []
    for name, columns, rows in blocks:
        table = Table(name, columns)
        for cells in rows:
            table.add_row([cells.get(column.lower()) for column in columns])
        tables.append(table)
    return tables


def _remember_column(columns: list[str], column: str) -> None:
    if column.lower() not in (known.lower() for known in columns):
        columns.append(column)


def dump_document(document: FixtureDocument) -> str:
    """Render a document in the full layout, e.g. for logging what is about to be applied."""
    root = ET.Element("dataset")
    for table in document.tables:
        table_element = ET.SubElement(root, "table", name=table.name)
        for column in table.columns:
            ET.SubElement(table_element, "column").text = column.name
        for row in table.rows:
            row_element = ET.SubElement(table_element, "row")
            for value in row:
                if value is None:
                    ET.SubElement(row_element, "null")
                else:
                    ET.SubElement(row_element, "value").text = str(value)
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")

