"""
Labeled value extraction from free-text product detail cells

The supplier export writes product details as ``Label: value`` fragments in
column A, usually one label per row inside the merged block of a shipment.
"""
from typing import Dict, Iterable, Sequence, Tuple

from config import PLACEHOLDER, PRODUCT_DETAIL_LABELS

SEPARATOR = ':'


def extract_labeled_value(cell_text: str, label: str) -> str:
    """
    Pull the value that follows ``label`` in ``cell_text``.

    Args:
        cell_text: Free text from a cell
        label: Label to look for, matched case-insensitively

    Returns:
        The trimmed remainder after the label, ``'-'`` when the remainder is
        blank, or ``''`` when the label does not occur at all.
    """
    if not cell_text or not label:
        return ''

    position = cell_text.lower().find(label.lower())
    if position == -1:
        return ''

    value = cell_text[position + len(label):].strip()
    if value.startswith(SEPARATOR):
        value = value[1:].strip()
    return value or PLACEHOLDER


def extract_first(cell_text: str, labels: Iterable[str]) -> str:
    """First non-empty extraction over candidate label spellings"""
    for label in labels:
        value = extract_labeled_value(cell_text, label)
        if value:
            return value
    return ''


class ProductDetailParser:
    """Collects product fields from consecutive detail cells of one shipment"""

    def __init__(self, field_labels: Sequence[Tuple[str, Sequence[str]]] = PRODUCT_DETAIL_LABELS):
        self.field_labels = field_labels
        self.values: Dict[str, str] = {}

    @property
    def complete(self) -> bool:
        return len(self.values) == len(self.field_labels)

    def feed(self, cell_text: str) -> None:
        """Extract every still-missing field from one cell; found fields are kept"""
        if not cell_text:
            return
        for field_name, labels in self.field_labels:
            if field_name in self.values:
                continue
            value = extract_first(cell_text, labels)
            if value:
                self.values[field_name] = value

    def result(self) -> Dict[str, str]:
        return {field_name: self.values.get(field_name, PLACEHOLDER)
                for field_name, _ in self.field_labels}


def parse_product_details(cells: Iterable[str]) -> Dict[str, str]:
    """Run the parser over cells top to bottom, stopping once all fields are found"""
    parser = ProductDetailParser()
    for text in cells:
        parser.feed(text)
        if parser.complete:
            break
    return parser.result()
