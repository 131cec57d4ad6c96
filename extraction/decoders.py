"""File decoders for order lists and delivery documents.

- XlsxTableDecoder: first worksheet of an .xlsx workbook -> rows of cell values
- PdfTokenDecoder: PDF -> positioned words, y measured from the page bottom

Both are thin adapters; everything after decoding works on plain rows and
PositionedToken values, so other decoders can be swapped in.
"""

import io
from typing import Any, List

import fitz
from openpyxl import load_workbook
from typing_extensions import Protocol

from core.errors import DocumentDecodeError
from core.models.canonical import PositionedToken


Row = List[Any]


class TabularDecoder(Protocol):
    def decode(self, data: bytes) -> List[Row]:
        ...


class PageDecoder(Protocol):
    def decode(self, data: bytes, source: str = "document") -> List[PositionedToken]:
        ...


class XlsxTableDecoder:
    """Reads the first sheet of a workbook as lists of cell values."""

    def decode(self, data: bytes) -> List[Row]:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            return [list(values) for values in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()


class PdfTokenDecoder:
    """Reads every word of a PDF with its baseline position.

    PyMuPDF measures y from the top of the page; tokens are flipped so that a
    larger y means higher on the page, with the word's bottom edge as baseline.
    """

    def decode(self, data: bytes, source: str = "document") -> List[PositionedToken]:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentDecodeError(source, str(e) or type(e).__name__) from e

        with doc:
            if doc.needs_pass:
                raise DocumentDecodeError(source, "document is password protected")
            if doc.page_count == 0:
                raise DocumentDecodeError(source, "document has no pages")

            tokens = []
            for page_index in range(doc.page_count):
                page = doc.load_page(page_index)
                height = page.rect.height
                for x0, _y0, _x1, y1, word, *_ in page.get_text("words"):
                    tokens.append(PositionedToken(
                        text=word,
                        x=x0,
                        y=height - y1,
                        page=page_index + 1,
                    ))
            return tokens
